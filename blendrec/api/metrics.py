"""Metrics service for tracking recommendation traffic.

Singleton service counting generation calls, their latency, and the
click/purchase feedback recorded against stored recommendations.
"""

import threading
from typing import Dict


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe counters and latency tracking for generation calls.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._reset_counters()
        self._initialized = True

    def _reset_counters(self) -> None:
        self._generation_count = 0
        self._recommendations_served = 0
        self._total_latency_ms = 0.0
        self._min_latency_ms = float('inf')
        self._max_latency_ms = 0.0
        self._clicks = 0
        self._clicks_matched = 0
        self._purchases = 0
        self._purchases_matched = 0

    def record_generation(self, latency_ms: float, num_recommendations: int) -> None:
        """Record a generate-recommendations call.

        Args:
            latency_ms: Latency in milliseconds
            num_recommendations: Number of recommendations returned
        """
        with self._lock:
            self._generation_count += 1
            self._recommendations_served += num_recommendations
            self._total_latency_ms += latency_ms
            self._min_latency_ms = min(self._min_latency_ms, latency_ms)
            self._max_latency_ms = max(self._max_latency_ms, latency_ms)

    def record_click(self, matched: bool) -> None:
        with self._lock:
            self._clicks += 1
            if matched:
                self._clicks_matched += 1

    def record_purchase(self, rows_updated: int) -> None:
        with self._lock:
            self._purchases += 1
            if rows_updated:
                self._purchases_matched += 1

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with generation counts and latency (average, min,
            max in milliseconds), plus click and purchase counters.
        """
        with self._lock:
            avg_latency = (
                self._total_latency_ms / self._generation_count
                if self._generation_count > 0
                else 0.0
            )

            return {
                "generation_count": self._generation_count,
                "recommendations_served": self._recommendations_served,
                "average_latency_ms": round(avg_latency, 2),
                "min_latency_ms": round(self._min_latency_ms, 2) if self._min_latency_ms != float('inf') else 0.0,
                "max_latency_ms": round(self._max_latency_ms, 2),
                "clicks_recorded": self._clicks,
                "clicks_matched": self._clicks_matched,
                "purchases_recorded": self._purchases,
                "purchases_matched": self._purchases_matched,
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._reset_counters()


# Global singleton instance
metrics_service = MetricsService()
