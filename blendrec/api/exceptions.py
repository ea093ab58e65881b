"""Custom exceptions for the BlendRec API.

Defines specific exception types for better error handling and reporting.
"""

from typing import Any, Dict, Optional


class BlendRecException(Exception):
    """Base exception for BlendRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class InvalidActorError(BlendRecException):
    """Raised when a request names both or neither of user_id and session_id."""

    def __init__(self, user_id: Optional[int], session_id: Optional[str]):
        super().__init__(
            message="Provide exactly one of user_id or session_id.",
            status_code=400,
            details={"user_id": user_id, "session_id": session_id},
        )


class DataNotFoundError(BlendRecException):
    """Raised when the catalog or interaction files cannot be found."""

    def __init__(self, data_dir: str, details: Optional[Dict[str, Any]] = None):
        message = f"Data not found in '{data_dir}'. Generate or import data first."
        super().__init__(
            message=message,
            status_code=503,
            details=details or {"data_dir": data_dir},
        )


class DataLoadError(BlendRecException):
    """Raised when data files exist but fail to load."""

    def __init__(self, data_dir: str, error: Exception):
        message = f"Failed to load data from '{data_dir}': {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "data_dir": data_dir,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class RecommendationError(BlendRecException):
    """Raised when recommendation generation fails."""

    def __init__(self, actor_key: str, error: Exception):
        message = f"Failed to generate recommendations for {actor_key}: {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "actor": actor_key,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
