"""Application settings.

Values come from ``BLENDREC_``-prefixed environment variables or a ``.env``
file in the working directory. Scoring weights are not settings; they live as
constants next to the scorer that uses them.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """BlendRec service settings.

    Every field can be set through a ``BLENDREC_``-prefixed environment
    variable, e.g. ``BLENDREC_REDIS_URL``.
    """

    app_name: str = "BlendRec API"
    log_level: LogLevel = "INFO"

    # Data
    data_dir: str = "data"
    recommendations_path: Optional[str] = None  # joblib snapshot, in-memory if unset

    # Cache
    redis_url: Optional[str] = None  # in-process cache if unset
    trending_cache_ttl: int = 3600

    # Recommendation defaults
    default_limit: int = 10
    similar_limit: int = 6
    isolate_scorer_failures: bool = False

    model_config = SettingsConfigDict(
        env_prefix="BLENDREC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance, cheap to call from request handlers."""
    return Settings()
