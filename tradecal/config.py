"""
TradeCal Configuration.

Pydantic Settings v2 — loads from .env, environment variables.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ── Application ──────────────────────────────────────────────────────
    app_name: str = "TradeCal"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite+aiosqlite:///./tradecal.db",
        alias="DATABASE_URL",
    )
    db_pool_size: int = Field(default=5, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, alias="DB_MAX_OVERFLOW")
    db_pool_recycle: int = Field(default=3600, alias="DB_POOL_RECYCLE")
    db_echo: bool = Field(default=False, alias="DB_ECHO")

    # ── Calibration ──────────────────────────────────────────────────────
    calibration_min_samples: int = Field(default=10, alias="CALIBRATION_MIN_SAMPLES")
    calibration_window_days: int = Field(default=60, alias="CALIBRATION_WINDOW_DAYS")
    calibration_bucket_count: int = Field(default=10, alias="CALIBRATION_BUCKET_COUNT")
    high_confidence_threshold: float = Field(
        default=0.7, alias="HIGH_CONFIDENCE_THRESHOLD",
        description="Raw-score split between high and low confidence win rates",
    )

    # ── Health / staleness ───────────────────────────────────────────────
    stale_max_age_days: int = Field(default=7, alias="STALE_MAX_AGE_DAYS")
    health_correlation_critical: float = Field(default=0.1, alias="HEALTH_CORRELATION_CRITICAL")
    health_correlation_warning: float = Field(default=0.2, alias="HEALTH_CORRELATION_WARNING")
    health_age_warning_days: int = Field(default=7, alias="HEALTH_AGE_WARNING_DAYS")
    health_age_critical_days: int = Field(default=14, alias="HEALTH_AGE_CRITICAL_DAYS")

    # ── Validation ───────────────────────────────────────────────────────
    validation_min_correlation_gain: float = Field(
        default=0.10, alias="VALIDATION_MIN_CORRELATION_GAIN",
    )

    default_markets: List[str] = Field(default=["BTC", "ETH"], alias="DEFAULT_MARKETS")

    # ── Operational ──────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="console", alias="LOG_FORMAT")

    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses an async driver."""
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite://"):
            url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url


settings = Settings()
