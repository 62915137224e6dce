"""
Retail Reporting Query Set
Centralized Configuration Management

Pydantic settings for the store connection, report parameters and logging,
with environment variable support and validation.
"""

from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store configuration"""

    model_config = SettingsConfigDict(env_prefix="RETAIL_DB_")

    url: str = Field(
        default="sqlite+aiosqlite:///./retail.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(default=False, description="Echo SQL queries")


class ReportingSettings(BaseSettings):
    """Parameters of the analytical queries"""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    # Spend segmentation (currency units, compared in cents)
    high_spender_threshold: float = Field(default=1000.0, description="Totals above this are High-Spender")
    mid_spender_threshold: float = Field(default=500.0, description="Totals at or above this are Mid-Spender")

    top_products_limit: int = Field(default=3, ge=1, description="Products kept per customer")
    frequent_customer_min_transactions: int = Field(
        default=5, ge=0, description="Customers need more than this many transactions"
    )
    churn_months: int = Field(default=6, ge=0, description="Trailing window for churn, in months")

    # Fraud heuristic
    high_frequency_min_transactions: int = Field(default=10, ge=0, description="Transaction count floor (exclusive)")
    high_frequency_window_hours: float = Field(default=24.0, gt=0, description="Max first-to-last span")

    # Outliers
    outlier_z_threshold: float = Field(default=3.0, gt=0, description="Standard deviations from the mean")
    outlier_ddof: int = Field(default=0, description="0 = population, 1 = sample standard deviation")

    @field_validator("outlier_ddof")
    @classmethod
    def validate_ddof(cls, v: int) -> int:
        """Only population or sample conventions are supported"""
        if v not in (0, 1):
            raise ValueError("outlier_ddof must be 0 (population) or 1 (sample)")
        return v

    @field_validator("mid_spender_threshold", "high_spender_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Spend thresholds must be non-negative")
        return v


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(default="retail-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
