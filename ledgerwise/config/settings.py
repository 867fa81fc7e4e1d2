"""
Configuration Management for Ledgerwise

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Rule thresholds, the evaluation cadence and the storage backend are
all visible in one place and validated at startup.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # One worksheet per table
    transactions_sheet_name: str = Field(default="Transactions")
    budgets_sheet_name: str = Field(default="Budgets")
    goals_sheet_name: str = Field(default="SavingsGoals")
    contributions_sheet_name: str = Field(default="GoalContributions")
    subscriptions_sheet_name: str = Field(default="Subscriptions")
    notifications_sheet_name: str = Field(default="Notifications")
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """A missing key file only warns; containers often mount it after import."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Sheets storage will fall back to memory until it is present."
            )
        return v


class NotificationSettings(BaseSettings):
    """Notification rule thresholds and evaluation cadence."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        extra="ignore"
    )

    evaluation_interval_seconds: int = Field(
        default=300,
        ge=10,
        description="Seconds between notification evaluation passes"
    )
    reminder_lookahead_days: int = Field(
        default=3,
        ge=0,
        description="Subscription reminders due within this many days are announced"
    )
    recurring_lookahead_days: int = Field(
        default=3,
        ge=0,
        description="Recurring expenses due within this many days are announced"
    )
    budget_warning_percent: float = Field(
        default=80.0,
        gt=0.0,
        le=100.0,
        description="Share of a budget spent before an 'approaching' warning"
    )
    goal_risk_window_days: int = Field(
        default=30,
        ge=1,
        description="A goal whose deadline is this close may be flagged at risk"
    )
    goal_risk_max_percent: float = Field(
        default=80.0,
        gt=0.0,
        le=100.0,
        description="Goals below this completion inside the risk window are at risk"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Log full error details instead of sanitized summaries"
    )
    default_period: str = Field(
        default="month",
        pattern="^(week|month|semester|year)$",
        description="Reporting period shown when none is selected"
    )

    @property
    def is_production(self) -> bool:
        return self.app_environment.lower() == "production"


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def notifications(self) -> NotificationSettings:
        return NotificationSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus an
    ``<name>_error`` entry for each section that failed to load.
    """
    results = {}
    settings = get_settings()

    for name in ("google_sheets", "notifications", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
