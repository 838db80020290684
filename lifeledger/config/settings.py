"""
Configuration Management for Life Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The reconciliation core reads two user preferences (external sync on/off and
the selected calendar IDs) and never writes them back.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets record store configuration."""

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

    # One worksheet per record collection
    events_sheet_name: str = Field(
        default="events",
        description="Worksheet holding ceremony/schedule/todo rows"
    )
    ledger_sheet_name: str = Field(
        default="ledger",
        description="Worksheet holding ledger rows"
    )
    bank_sheet_name: str = Field(
        default="bank_transactions",
        description="Worksheet holding bank transaction rows"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class CalendarSyncSettings(BaseSettings):
    """
    External calendar sync preferences.

    These mirror the two device preferences the calendar screen reads:
    whether external sync is on, and which calendars are selected.
    """

    model_config = SettingsConfigDict(
        env_prefix="CALENDAR_SYNC_",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Merge the external calendar feed into the day view"
    )
    selected_calendar_ids: str = Field(
        default="",
        description="Comma-separated calendar IDs (empty = all calendars)"
    )
    window_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="Read window in months on each side of today"
    )
    dedup_tolerance_days: int = Field(
        default=1,
        ge=0,
        le=7,
        description="Date tolerance used when matching external entries"
    )

    @property
    def selected_calendar_ids_list(self) -> Optional[list[str]]:
        """Selected IDs as a list, or None when every calendar is selected."""
        ids = [i.strip() for i in self.selected_calendar_ids.split(",") if i.strip()]
        return ids or None


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
        description="Enable debug mode"
    )
    default_user_id: Optional[str] = Field(
        default=None,
        description="User ID used by local tooling when no session is present"
    )


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

    # Loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def calendar_sync(self) -> CalendarSyncSettings:
        return CalendarSyncSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.calendar_sync
        results["calendar_sync"] = True
    except Exception as e:
        results["calendar_sync"] = False
        results["calendar_sync_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
