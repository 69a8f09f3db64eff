"""
Settings for Family Budget

Everything configurable is read here with pydantic-settings, from the
environment or a local .env file. Each concern gets its own prefix:

    GOOGLE_SHEETS_*   remote record store (spreadsheet and worksheet names)
    LEDGER_*          local cache and ledger behaviour
    (no prefix)       environment, debug flag, log level, storage choice

Sub-settings are built on first access so a household running purely
in memory never needs Google credentials.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Spreadsheet holding movements, profiles, families and the activity log."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    credentials_path: str = Field(
        ...,
        description="Service account JSON used to open the family spreadsheet"
    )
    spreadsheet_id: str = Field(
        ...,
        min_length=1,
        description="Key of the family spreadsheet (from its URL)"
    )

    movements_sheet_name: str = Field(
        default="Movements",
        description="Worksheet with one row per income/expense/goal/allowance"
    )
    activity_sheet_name: str = Field(
        default="ActivityLog",
        description="Worksheet with the family activity log"
    )
    profiles_sheet_name: str = Field(
        default="Profiles",
        description="Worksheet with user profiles"
    )
    families_sheet_name: str = Field(
        default="Families",
        description="Worksheet with families and their join codes"
    )

    @field_validator('credentials_path')
    @classmethod
    def credentials_file_present(cls, v: str) -> str:
        """Only warn: the file may be mounted after the settings are read."""
        if not Path(v).is_file():
            import warnings
            warnings.warn(
                f"No service account file at {v}; "
                "Google Sheets calls will fail until it is in place."
            )
        return v

    @field_validator(
        'movements_sheet_name',
        'activity_sheet_name',
        'profiles_sheet_name',
        'families_sheet_name',
    )
    @classmethod
    def sheet_name_not_blank(cls, v: str) -> str:
        name = v.strip()
        if not name:
            raise ValueError("Worksheet names cannot be blank")
        return name


class LedgerSettings(BaseSettings):
    """Local cache and ledger limits."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    use_local_cache: bool = Field(
        default=False,
        description="Persist the month set to a local JSON file after every change"
    )
    cache_path: str = Field(
        default="data/ledger_cache.json",
        description="Where the local cache file lives"
    )
    activity_log_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="How many activity entries to show by default"
    )
    family_code_length: int = Field(
        default=6,
        ge=4,
        le=12,
        description="Length of generated family join codes"
    )


class AppSettings(BaseSettings):
    """Process-wide switches."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_environment: str = Field(
        default="development",
        description="development / staging / production"
    )
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG regardless of LOG_LEVEL"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    use_remote_storage: bool = Field(
        default=True,
        description="Use Google Sheets; False keeps everything in memory"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings:
    """
    Entry point to every settings group.

    Each property re-reads its group, so environment changes made after
    startup (tests do this) are picked up.
    """

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """Shared Settings instance. ``get_settings.cache_clear()`` resets it."""
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Check which settings groups load.

    Returns {group: ok} plus a {group}_error message for each failing
    group. The storage fallback in the composition root relies on
    google_sheets failing cleanly when unconfigured.
    """
    settings = get_settings()
    report: dict[str, bool] = {}

    for group in ("google_sheets", "ledger", "app"):
        try:
            getattr(settings, group)
        except Exception as e:
            report[group] = False
            report[f"{group}_error"] = str(e)
        else:
            report[group] = True

    return report
