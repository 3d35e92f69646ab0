"""
Application configuration models and helpers.

Centralizes settings management so the scheduled report job, its scripts and
its tests share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import os

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()

_SETTINGS_CONFIG = SettingsConfigDict(populate_by_name=True, extra="ignore")


class ScheduleSettings(BaseSettings):
    """Business window and pacing for repeated invocations."""

    model_config = _SETTINGS_CONFIG

    timezone: str = Field(
        "America/Los_Angeles",
        validation_alias="REPORT_TIMEZONE",
        description="Reference zone used for the business day and window hours.",
    )
    window_start_hour: int = Field(6, ge=0, le=23, validation_alias="WINDOW_START_HOUR")
    window_end_hour: int = Field(18, ge=1, le=23, validation_alias="WINDOW_END_HOUR")
    min_gap_minutes: float = Field(10, ge=0, validation_alias="MIN_RUN_GAP_MINUTES")

    @field_validator("timezone")
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone {value!r}") from exc
        return value

    @model_validator(mode="after")
    def _window_is_ordered(self) -> "ScheduleSettings":
        if self.window_start_hour >= self.window_end_hour:
            raise ValueError("WINDOW_START_HOUR must be earlier than WINDOW_END_HOUR")
        return self

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class StorageSettings(BaseSettings):
    """Locations of the run-state database, lock marker and downloads."""

    model_config = _SETTINGS_CONFIG

    state_db_path: str = Field("state/run_state.sqlite3", validation_alias="STATE_DB_PATH")
    lock_path: str = Field("state/merge_and_mail.lock", validation_alias="LOCK_PATH")
    download_dir: str = Field("downloads", validation_alias="DOWNLOAD_DIR")


class SourceSettings(BaseSettings):
    """Where the daily report file is fetched from."""

    model_config = _SETTINGS_CONFIG

    kind: Literal["local", "drive"] = Field("local", validation_alias="REPORT_SOURCE")
    inbox_dir: str = Field(
        "inbox",
        validation_alias="REPORT_INBOX_DIR",
        description="Drop directory scanned when REPORT_SOURCE=local.",
    )
    name_date_format: str = Field(
        "%Y_%m-%d",
        validation_alias="REPORT_NAME_DATE_FORMAT",
        description="strftime pattern the exporter embeds in daily file names.",
    )
    drive_folder_id: Optional[str] = Field(None, validation_alias="GOOGLE_DRIVE_FOLDER_ID")
    service_account_file: Optional[str] = Field(
        None,
        validation_alias="GOOGLE_SERVICE_ACCOUNT_FILE",
        description="Service account key used when REPORT_SOURCE=drive.",
    )


class NotifierSettings(BaseSettings):
    """Email delivery through the Resend API."""

    model_config = _SETTINGS_CONFIG

    api_key: str = Field(..., validation_alias="RESEND_API_KEY")
    api_url: str = Field("https://api.resend.com/emails", validation_alias="RESEND_API_URL")
    from_address: str = Field(..., validation_alias="NOTIFY_FROM_ADDRESS")
    operator_recipients: Annotated[tuple[str, ...], NoDecode] = Field(
        ...,
        validation_alias="OPERATOR_EMAILS",
        description="Audience for the daily start and end notifications.",
    )
    timeout_seconds: float = Field(20.0, gt=0, validation_alias="NOTIFY_TIMEOUT_SECONDS")
    signature: str = Field("HIW Marketing LLC Team", validation_alias="REPORT_SIGNATURE")

    @field_validator("operator_recipients", mode="before")
    def _split_recipients(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing recipients as a comma-separated string."""
        if isinstance(value, str):
            value = value.split(",")
        recipients = tuple(item.strip() for item in value if item and item.strip())
        if not recipients:
            raise ValueError("At least one operator email is required")
        return recipients


class AppSettings(BaseSettings):
    """Root settings object for the report job."""

    model_config = SettingsConfigDict(
        populate_by_name=True,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    log_dir: Optional[str] = Field(
        "logs",
        validation_alias="LOG_DIR",
        description="Directory for per-day log files. Empty disables file logging.",
    )
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    source: SourceSettings = Field(default_factory=SourceSettings)
    notifier: NotifierSettings = Field(default_factory=NotifierSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "NotifierSettings",
    "ScheduleSettings",
    "SourceSettings",
    "StorageSettings",
    "get_settings",
]
