"""Configuration for scheduling and calendar sync."""

import os
from dataclasses import dataclass, replace
from datetime import date, datetime
from pathlib import Path

import pytz

# Default data directory (database, OAuth client secrets)
DATA_DIR = Path(__file__).parent.parent.parent / "data"
DATA_DIR_ENV = "ROUTINE_SYNC_DATA_DIR"

DEFAULT_TIME_ZONE = "Asia/Seoul"
DEFAULT_START_TIME = "09:00"
CLIENT_SECRETS_FILENAME = "credentials.json"

# Google Calendar scopes requested during the OAuth flow
SCOPES = ["https://www.googleapis.com/auth/calendar"]


@dataclass(frozen=True)
class SyncSettings:
    """Settings for turning scheduled workouts into calendar events.

    Time zone and start time are explicit parameters rather than process-wide
    environment so that several users can be synced with different settings.
    """

    time_zone: str = DEFAULT_TIME_ZONE
    default_start_time: str = DEFAULT_START_TIME
    duration_minutes: int | None = None
    calendar_id: str = "primary"

    def __post_init__(self):
        # Fail fast on unknown zones and malformed HH:MM
        pytz.timezone(self.time_zone)
        datetime.strptime(self.default_start_time, "%H:%M")

    def with_overrides(self, **changes) -> "SyncSettings":
        """Return a copy with the non-None keyword arguments applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def today(self) -> date:
        """Current date in the configured time zone."""
        return datetime.now(pytz.timezone(self.time_zone)).date()


def get_data_dir(data_dir: Path | None = None) -> Path:
    """Get (and create) the data directory.

    Falls back to ``$ROUTINE_SYNC_DATA_DIR``, then to ``DATA_DIR``.
    """
    if data_dir is None:
        env_dir = os.environ.get(DATA_DIR_ENV)
        data_dir = Path(env_dir) if env_dir else DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_client_secrets_path(data_dir: Path | None = None) -> Path:
    """Path of the Google OAuth client secrets file."""
    return get_data_dir(data_dir) / CLIENT_SECRETS_FILENAME
