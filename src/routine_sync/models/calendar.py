"""Calendar connection, event and sync result models."""

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from .workout_log import WorkoutLog


class SyncStatus(str, Enum):
    """Per-user calendar sync state."""

    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


@dataclass
class CalendarConnectionState:
    """What the user sees about their Google Calendar link."""

    is_connected: bool = False
    account_email: str | None = None
    is_token_expired: bool = False
    last_sync_at: datetime | None = None
    sync_status: SyncStatus = SyncStatus.IDLE
    error_message: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "is_connected": self.is_connected,
            "account_email": self.account_email,
            "is_token_expired": self.is_token_expired,
            "last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None,
            "sync_status": self.sync_status.value,
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CalendarConnectionState":
        """Create from dictionary."""
        last_sync_at = None
        if data.get("last_sync_at"):
            last_sync_at = datetime.fromisoformat(data["last_sync_at"])

        return cls(
            is_connected=bool(data.get("is_connected", False)),
            account_email=data.get("account_email"),
            is_token_expired=bool(data.get("is_token_expired", False)),
            last_sync_at=last_sync_at,
            sync_status=SyncStatus(data.get("sync_status", "idle")),
            error_message=data.get("error_message"),
        )


@dataclass
class SyncState:
    """Stored sync status row for one user."""

    user_id: str
    status: SyncStatus = SyncStatus.IDLE
    last_sync_at: datetime | None = None
    error_message: str | None = None


@dataclass
class CalendarToken:
    """Stored Google credential for one user.

    ``credentials`` is the JSON produced by ``Credentials.to_json()``.
    """

    user_id: str
    credentials: str
    account_email: str | None = None
    token_expiry: datetime | None = None
    token_expired: bool = False
    id: str | None = None

    @property
    def has_refresh_token(self) -> bool:
        try:
            return bool(json.loads(self.credentials).get("refresh_token"))
        except (ValueError, AttributeError):
            return False

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the credential can no longer be used.

        A passed access-token expiry only counts when there is no refresh
        token to renew it with.
        """
        if self.token_expired:
            return True
        if self.token_expiry is None or self.has_refresh_token:
            return False
        now = now or datetime.now(timezone.utc).replace(tzinfo=None)
        return self.token_expiry < now


@dataclass
class EventMapping:
    """Links a scheduled workout occurrence to a Google Calendar event."""

    user_id: str
    routine_id: str
    workout_id: str
    google_event_id: str
    event_date: date
    id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "routine_id": self.routine_id,
            "workout_id": self.workout_id,
            "google_event_id": self.google_event_id,
            "event_date": self.event_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict, id: str | None = None) -> "EventMapping":
        """Create from dictionary."""
        event_date = data["event_date"]
        if isinstance(event_date, str):
            event_date = date.fromisoformat(event_date)

        return cls(
            id=id if id is not None else data.get("id"),
            user_id=data["user_id"],
            routine_id=data["routine_id"],
            workout_id=data["workout_id"],
            google_event_id=data["google_event_id"],
            event_date=event_date,
        )


@dataclass
class EventDateTime:
    """Local wall-clock time plus an IANA zone, as Google expects it."""

    date_time: str  # "YYYY-MM-DDTHH:MM:SS" without offset
    time_zone: str

    def to_dict(self) -> dict:
        return {"dateTime": self.date_time, "timeZone": self.time_zone}


@dataclass
class Reminder:
    method: str = "popup"
    minutes: int = 30


@dataclass
class CalendarEvent:
    """A calendar event ready to be pushed to Google Calendar."""

    summary: str
    description: str
    start: EventDateTime
    end: EventDateTime
    color_id: str | None = None
    reminders: list[Reminder] = field(default_factory=lambda: [Reminder()])

    def to_api_body(self) -> dict:
        """Build the Calendar API v3 event resource."""
        body = {
            "summary": self.summary,
            "description": self.description,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": r.method, "minutes": r.minutes} for r in self.reminders
                ],
            },
        }
        if self.color_id is not None:
            body["colorId"] = self.color_id
        return body


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass
class SyncResult:
    """Outcome of a bulk create/delete/sync operation.

    Partial failure is reported through ``errors`` alongside the counts.
    """

    success: bool
    created_count: int = 0
    deleted_count: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "created_count": self.created_count,
            "deleted_count": self.deleted_count,
            "errors": list(self.errors),
        }


@dataclass
class CompletionSyncResult:
    """Outcome of pushing one workout's completion state to its event."""

    synced: bool
    event_id: str | None = None
    summary: str | None = None
    color_id: str | None = None
    error: str | None = None
    skipped_reason: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "synced": self.synced,
            "event_id": self.event_id,
            "summary": self.summary,
            "color_id": self.color_id,
            "error": self.error,
            "skipped_reason": self.skipped_reason,
        }


@dataclass
class ToggleResult:
    """Local log state after a toggle, plus the best-effort calendar outcome."""

    log: WorkoutLog
    sync: CompletionSyncResult | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "log": self.log.to_dict(),
            "sync": self.sync.to_dict() if self.sync else None,
        }
