"""Data access layer for routine-sync."""

import json
import uuid
from datetime import date, datetime
from pathlib import Path

import aiosqlite

from ..models.calendar import CalendarToken, EventMapping, SyncState, SyncStatus
from ..models.routine import Routine, RoutineSettings, Workout
from ..models.workout_log import WorkoutLog
from .cache import ActiveRoutineCache
from .engine import get_db_path


def _new_id() -> str:
    return str(uuid.uuid4())


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


class RoutineRepository:
    """Repository for routines.

    Owns the active-routine cache; every mutating method invalidates the
    owning user's entry.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        cache: ActiveRoutineCache | None = None,
    ):
        self.db_path = db_path or get_db_path()
        self.cache = cache if cache is not None else ActiveRoutineCache()

    async def create(self, routine: Routine) -> str:
        """Create a new routine and return its id."""
        now = datetime.now()
        routine.id = routine.id or _new_id()
        routine.created_at = routine.created_at or now
        routine.updated_at = routine.updated_at or routine.created_at

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO routines
                (id, user_id, name, settings, workouts, is_active,
                 created_at, updated_at, activated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    routine.id,
                    routine.user_id,
                    routine.name,
                    json.dumps(routine.settings.to_dict()),
                    json.dumps([w.to_dict() for w in routine.workouts], ensure_ascii=False),
                    int(routine.is_active),
                    routine.created_at.isoformat(),
                    routine.updated_at.isoformat(),
                    routine.activated_at.isoformat() if routine.activated_at else None,
                ),
            )
            await db.commit()
        self.cache.invalidate(routine.user_id)
        return routine.id

    async def get(self, routine_id: str) -> Routine | None:
        """Get a routine by ID."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM routines WHERE id = ?", (routine_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_routine(row)

    async def list_by_user(self, user_id: str) -> list[Routine]:
        """List a user's routines, newest first."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM routines WHERE user_id = ? ORDER BY created_at DESC",
                (user_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_routine(row) for row in rows]

    async def list_active(self, user_id: str) -> list[Routine]:
        """All routines currently flagged active for a user."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM routines WHERE user_id = ? AND is_active = 1",
                (user_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_routine(row) for row in rows]

    async def get_active(self, user_id: str) -> Routine | None:
        """Get the user's active routine, served from cache when fresh."""
        hit, routine = self.cache.get(user_id)
        if hit:
            return routine

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT * FROM routines WHERE user_id = ? AND is_active = 1
                ORDER BY activated_at DESC LIMIT 1
                """,
                (user_id,),
            )
            row = await cursor.fetchone()
        routine = self._row_to_routine(row) if row else None
        self.cache.set(user_id, routine)
        return routine

    async def update(self, routine: Routine) -> None:
        """Update name, settings and workouts of an existing routine."""
        if routine.id is None:
            raise ValueError("Routine must have an ID to update")

        routine.updated_at = datetime.now()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                UPDATE routines SET
                    name = ?, settings = ?, workouts = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    routine.name,
                    json.dumps(routine.settings.to_dict()),
                    json.dumps([w.to_dict() for w in routine.workouts], ensure_ascii=False),
                    routine.updated_at.isoformat(),
                    routine.id,
                ),
            )
            await db.commit()
        self.cache.invalidate(routine.user_id)

    async def set_active(self, user_id: str, routine_id: str) -> None:
        """Activate one routine and deactivate every other routine of the user."""
        now = datetime.now().isoformat()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE routines SET is_active = 0, updated_at = ? WHERE user_id = ? AND is_active = 1",
                (now, user_id),
            )
            await db.execute(
                """
                UPDATE routines SET is_active = 1, activated_at = ?, updated_at = ?
                WHERE id = ? AND user_id = ?
                """,
                (now, now, routine_id, user_id),
            )
            await db.commit()
        self.cache.invalidate(user_id)

    async def deactivate(self, user_id: str, routine_id: str) -> None:
        """Clear the active flag of one routine."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE routines SET is_active = 0, updated_at = ? WHERE id = ?",
                (datetime.now().isoformat(), routine_id),
            )
            await db.commit()
        self.cache.invalidate(user_id)

    async def delete(self, user_id: str, routine_id: str) -> None:
        """Delete a routine."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("DELETE FROM routines WHERE id = ?", (routine_id,))
            await db.commit()
        self.cache.invalidate(user_id)

    def _row_to_routine(self, row: aiosqlite.Row) -> Routine:
        """Convert a database row to a Routine."""
        return Routine(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            settings=RoutineSettings.from_dict(json.loads(row["settings"])),
            workouts=[Workout.from_dict(w) for w in json.loads(row["workouts"])],
            is_active=bool(row["is_active"]),
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
            activated_at=_parse_datetime(row["activated_at"]),
        )


class WorkoutLogRepository:
    """Repository for per-date workout completion logs."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def get(
        self, user_id: str, routine_id: str, workout_id: str, log_date: date
    ) -> WorkoutLog | None:
        """Get the log for one (user, routine, workout, date)."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT * FROM workout_logs
                WHERE user_id = ? AND routine_id = ? AND workout_id = ? AND date = ?
                """,
                (user_id, routine_id, workout_id, log_date.isoformat()),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_log(row)

    async def upsert(self, log: WorkoutLog) -> WorkoutLog:
        """Insert or replace the log for its (user, routine, workout, date)."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO workout_logs
                (id, user_id, routine_id, workout_id, date, completed_exercises, is_completed)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, routine_id, workout_id, date) DO UPDATE SET
                    completed_exercises = excluded.completed_exercises,
                    is_completed = excluded.is_completed,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    log.id or _new_id(),
                    log.user_id,
                    log.routine_id,
                    log.workout_id,
                    log.date.isoformat(),
                    json.dumps(sorted(log.completed_exercises)),
                    int(log.is_completed),
                ),
            )
            await db.commit()

        stored = await self.get(log.user_id, log.routine_id, log.workout_id, log.date)
        if stored is None:
            raise RuntimeError("Workout log vanished after upsert")
        return stored

    async def list_for_date(self, user_id: str, log_date: date) -> list[WorkoutLog]:
        """All logs of a user on one date."""
        return await self.list_in_range(user_id, log_date, log_date)

    async def list_in_range(
        self, user_id: str, start: date, end: date
    ) -> list[WorkoutLog]:
        """Logs of a user between start and end inclusive, ordered by date."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT * FROM workout_logs
                WHERE user_id = ? AND date >= ? AND date <= ?
                ORDER BY date ASC
                """,
                (user_id, start.isoformat(), end.isoformat()),
            )
            rows = await cursor.fetchall()
            return [self._row_to_log(row) for row in rows]

    async def delete_by_routine(self, routine_id: str) -> int:
        """Delete every log of a routine. Returns the number deleted."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM workout_logs WHERE routine_id = ?", (routine_id,)
            )
            await db.commit()
            return cursor.rowcount

    def _row_to_log(self, row: aiosqlite.Row) -> WorkoutLog:
        """Convert a database row to a WorkoutLog."""
        return WorkoutLog(
            id=row["id"],
            user_id=row["user_id"],
            routine_id=row["routine_id"],
            workout_id=row["workout_id"],
            date=date.fromisoformat(row["date"]),
            completed_exercises=set(json.loads(row["completed_exercises"])),
            is_completed=bool(row["is_completed"]),
        )


class EventMappingRepository:
    """Repository for workout occurrence to Google event mappings."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def upsert(self, mapping: EventMapping) -> None:
        """Insert, or repoint an existing (workout_id, event_date) mapping."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO calendar_event_mappings
                (id, user_id, routine_id, workout_id, google_event_id, event_date)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (workout_id, event_date) DO UPDATE SET
                    user_id = excluded.user_id,
                    routine_id = excluded.routine_id,
                    google_event_id = excluded.google_event_id
                """,
                (
                    mapping.id or _new_id(),
                    mapping.user_id,
                    mapping.routine_id,
                    mapping.workout_id,
                    mapping.google_event_id,
                    mapping.event_date.isoformat(),
                ),
            )
            await db.commit()

    async def get(
        self, user_id: str, routine_id: str, workout_id: str, event_date: date
    ) -> EventMapping | None:
        """Look up the mapping for one scheduled occurrence."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT * FROM calendar_event_mappings
                WHERE user_id = ? AND routine_id = ? AND workout_id = ? AND event_date = ?
                """,
                (user_id, routine_id, workout_id, event_date.isoformat()),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_mapping(row)

    async def get_by_event_id(
        self, user_id: str, google_event_id: str
    ) -> EventMapping | None:
        """Look up a mapping by its remote event id, scoped to the owner."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT * FROM calendar_event_mappings
                WHERE user_id = ? AND google_event_id = ?
                """,
                (user_id, google_event_id),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_mapping(row)

    async def list_by_routine(self, user_id: str, routine_id: str) -> list[EventMapping]:
        """All mappings of one routine, ordered by date."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                """
                SELECT * FROM calendar_event_mappings
                WHERE user_id = ? AND routine_id = ?
                ORDER BY event_date ASC
                """,
                (user_id, routine_id),
            )
            rows = await cursor.fetchall()
            return [self._row_to_mapping(row) for row in rows]

    async def list_by_user(self, user_id: str) -> list[EventMapping]:
        """All mappings of a user."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM calendar_event_mappings WHERE user_id = ? ORDER BY event_date ASC",
                (user_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_mapping(row) for row in rows]

    async def delete_by_routine(self, user_id: str, routine_id: str) -> int:
        """Delete all mappings of a routine. Returns the number deleted."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM calendar_event_mappings WHERE user_id = ? AND routine_id = ?",
                (user_id, routine_id),
            )
            await db.commit()
            return cursor.rowcount

    async def delete_many(self, mapping_ids: list[str]) -> int:
        """Delete mappings by id. Returns the number deleted."""
        if not mapping_ids:
            return 0
        placeholders = ", ".join("?" for _ in mapping_ids)
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                f"DELETE FROM calendar_event_mappings WHERE id IN ({placeholders})",
                tuple(mapping_ids),
            )
            await db.commit()
            return cursor.rowcount

    async def delete_by_user(self, user_id: str) -> int:
        """Delete all mappings of a user. Returns the number deleted."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM calendar_event_mappings WHERE user_id = ?", (user_id,)
            )
            await db.commit()
            return cursor.rowcount

    def _row_to_mapping(self, row: aiosqlite.Row) -> EventMapping:
        """Convert a database row to an EventMapping."""
        return EventMapping(
            id=row["id"],
            user_id=row["user_id"],
            routine_id=row["routine_id"],
            workout_id=row["workout_id"],
            google_event_id=row["google_event_id"],
            event_date=date.fromisoformat(row["event_date"]),
        )


class SyncStatusRepository:
    """Repository for the per-user sync state machine."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def get(self, user_id: str) -> SyncState | None:
        """Get the stored sync state of a user."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM calendar_sync_status WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return SyncState(
                user_id=row["user_id"],
                status=SyncStatus(row["status"]),
                last_sync_at=_parse_datetime(row["last_sync_at"]),
                error_message=row["error_message"],
            )

    async def upsert(self, state: SyncState) -> None:
        """Create or replace the user's sync state."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO calendar_sync_status (user_id, status, last_sync_at, error_message)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (user_id) DO UPDATE SET
                    status = excluded.status,
                    last_sync_at = excluded.last_sync_at,
                    error_message = excluded.error_message
                """,
                (
                    state.user_id,
                    state.status.value,
                    state.last_sync_at.isoformat() if state.last_sync_at else None,
                    state.error_message,
                ),
            )
            await db.commit()

    async def delete(self, user_id: str) -> None:
        """Delete the user's sync state."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "DELETE FROM calendar_sync_status WHERE user_id = ?", (user_id,)
            )
            await db.commit()


class CalendarTokenRepository:
    """Repository for stored Google credentials."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def get(self, user_id: str) -> CalendarToken | None:
        """Get the stored credential of a user."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM calendar_tokens WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return CalendarToken(
                id=row["id"],
                user_id=row["user_id"],
                credentials=row["credentials"],
                account_email=row["account_email"],
                token_expiry=_parse_datetime(row["token_expiry"]),
                token_expired=bool(row["token_expired"]),
            )

    async def upsert(self, token: CalendarToken) -> None:
        """Store or replace the user's credential."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO calendar_tokens
                (id, user_id, credentials, account_email, token_expiry, token_expired)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id) DO UPDATE SET
                    credentials = excluded.credentials,
                    account_email = COALESCE(excluded.account_email, calendar_tokens.account_email),
                    token_expiry = excluded.token_expiry,
                    token_expired = excluded.token_expired,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    token.id or _new_id(),
                    token.user_id,
                    token.credentials,
                    token.account_email,
                    token.token_expiry.isoformat() if token.token_expiry else None,
                    int(token.token_expired),
                ),
            )
            await db.commit()

    async def mark_expired(self, user_id: str) -> None:
        """Flag the stored credential as no longer usable."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE calendar_tokens SET token_expired = 1 WHERE user_id = ?",
                (user_id,),
            )
            await db.commit()

    async def delete(self, user_id: str) -> None:
        """Delete the user's credential."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("DELETE FROM calendar_tokens WHERE user_id = ?", (user_id,))
            await db.commit()
