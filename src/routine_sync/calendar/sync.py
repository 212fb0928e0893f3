"""Calendar sync engine.

Local state is the source of truth and Google Calendar is a best-effort
mirror. No method here raises for a remote failure. Every client call goes through
``_contain``, so any failure reaches the engine as a ``CalendarError`` and is
logged and returned inside a ``SyncResult`` or ``CompletionSyncResult``.

Each user has a sync status (idle, syncing, error) that moves to syncing when
a sync starts and to idle or error when it ends. Users without a stored token
are always idle.
"""

import logging
from collections.abc import Awaitable
from datetime import date, datetime
from pathlib import Path
from typing import TypeVar

from ..config import SyncSettings
from ..db.repositories import (
    CalendarTokenRepository,
    EventMappingRepository,
    SyncStatusRepository,
)
from ..errors import (
    CalendarAPIError,
    CalendarAuthError,
    CalendarError,
    CalendarNotConnectedError,
    EventValidationError,
    WorkoutDataError,
)
from ..models.calendar import (
    CalendarConnectionState,
    CalendarToken,
    CompletionSyncResult,
    EventMapping,
    SyncResult,
    SyncState,
    SyncStatus,
)
from ..models.routine import Routine
from ..scheduling.projector import project_schedule, routine_window
from .client import (
    CalendarAuthProvider,
    CalendarClient,
    ClientFactory,
    GoogleClientFactory,
)
from .transform import (
    COMPLETED_COLOR_ID,
    EventOptions,
    add_completion_marker,
    ensure_valid_event,
    ensure_valid_workout,
    remove_completion_marker,
    workout_to_calendar_event,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Reasons a completion sync was skipped without error
SKIP_NOT_CONNECTED = "not_connected"
SKIP_TOKEN_EXPIRED = "token_expired"
SKIP_NO_MAPPING = "no_event_mapping"


async def _contain(action: str, call: Awaitable[T]) -> T:
    """Await a remote call, re-raising anything unexpected as CalendarAPIError."""
    try:
        return await call
    except CalendarError:
        raise
    except Exception as e:
        logger.exception("Unexpected error while trying to %s", action)
        raise CalendarAPIError(f"Failed to {action}: {e}") from e


class CalendarSyncEngine:
    """Mirrors routines and workout completion onto Google Calendar."""

    def __init__(
        self,
        db_path: Path | None = None,
        auth_provider: CalendarAuthProvider | None = None,
        client_factory: ClientFactory | None = None,
        settings: SyncSettings | None = None,
    ):
        self.settings = settings or SyncSettings()
        self.mappings = EventMappingRepository(db_path)
        self.sync_states = SyncStatusRepository(db_path)
        self.tokens = CalendarTokenRepository(db_path)
        self.auth_provider = auth_provider
        self.client_factory = client_factory or GoogleClientFactory(
            self.tokens, self.settings.calendar_id
        )

    # Connection management

    def get_auth_url(self, redirect_uri: str, state: str | None = None) -> str:
        """URL of the Google consent screen."""
        return self._require_auth_provider().get_auth_url(redirect_uri, state)

    async def connect(
        self, user_id: str, code: str, redirect_uri: str
    ) -> CalendarConnectionState:
        """Exchange an OAuth code and store the resulting credential.

        Raises:
            CalendarAuthError: If the code is rejected
        """
        account = await self._require_auth_provider().exchange_code_for_tokens(
            code, redirect_uri
        )
        await self.tokens.upsert(
            CalendarToken(
                user_id=user_id,
                credentials=account.credentials,
                account_email=account.account_email,
                token_expiry=account.token_expiry,
            )
        )
        await self.sync_states.upsert(SyncState(user_id=user_id, status=SyncStatus.IDLE))
        logger.info("Connected Google Calendar for user %s (%s)", user_id, account.account_email)
        return await self.get_connection_status(user_id)

    async def get_connection_status(self, user_id: str) -> CalendarConnectionState:
        """Current connection and sync state of a user."""
        token = await self.tokens.get(user_id)
        if token is None:
            return CalendarConnectionState()

        state = await self.sync_states.get(user_id)
        return CalendarConnectionState(
            is_connected=True,
            account_email=token.account_email,
            is_token_expired=token.is_expired(),
            last_sync_at=state.last_sync_at if state else None,
            sync_status=state.status if state else SyncStatus.IDLE,
            error_message=state.error_message if state else None,
        )

    async def disconnect(self, user_id: str) -> None:
        """Revoke the credential and forget all calendar state of the user.

        Revocation at Google is best-effort; local mappings, sync status and
        the stored token are always removed. Remote events are left in place.
        """
        token = await self.tokens.get(user_id)
        if token is not None and self.auth_provider is not None:
            try:
                await _contain("revoke token", self.auth_provider.revoke(token))
            except CalendarError as e:
                logger.warning("Token revocation failed for user %s: %s", user_id, e)

        await self.mappings.delete_by_user(user_id)
        await self.sync_states.delete(user_id)
        await self.tokens.delete(user_id)
        logger.info("Disconnected Google Calendar for user %s", user_id)

    async def is_connected(self, user_id: str) -> bool:
        return await self.tokens.get(user_id) is not None

    # Routine level sync

    async def create_events_for_routine(
        self,
        user_id: str,
        routine: Routine,
        start_date: date | None = None,
        settings: SyncSettings | None = None,
    ) -> SyncResult:
        """Push one event per scheduled workout in the routine's window."""
        await self._begin(user_id)
        try:
            client = await self._client(user_id)
        except CalendarError as e:
            return await self._abort(user_id, "create events", e)

        result = await self._create_events(client, user_id, routine, start_date, settings)
        await self._finish(user_id, result.errors)
        return result

    async def delete_events_for_routine(self, user_id: str, routine_id: str) -> SyncResult:
        """Delete every mapped event of a routine, then its mappings."""
        mappings = await self.mappings.list_by_routine(user_id, routine_id)
        if not mappings:
            return SyncResult(success=True)

        await self._begin(user_id)
        try:
            client = await self._client(user_id)
        except CalendarError as e:
            return await self._abort(user_id, "delete events", e)

        result = await self._delete_events(client, mappings)
        await self._finish(user_id, result.errors)
        return result

    async def sync_routine(
        self,
        user_id: str,
        routine: Routine,
        start_date: date | None = None,
        settings: SyncSettings | None = None,
    ) -> SyncResult:
        """Replace all of a routine's events: delete existing, then recreate."""
        if not routine.is_active:
            return SyncResult(success=False, errors=["Routine is not active"])
        if not routine.workouts:
            return SyncResult(success=False, errors=["No workouts found for routine"])

        await self._begin(user_id)
        try:
            client = await self._client(user_id)
        except CalendarError as e:
            return await self._abort(user_id, "sync routine", e)

        mappings = await self.mappings.list_by_routine(user_id, routine.id)
        deleted = await self._delete_events(client, mappings)
        created = await self._create_events(client, user_id, routine, start_date, settings)

        result = SyncResult(
            success=deleted.success and created.success,
            created_count=created.created_count,
            deleted_count=deleted.deleted_count,
            errors=deleted.errors + created.errors,
        )
        await self._finish(user_id, result.errors)
        logger.info(
            "Synced routine %s: %d deleted, %d created, %d errors",
            routine.id,
            result.deleted_count,
            result.created_count,
            len(result.errors),
        )
        return result

    async def sync_all_routines(
        self,
        user_id: str,
        routines: list[Routine],
        start_date: date | None = None,
    ) -> SyncResult:
        """Sync every active routine in ``routines``."""
        total = SyncResult(success=True)
        for routine in routines:
            if not routine.is_active:
                continue
            result = await self.sync_routine(user_id, routine, start_date)
            total.created_count += result.created_count
            total.deleted_count += result.deleted_count
            total.errors.extend(result.errors)
            total.success = total.success and result.success
        return total

    # Completion sync

    async def mark_event_completed(self, user_id: str, event_id: str) -> CompletionSyncResult:
        """Prefix the event title with the completion marker and color it green."""
        return await self._mark_event(user_id, event_id, completed=True)

    async def mark_event_incomplete(self, user_id: str, event_id: str) -> CompletionSyncResult:
        """Strip the completion marker and reset the event color."""
        return await self._mark_event(user_id, event_id, completed=False)

    async def sync_completion_status(
        self,
        user_id: str,
        routine_id: str,
        workout_id: str,
        workout_date: date,
        is_completed: bool,
    ) -> CompletionSyncResult:
        """Mirror one workout's completion state onto its calendar event.

        Skipped without error when the user is not connected, the token is
        expired, or the occurrence has no event.
        """
        token = await self.tokens.get(user_id)
        if token is None:
            return self._skipped(SKIP_NOT_CONNECTED)
        if token.is_expired():
            return self._skipped(SKIP_TOKEN_EXPIRED)

        mapping = await self.mappings.get(user_id, routine_id, workout_id, workout_date)
        if mapping is None:
            return self._skipped(SKIP_NO_MAPPING)

        await self._begin(user_id)
        try:
            client = await self._client(user_id)
            result = await self._apply_completion(
                client, mapping.google_event_id, is_completed
            )
        except CalendarError as e:
            logger.warning(
                "Completion sync failed for event %s: %s", mapping.google_event_id, e
            )
            await self._finish(user_id, [str(e)])
            return CompletionSyncResult(
                synced=False, event_id=mapping.google_event_id, error=str(e)
            )

        await self._finish(user_id, [])
        return result

    # Internals

    def _require_auth_provider(self) -> CalendarAuthProvider:
        if self.auth_provider is None:
            raise CalendarAuthError("No OAuth provider configured")
        return self.auth_provider

    async def _client(self, user_id: str) -> CalendarClient:
        token = await self.tokens.get(user_id)
        if token is None:
            raise CalendarNotConnectedError("Google Calendar is not connected")
        if token.is_expired():
            raise CalendarAuthError("Google Calendar token has expired; reconnect required")
        return await _contain("open Google Calendar", self.client_factory(token))

    async def _create_events(
        self,
        client: CalendarClient,
        user_id: str,
        routine: Routine,
        start_date: date | None,
        settings: SyncSettings | None,
    ) -> SyncResult:
        settings = settings or self.settings
        start, end = routine_window(routine, start_date or settings.today())

        created = 0
        errors = []
        for item in project_schedule(routine, start, end):
            workout = item.workout
            options = EventOptions.from_settings(settings, routine.name, item.date)
            try:
                ensure_valid_workout(workout)
                event = ensure_valid_event(workout_to_calendar_event(workout, options))
            except (WorkoutDataError, EventValidationError) as e:
                errors.append(f"Workout {workout.name}: {', '.join(e.errors)}")
                continue

            try:
                event_id = await _contain(
                    "create event", client.create_event(event.to_api_body())
                )
            except CalendarError as e:
                logger.warning(
                    "Event creation failed for %s on %s: %s", workout.name, item.date, e
                )
                errors.append(
                    f"Failed to create event for {workout.name} on {item.date.isoformat()}: {e}"
                )
                continue

            await self.mappings.upsert(
                EventMapping(
                    user_id=user_id,
                    routine_id=routine.id,
                    workout_id=workout.id,
                    google_event_id=event_id,
                    event_date=item.date,
                )
            )
            created += 1

        return SyncResult(success=not errors, created_count=created, errors=errors)

    async def _delete_events(
        self, client: CalendarClient, mappings: list[EventMapping]
    ) -> SyncResult:
        # Mappings whose remote delete failed are kept so a later sync can retry
        deleted_ids = []
        errors = []
        for mapping in mappings:
            try:
                await _contain("delete event", client.delete_event(mapping.google_event_id))
            except CalendarError as e:
                logger.warning("Event deletion failed for %s: %s", mapping.google_event_id, e)
                errors.append(f"Failed to delete event {mapping.google_event_id}: {e}")
                continue
            deleted_ids.append(mapping.id)

        await self.mappings.delete_many(deleted_ids)
        return SyncResult(success=not errors, deleted_count=len(deleted_ids), errors=errors)

    async def _mark_event(
        self, user_id: str, event_id: str, completed: bool
    ) -> CompletionSyncResult:
        mapping = await self.mappings.get_by_event_id(user_id, event_id)
        if mapping is None:
            return CompletionSyncResult(
                synced=False, event_id=event_id, error="Event not found or access denied"
            )
        try:
            client = await self._client(user_id)
            return await self._apply_completion(client, event_id, completed)
        except CalendarError as e:
            logger.warning("Marking event %s failed: %s", event_id, e)
            return CompletionSyncResult(synced=False, event_id=event_id, error=str(e))

    async def _apply_completion(
        self, client: CalendarClient, event_id: str, completed: bool
    ) -> CompletionSyncResult:
        event = await _contain("get event", client.get_event(event_id))
        summary = event.get("summary") or ""
        if completed:
            summary = add_completion_marker(summary)
            color_id = COMPLETED_COLOR_ID
        else:
            summary = remove_completion_marker(summary)
            color_id = None

        await _contain(
            "update event", client.patch_event_title_and_color(event_id, summary, color_id)
        )
        logger.info(
            "Marked event %s %s", event_id, "completed" if completed else "incomplete"
        )
        return CompletionSyncResult(
            synced=True, event_id=event_id, summary=summary, color_id=color_id
        )

    def _skipped(self, reason: str) -> CompletionSyncResult:
        logger.debug("Completion sync skipped: %s", reason)
        return CompletionSyncResult(synced=False, skipped_reason=reason)

    async def _begin(self, user_id: str) -> None:
        state = await self.sync_states.get(user_id) or SyncState(user_id=user_id)
        state.status = SyncStatus.SYNCING
        await self.sync_states.upsert(state)

    async def _finish(self, user_id: str, errors: list[str]) -> None:
        state = await self.sync_states.get(user_id) or SyncState(user_id=user_id)
        state.last_sync_at = datetime.now()
        if errors:
            state.status = SyncStatus.ERROR
            state.error_message = "; ".join(errors)
        else:
            state.status = SyncStatus.IDLE
            state.error_message = None
        await self.sync_states.upsert(state)

    async def _abort(self, user_id: str, action: str, error: CalendarError) -> SyncResult:
        logger.error("Could not %s for user %s: %s", action, user_id, error)
        if await self.is_connected(user_id):
            state = await self.sync_states.get(user_id) or SyncState(user_id=user_id)
            state.status = SyncStatus.ERROR
            state.error_message = str(error)
            await self.sync_states.upsert(state)
        else:
            # Disconnected users are always idle
            await self.sync_states.delete(user_id)
        return SyncResult(success=False, errors=[str(error)])
