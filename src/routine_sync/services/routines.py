"""Routine lifecycle: import, activation, edits and deletion.

Calendar side effects are best-effort. A calendar failure is logged and
reported in the returned ``RoutineChange`` but never undoes or blocks the
routine operation itself.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from ..calendar.sync import CalendarSyncEngine
from ..db.repositories import EventMappingRepository, RoutineRepository, WorkoutLogRepository
from ..errors import RoutineNotFoundError
from ..models.calendar import SyncResult
from ..models.routine import Routine

logger = logging.getLogger(__name__)


@dataclass
class RoutineChange:
    """A routine after a lifecycle operation, with the calendar outcome if any."""

    routine: Routine | None
    sync: SyncResult | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "routine": self.routine.to_dict() if self.routine else None,
            "sync": self.sync.to_dict() if self.sync else None,
        }


def _merge(results: list[SyncResult]) -> SyncResult | None:
    if not results:
        return None
    merged = SyncResult(success=True)
    for result in results:
        merged.success = merged.success and result.success
        merged.created_count += result.created_count
        merged.deleted_count += result.deleted_count
        merged.errors.extend(result.errors)
    return merged


class RoutineService:
    """Routine operations that keep the calendar in step."""

    def __init__(
        self,
        engine: CalendarSyncEngine,
        db_path: Path | None = None,
        routines: RoutineRepository | None = None,
    ):
        self.engine = engine
        self.routines = routines or RoutineRepository(db_path)
        self.logs = WorkoutLogRepository(db_path)
        self.mappings = EventMappingRepository(db_path)

    async def create_routine(self, routine: Routine) -> Routine:
        """Store a new, inactive routine."""
        routine.is_active = False
        await self.routines.create(routine)
        return routine

    async def get_routine(self, user_id: str, routine_id: str) -> Routine:
        """Get a routine owned by ``user_id``.

        Raises:
            RoutineNotFoundError: If it does not exist or belongs to someone else
        """
        routine = await self.routines.get(routine_id)
        if routine is None or routine.user_id != user_id:
            raise RoutineNotFoundError(routine_id)
        return routine

    async def list_routines(self, user_id: str) -> list[Routine]:
        return await self.routines.list_by_user(user_id)

    async def get_active_routine(self, user_id: str) -> Routine | None:
        return await self.routines.get_active(user_id)

    async def activate_routine(
        self, user_id: str, routine_id: str, start_date: date | None = None
    ) -> RoutineChange:
        """Make a routine the user's only active one and schedule its events."""
        await self.get_routine(user_id, routine_id)
        connected = await self.engine.is_connected(user_id)

        results = []
        if connected:
            for previous in await self.routines.list_active(user_id):
                results.append(
                    await self.engine.delete_events_for_routine(user_id, previous.id)
                )

        await self.routines.set_active(user_id, routine_id)
        routine = await self.get_routine(user_id, routine_id)
        logger.info("Activated routine %s for user %s", routine_id, user_id)

        if connected:
            results.append(
                await self.engine.create_events_for_routine(user_id, routine, start_date)
            )
        return RoutineChange(routine=routine, sync=_merge(results))

    async def deactivate_routine(self, user_id: str, routine_id: str) -> RoutineChange:
        """Clear the active flag and remove the routine's events."""
        await self.get_routine(user_id, routine_id)

        sync = None
        if await self.engine.is_connected(user_id):
            sync = await self.engine.delete_events_for_routine(user_id, routine_id)

        await self.routines.deactivate(user_id, routine_id)
        logger.info("Deactivated routine %s for user %s", routine_id, user_id)
        return RoutineChange(
            routine=await self.get_routine(user_id, routine_id), sync=sync
        )

    async def update_routine(
        self, routine: Routine, start_date: date | None = None
    ) -> RoutineChange:
        """Save edits, re-syncing the calendar when the routine is active."""
        await self.get_routine(routine.user_id, routine.id)
        await self.routines.update(routine)
        updated = await self.get_routine(routine.user_id, routine.id)

        sync = None
        if updated.is_active and await self.engine.is_connected(updated.user_id):
            sync = await self.engine.sync_routine(updated.user_id, updated, start_date)
        return RoutineChange(routine=updated, sync=sync)

    async def delete_routine(self, user_id: str, routine_id: str) -> RoutineChange:
        """Delete a routine with its events, mappings and logs."""
        await self.get_routine(user_id, routine_id)

        sync = None
        if await self.engine.is_connected(user_id):
            sync = await self.engine.delete_events_for_routine(user_id, routine_id)

        # Mappings whose remote delete failed would otherwise outlive the routine
        await self.mappings.delete_by_routine(user_id, routine_id)
        await self.logs.delete_by_routine(routine_id)
        await self.routines.delete(user_id, routine_id)
        logger.info("Deleted routine %s for user %s", routine_id, user_id)
        return RoutineChange(routine=None, sync=sync)

    async def sync_active_routine(
        self, user_id: str, start_date: date | None = None
    ) -> SyncResult:
        """Manual "sync now" for whatever routine is active."""
        routines = await self.routines.list_active(user_id)
        if not routines:
            return SyncResult(success=False, errors=["No active routine"])
        return await self.engine.sync_all_routines(user_id, routines, start_date)
