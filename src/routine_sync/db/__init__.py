"""Database layer for routine-sync."""

from .cache import ActiveRoutineCache
from .engine import get_db_path, init_db
from .repositories import (
    CalendarTokenRepository,
    EventMappingRepository,
    RoutineRepository,
    SyncStatusRepository,
    WorkoutLogRepository,
)

__all__ = [
    "ActiveRoutineCache",
    "CalendarTokenRepository",
    "EventMappingRepository",
    "get_db_path",
    "init_db",
    "RoutineRepository",
    "SyncStatusRepository",
    "WorkoutLogRepository",
]
