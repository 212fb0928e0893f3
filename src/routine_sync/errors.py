"""Exception types for routine-sync."""


class RoutineSyncError(Exception):
    """Base class for all routine-sync errors."""


class RoutineNotFoundError(RoutineSyncError):
    """Raised when a routine id does not exist."""

    def __init__(self, routine_id: str):
        super().__init__(f"Routine not found: {routine_id}")
        self.routine_id = routine_id


class EventValidationError(RoutineSyncError, ValueError):
    """Raised when a calendar event payload is structurally incomplete."""

    def __init__(self, errors: list[str]):
        super().__init__("Invalid calendar event: " + "; ".join(errors))
        self.errors = errors


class WorkoutDataError(RoutineSyncError, ValueError):
    """Raised when workout data cannot be turned into a calendar event."""

    def __init__(self, errors: list[str]):
        super().__init__("Invalid workout data: " + "; ".join(errors))
        self.errors = errors


class PersistenceError(RoutineSyncError):
    """Raised when a background workout log write fails."""


class CalendarError(RoutineSyncError):
    """Base class for remote calendar failures."""


class CalendarAPIError(CalendarError):
    """The Google Calendar API rejected a request or was unreachable."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class CalendarAuthError(CalendarError):
    """The stored Google credential is missing, revoked or cannot be refreshed."""


class CalendarNotConnectedError(CalendarAuthError):
    """The user has not linked a Google account."""
