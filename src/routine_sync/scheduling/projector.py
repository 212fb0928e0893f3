"""Map calendar dates onto a routine's workout cycle.

Workouts repeat in list order starting from the day the routine was created.
The cycle index is the plain number of calendar days since that date modulo
the number of workouts; Saturdays and Sundays are always rest days and are
simply excluded from consideration, they do not shift the cycle.

Everything here is pure and never touches storage or the network.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from ..models.routine import Routine, Workout
from ..utils.dates import date_range, is_weekend


@dataclass(frozen=True)
class ScheduledWorkout:
    """A workout assigned to a concrete date."""

    date: date
    workout: Workout


def _start_date(routine: Routine) -> date:
    created = routine.created_at
    if created is None:
        raise ValueError(f"Routine {routine.id} has no creation date")
    if isinstance(created, datetime):
        return created.date()
    return created


def is_rest_day(day: date) -> bool:
    """Weekends are always rest days."""
    return is_weekend(day)


def resolve_workout_for_date(routine: Routine, day: date) -> Workout | None:
    """Return the workout scheduled on ``day``, or None for a rest day.

    Args:
        routine: Routine whose ``created_at`` anchors the cycle
        day: Date to resolve

    Returns:
        The workout for that date, or None on weekends, before the routine
        started, or when the routine has no workouts.
    """
    if is_rest_day(day):
        return None
    if not routine.workouts:
        return None

    days_since_start = (day - _start_date(routine)).days
    if days_since_start < 0:
        return None

    return routine.workouts[days_since_start % len(routine.workouts)]


def project_schedule(routine: Routine, start: date, end: date) -> list[ScheduledWorkout]:
    """List every scheduled workout between start and end inclusive."""
    scheduled = []
    for day in date_range(start, end):
        workout = resolve_workout_for_date(routine, day)
        if workout is not None:
            scheduled.append(ScheduledWorkout(date=day, workout=workout))
    return scheduled


def routine_window(routine: Routine, start: date) -> tuple[date, date]:
    """Forward window covering the routine's planned duration from ``start``."""
    days = max(routine.settings.duration_weeks, 0) * 7
    if days == 0:
        return start, start - timedelta(days=1)
    return start, start + timedelta(days=days - 1)
