"""Workout completion log models."""

from dataclasses import dataclass, field, replace
from datetime import date

from ..utils.dates import percent


def is_complete(
    completed_exercises: set[str],
    total_exercise_count: int,
    exercise_ids: list[str] | None = None,
) -> bool:
    """A workout is complete when every exercise is ticked and there is at least one.

    With ``exercise_ids``, only ticks of those exercises count, so ids of
    exercises since removed from the workout never complete it.
    """
    if exercise_ids is not None:
        completed_exercises = completed_exercises & set(exercise_ids)
    return total_exercise_count > 0 and len(completed_exercises) == total_exercise_count


@dataclass
class WorkoutLog:
    """Completion record for one workout on one date.

    Unique per (user_id, routine_id, workout_id, date). ``is_completed`` always
    reflects ``completed_exercises`` against the workout's exercise count at the
    time of the last toggle.
    """

    user_id: str
    routine_id: str
    workout_id: str
    date: date
    completed_exercises: set[str] = field(default_factory=set)
    is_completed: bool = False
    id: str | None = None

    @property
    def key(self) -> tuple[str, str, str, date]:
        return (self.user_id, self.routine_id, self.workout_id, self.date)

    def toggled(
        self,
        exercise_id: str,
        total_exercise_count: int,
        exercise_ids: list[str] | None = None,
    ) -> "WorkoutLog":
        """Return a copy with ``exercise_id`` flipped and completion recomputed."""
        completed = set(self.completed_exercises)
        if exercise_id in completed:
            completed.discard(exercise_id)
        else:
            completed.add(exercise_id)
        return replace(
            self,
            completed_exercises=completed,
            is_completed=is_complete(completed, total_exercise_count, exercise_ids),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "routine_id": self.routine_id,
            "workout_id": self.workout_id,
            "date": self.date.isoformat(),
            "completed_exercises": sorted(self.completed_exercises),
            "is_completed": self.is_completed,
        }

    @classmethod
    def from_dict(cls, data: dict, id: str | None = None) -> "WorkoutLog":
        """Create from dictionary."""
        log_date = data["date"]
        if isinstance(log_date, str):
            log_date = date.fromisoformat(log_date)

        return cls(
            id=id if id is not None else data.get("id"),
            user_id=data["user_id"],
            routine_id=data["routine_id"],
            workout_id=data["workout_id"],
            date=log_date,
            completed_exercises=set(data.get("completed_exercises", [])),
            is_completed=bool(data.get("is_completed", False)),
        )


@dataclass
class WorkoutProgress:
    """How far a user got through one workout on one date."""

    completed_count: int
    total_count: int
    is_completed: bool

    @property
    def percentage(self) -> int:
        return percent(self.completed_count, self.total_count)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "completed_count": self.completed_count,
            "total_count": self.total_count,
            "percentage": self.percentage,
            "is_completed": self.is_completed,
        }
