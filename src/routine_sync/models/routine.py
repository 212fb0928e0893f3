"""Routine, workout and exercise models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class MuscleGroup(str, Enum):
    """Primary muscle group targeted by an exercise."""

    CHEST = "chest"
    BACK = "back"
    SHOULDERS = "shoulders"
    ARMS = "arms"
    ABS = "abs"
    LEGS = "legs"
    FULL_BODY = "full_body"


class SplitType(str, Enum):
    """How a routine splits muscle groups across its workouts."""

    FULL_BODY = "full_body"
    UPPER_LOWER = "upper_lower"
    PUSH_PULL_LEGS = "push_pull_legs"


@dataclass
class Exercise:
    """A single exercise prescription inside a workout."""

    id: str
    name: str
    sets: int
    reps: str  # "8-10", "12" or a timed value such as "30초"
    muscle_group: MuscleGroup
    description: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "sets": self.sets,
            "reps": self.reps,
            "muscle_group": self.muscle_group.value,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Exercise":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            sets=int(data["sets"]),
            reps=str(data["reps"]),
            muscle_group=MuscleGroup(data["muscle_group"]),
            description=data.get("description"),
        )


@dataclass
class Workout:
    """One session template within a routine's cycle."""

    id: str
    day_number: int  # 1-based position in the cycle
    name: str
    exercises: list[Exercise] = field(default_factory=list)

    @property
    def exercise_ids(self) -> list[str]:
        return [ex.id for ex in self.exercises]

    def get_exercise(self, exercise_id: str) -> Exercise | None:
        """Find an exercise of this workout by id."""
        for ex in self.exercises:
            if ex.id == exercise_id:
                return ex
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "day_number": self.day_number,
            "name": self.name,
            "exercises": [ex.to_dict() for ex in self.exercises],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Workout":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            day_number=int(data["day_number"]),
            name=data["name"],
            exercises=[Exercise.from_dict(ex) for ex in data.get("exercises", [])],
        )


@dataclass
class RoutineSettings:
    """Plan parameters chosen when the routine was created."""

    duration_weeks: int = 4
    workouts_per_week: int = 3
    split_type: SplitType = SplitType.FULL_BODY
    additional_request: str | None = None

    @property
    def total_days(self) -> int:
        """Number of workout days the whole plan calls for."""
        return self.duration_weeks * self.workouts_per_week

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "duration_weeks": self.duration_weeks,
            "workouts_per_week": self.workouts_per_week,
            "split_type": self.split_type.value,
            "additional_request": self.additional_request,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RoutineSettings":
        """Create from dictionary."""
        return cls(
            duration_weeks=int(data.get("duration_weeks", 4)),
            workouts_per_week=int(data.get("workouts_per_week", 3)),
            split_type=SplitType(data.get("split_type", "full_body")),
            additional_request=data.get("additional_request"),
        )


@dataclass
class Routine:
    """A named, cyclic workout plan owned by one user.

    Workouts repeat in order starting from the routine's creation date.
    At most one routine per user is active at a time.
    """

    user_id: str
    name: str
    settings: RoutineSettings = field(default_factory=RoutineSettings)
    workouts: list[Workout] = field(default_factory=list)
    is_active: bool = False
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    activated_at: datetime | None = None

    def get_workout(self, workout_id: str) -> Workout | None:
        """Find a workout of this routine by id."""
        for workout in self.workouts:
            if workout.id == workout_id:
                return workout
        return None

    @property
    def exercise_count(self) -> int:
        return sum(len(w.exercises) for w in self.workouts)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "settings": self.settings.to_dict(),
            "workouts": [w.to_dict() for w in self.workouts],
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "activated_at": (
                self.activated_at.isoformat() if self.activated_at else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict, id: str | None = None) -> "Routine":
        """Create from dictionary."""
        created_at = None
        if data.get("created_at"):
            created_at = datetime.fromisoformat(data["created_at"])

        updated_at = None
        if data.get("updated_at"):
            updated_at = datetime.fromisoformat(data["updated_at"])

        activated_at = None
        if data.get("activated_at"):
            activated_at = datetime.fromisoformat(data["activated_at"])

        return cls(
            id=id if id is not None else data.get("id"),
            user_id=data["user_id"],
            name=data["name"],
            settings=RoutineSettings.from_dict(data.get("settings", {})),
            workouts=[Workout.from_dict(w) for w in data.get("workouts", [])],
            is_active=bool(data.get("is_active", False)),
            created_at=created_at,
            updated_at=updated_at,
            activated_at=activated_at,
        )
