"""Progress statistics derived from workout logs.

Nothing here is stored; every figure is recomputed from the logs on each
call.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta

from ..models.routine import MuscleGroup, Routine
from ..models.workout_log import WorkoutLog
from ..utils.dates import percent, week_start
from .workout_logs import WorkoutLogService


@dataclass
class WeeklyStats:
    completion_rate: int
    completed_workouts: int
    total_workouts: int
    week_dates: list[date] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "completion_rate": self.completion_rate,
            "completed_workouts": self.completed_workouts,
            "total_workouts": self.total_workouts,
            "week_dates": [d.isoformat() for d in self.week_dates],
        }


@dataclass
class MonthlyStats:
    completion_rate: int
    completed_workouts: int
    total_workouts: int
    streak_days: int
    workout_days: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "completion_rate": self.completion_rate,
            "completed_workouts": self.completed_workouts,
            "total_workouts": self.total_workouts,
            "streak_days": self.streak_days,
            "workout_days": self.workout_days,
        }


@dataclass
class MuscleGroupStat:
    muscle_group: MuscleGroup
    frequency: int
    percentage: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "muscle_group": self.muscle_group.value,
            "frequency": self.frequency,
            "percentage": self.percentage,
        }


@dataclass
class RoutineProgress:
    completion_rate: int
    completed_days: int
    total_days: int
    remaining_workouts: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "completion_rate": self.completion_rate,
            "completed_days": self.completed_days,
            "total_days": self.total_days,
            "remaining_workouts": self.remaining_workouts,
        }


@dataclass
class ProgressStats:
    weekly: WeeklyStats
    monthly: MonthlyStats
    muscle_groups: list[MuscleGroupStat]
    streak_days: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "weekly": self.weekly.to_dict(),
            "monthly": self.monthly.to_dict(),
            "muscle_groups": [m.to_dict() for m in self.muscle_groups],
            "streak_days": self.streak_days,
        }


def _completion(logs: list[WorkoutLog]) -> tuple[int, int, int]:
    completed = sum(1 for log in logs if log.is_completed)
    return percent(completed, len(logs)), completed, len(logs)


def remaining_days(routine: Routine, today: date) -> int:
    """Calendar days left in the routine's planned duration, never negative.

    Counted from activation, or from creation for routines never activated.
    """
    started = routine.activated_at or routine.created_at
    if started is None:
        return routine.settings.duration_weeks * 7
    elapsed = (today - started.date()).days
    return max(0, routine.settings.duration_weeks * 7 - elapsed)


def motivation_message(stats: ProgressStats) -> str:
    """Pick an encouragement line from streak, then weekly, then monthly figures."""
    streak = stats.streak_days
    if streak >= 30:
        return f"🔥 대단해요! {streak}일 연속 운동 중이에요!"
    if streak >= 14:
        return f"💪 훌륭해요! {streak}일 연속으로 꾸준히 하고 있어요!"
    if streak >= 7:
        return f"⭐ 좋아요! {streak}일 연속 운동하고 있어요!"
    if streak >= 3:
        return f"👍 잘하고 있어요! {streak}일 연속이에요!"

    weekly = stats.weekly.completion_rate
    if weekly >= 80:
        return f"🎉 이번 주 {weekly}% 달성! 정말 잘하고 있어요!"
    if weekly >= 60:
        return f"👏 이번 주 {weekly}% 완료! 조금만 더 힘내요!"
    if weekly >= 40:
        return f"💪 이번 주 {weekly}% 진행 중! 꾸준히 해봐요!"

    monthly = stats.monthly.completion_rate
    if monthly >= 70:
        return f"🌟 이번 달 {monthly}% 달성! 멋져요!"
    if monthly >= 50:
        return f"🚀 이번 달 {monthly}% 진행! 계속 화이팅!"

    return "💪 오늘도 운동으로 건강한 하루 만들어요!"


class ProgressService:
    """Read-only aggregation over the completion log store."""

    def __init__(self, logs: WorkoutLogService):
        self.logs = logs

    def _today(self) -> date:
        return self.logs.settings.today()

    async def weekly_stats(self, user_id: str, week_of: date | None = None) -> WeeklyStats:
        """Completion over the Monday-to-Sunday week containing ``week_of``."""
        monday = week_start(week_of or self._today())
        week_dates = [monday + timedelta(days=i) for i in range(7)]
        logs = await self.logs.get_weekly_logs(user_id, monday)

        rate, completed, total = _completion(logs)
        return WeeklyStats(
            completion_rate=rate,
            completed_workouts=completed,
            total_workouts=total,
            week_dates=week_dates,
        )

    async def monthly_stats(
        self,
        user_id: str,
        year: int | None = None,
        month: int | None = None,
        today: date | None = None,
    ) -> MonthlyStats:
        """Completion over one calendar month, plus streak and active days."""
        today = today or self._today()
        logs = await self.logs.get_monthly_logs(
            user_id, year or today.year, month or today.month
        )

        rate, completed, total = _completion(logs)
        return MonthlyStats(
            completion_rate=rate,
            completed_workouts=completed,
            total_workouts=total,
            streak_days=await self.logs.get_streak_days(user_id, today),
            workout_days=len({log.date for log in logs}),
        )

    async def muscle_group_stats(
        self,
        user_id: str,
        routine: Routine | None,
        days: int = 30,
        today: date | None = None,
    ) -> list[MuscleGroupStat]:
        """How often each muscle group was trained in completed workouts.

        Groups never trained are omitted; the rest are sorted by frequency,
        most trained first.
        """
        if routine is None:
            return []

        today = today or self._today()
        logs = await self.logs.get_logs_in_range(user_id, today - timedelta(days=days), today)

        counts: Counter[MuscleGroup] = Counter()
        for log in logs:
            if not log.is_completed:
                continue
            workout = routine.get_workout(log.workout_id)
            if workout is None:
                continue
            for exercise in workout.exercises:
                if exercise.id in log.completed_exercises:
                    counts[exercise.muscle_group] += 1

        total = sum(counts.values())
        # Stable sort keeps enum order among ties
        ordered = sorted(
            (group for group in MuscleGroup if counts[group] > 0),
            key=lambda group: counts[group],
            reverse=True,
        )
        return [
            MuscleGroupStat(
                muscle_group=group,
                frequency=counts[group],
                percentage=percent(counts[group], total),
            )
            for group in ordered
        ]

    async def routine_progress(
        self, user_id: str, routine: Routine | None, today: date | None = None
    ) -> RoutineProgress:
        """Completed workout days against the routine's planned total."""
        if routine is None or routine.created_at is None:
            return RoutineProgress(0, 0, 0, 0)

        today = today or self._today()
        total_days = routine.settings.total_days
        logs = await self.logs.get_logs_in_range(user_id, routine.created_at.date(), today)
        completed_days = sum(
            1 for log in logs if log.routine_id == routine.id and log.is_completed
        )
        return RoutineProgress(
            completion_rate=percent(completed_days, total_days),
            completed_days=completed_days,
            total_days=total_days,
            remaining_workouts=max(0, total_days - completed_days),
        )

    async def progress_stats(
        self, user_id: str, routine: Routine | None, today: date | None = None
    ) -> ProgressStats:
        """Weekly, monthly and muscle group figures in one bundle."""
        today = today or self._today()
        return ProgressStats(
            weekly=await self.weekly_stats(user_id, today),
            monthly=await self.monthly_stats(user_id, today=today),
            muscle_groups=await self.muscle_group_stats(user_id, routine, today=today),
            streak_days=await self.logs.get_streak_days(user_id, today),
        )
