"""Tests for the schedule projector."""

from datetime import date, datetime, timedelta

import pytest

from routine_sync.models.routine import Routine
from routine_sync.scheduling import (
    is_rest_day,
    project_schedule,
    resolve_workout_for_date,
    routine_window,
)
from routine_sync.utils.dates import date_range


class TestResolveWorkoutForDate:
    """Tests for resolve_workout_for_date."""

    def test_cycle_from_creation_date(self, sample_routine):
        """Test the first days of the cycle follow workout order."""
        names = [
            resolve_workout_for_date(sample_routine, date(2024, 1, d)).name
            for d in (1, 2, 3)
        ]
        assert names == ["Chest", "Back", "Legs"]

    def test_thursday_wraps_to_first_workout(self, sample_routine):
        """Test 2024-01-04 is three days in and wraps to Chest."""
        assert resolve_workout_for_date(sample_routine, date(2024, 1, 4)).name == "Chest"

    def test_weekend_is_rest(self, sample_routine):
        """Test Saturdays and Sundays never get a workout."""
        assert resolve_workout_for_date(sample_routine, date(2024, 1, 6)) is None
        assert resolve_workout_for_date(sample_routine, date(2024, 1, 7)) is None

    def test_weekends_do_not_shift_cycle(self, sample_routine):
        """Test Monday after a weekend uses raw calendar days."""
        # 7 days since start, 7 % 3 == 1
        assert resolve_workout_for_date(sample_routine, date(2024, 1, 8)).name == "Back"

    def test_before_start_is_none(self, sample_routine):
        """Test dates before the routine was created have no workout."""
        assert resolve_workout_for_date(sample_routine, date(2023, 12, 29)) is None

    def test_no_workouts(self):
        """Test an empty routine never schedules anything."""
        routine = Routine(user_id="u", name="empty", created_at=datetime(2024, 1, 1))
        assert resolve_workout_for_date(routine, date(2024, 1, 2)) is None

    def test_missing_creation_date(self, sample_routine):
        """Test a routine without created_at cannot be projected."""
        sample_routine.created_at = None
        with pytest.raises(ValueError):
            resolve_workout_for_date(sample_routine, date(2024, 1, 2))

    def test_deterministic(self, sample_routine):
        """Test repeated calls give the same answer."""
        day = date(2024, 3, 13)
        first = resolve_workout_for_date(sample_routine, day)
        assert all(
            resolve_workout_for_date(sample_routine, day) is first for _ in range(5)
        )

    def test_weekday_matches_modulo(self, sample_routine):
        """Test every weekday over ten weeks follows the cycle index."""
        start = date(2024, 1, 1)
        for day in date_range(start, start + timedelta(days=69)):
            workout = resolve_workout_for_date(sample_routine, day)
            if day.weekday() >= 5:
                assert workout is None
            else:
                expected = sample_routine.workouts[(day - start).days % 3]
                assert workout is expected


class TestProjectSchedule:
    """Tests for project_schedule and routine_window."""

    def test_first_week(self, sample_routine):
        """Test a Monday-Sunday week yields five workouts."""
        items = project_schedule(sample_routine, date(2024, 1, 1), date(2024, 1, 7))
        assert [(i.date.day, i.workout.name) for i in items] == [
            (1, "Chest"),
            (2, "Back"),
            (3, "Legs"),
            (4, "Chest"),
            (5, "Back"),
        ]

    def test_empty_range(self, sample_routine):
        """Test an inverted range is empty."""
        assert project_schedule(sample_routine, date(2024, 1, 5), date(2024, 1, 1)) == []

    def test_routine_window(self, sample_routine):
        """Test the window spans duration_weeks * 7 days."""
        sample_routine.settings.duration_weeks = 4
        assert routine_window(sample_routine, date(2024, 1, 1)) == (
            date(2024, 1, 1),
            date(2024, 1, 28),
        )

    def test_zero_week_window_is_empty(self, sample_routine):
        """Test a zero-week routine projects nothing."""
        sample_routine.settings.duration_weeks = 0
        start, end = routine_window(sample_routine, date(2024, 1, 1))
        assert project_schedule(sample_routine, start, end) == []

    def test_is_rest_day(self):
        """Test rest days are exactly weekends."""
        assert is_rest_day(date(2024, 1, 6))
        assert not is_rest_day(date(2024, 1, 5))
