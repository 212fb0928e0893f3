"""Tests for the event transformer."""

from datetime import date

import pytest

from routine_sync.calendar.transform import (
    COMPLETION_MARKER,
    EventOptions,
    add_completion_marker,
    build_time_range,
    ensure_valid_event,
    ensure_valid_workout,
    estimate_duration,
    exercise_summary,
    format_duration,
    has_completion_marker,
    remove_completion_marker,
    validate_calendar_event,
    validate_workout_data,
    workout_to_calendar_event,
)
from routine_sync.config import SyncSettings
from routine_sync.errors import EventValidationError, WorkoutDataError
from routine_sync.models.calendar import CalendarEvent, EventDateTime
from routine_sync.models.routine import Exercise, MuscleGroup, Workout


def _event(**overrides) -> CalendarEvent:
    fields = dict(
        summary="🏋️ Chest (3분할)",
        description="📋 운동 목록:\n1. 벤치프레스 - 3세트 x 8-10",
        start=EventDateTime("2024-01-01T09:00:00", "Asia/Seoul"),
        end=EventDateTime("2024-01-01T09:30:00", "Asia/Seoul"),
    )
    fields.update(overrides)
    return CalendarEvent(**fields)


class TestEstimateDuration:
    """Tests for estimate_duration."""

    def test_minimum_thirty(self):
        """Test short workouts are padded to thirty minutes."""
        assert estimate_duration(0) == 30
        assert estimate_duration(4) == 30

    def test_five_minutes_per_exercise(self):
        """Test five minutes per exercise plus warm-up."""
        assert estimate_duration(5) == 35
        assert estimate_duration(10) == 60

    def test_override(self):
        """Test a positive override wins."""
        assert estimate_duration(10, 45) == 45
        assert estimate_duration(10, 0) == 60


class TestWorkoutToCalendarEvent:
    """Tests for workout_to_calendar_event."""

    def test_summary_and_description(self, sample_routine):
        """Test title and exercise list templates."""
        event = workout_to_calendar_event(
            sample_routine.workouts[0],
            EventOptions(routine_name="3분할", event_date=date(2024, 1, 1)),
        )

        assert event.summary == "🏋️ Chest (3분할)"
        assert event.description == (
            "📋 운동 목록:\n"
            "1. 벤치프레스 - 3세트 x 8-10\n"
            "2. 덤벨 플라이 - 3세트 x 8-10\n\n"
            "⏱️ 예상 소요 시간: 30분\n\n"
            "🎯 루틴: 3분할"
        )

    def test_time_window_and_reminder(self, sample_routine):
        """Test start, end, zone and the popup reminder."""
        settings = SyncSettings(time_zone="Europe/Berlin", default_start_time="18:30")
        event = workout_to_calendar_event(
            sample_routine.workouts[1],
            EventOptions.from_settings(settings, "3분할", date(2024, 1, 2)),
        )
        body = event.to_api_body()

        assert body["start"] == {"dateTime": "2024-01-02T18:30:00", "timeZone": "Europe/Berlin"}
        assert body["end"] == {"dateTime": "2024-01-02T19:00:00", "timeZone": "Europe/Berlin"}
        assert body["reminders"] == {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": 30}],
        }
        assert "colorId" not in body

    def test_duration_override(self, sample_routine):
        """Test an explicit duration sets the end time."""
        event = workout_to_calendar_event(
            sample_routine.workouts[0],
            EventOptions(
                routine_name="r", event_date=date(2024, 1, 1), duration_minutes=90
            ),
        )
        assert event.end.date_time == "2024-01-01T10:30:00"

    def test_end_rolls_over_midnight(self):
        """Test a late workout ends on the next day."""
        start, end = build_time_range(date(2024, 1, 31), "23:40", 45)
        assert start == "2024-01-31T23:40:00"
        assert end == "2024-02-01T00:25:00"


class TestValidateCalendarEvent:
    """Tests for validate_calendar_event."""

    def test_valid_event(self):
        """Test a complete event passes."""
        result = validate_calendar_event(_event())
        assert result.valid
        assert result.errors == []

    def test_missing_summary_and_description(self):
        """Test blank title and body are reported."""
        result = validate_calendar_event(_event(summary="  ", description=""))
        assert not result.valid
        assert "summary (운동 이름) is required" in result.errors
        assert "description (운동 목록) is required" in result.errors

    def test_end_before_start(self):
        """Test the end must be strictly after the start."""
        result = validate_calendar_event(
            _event(end=EventDateTime("2024-01-01T09:00:00", "Asia/Seoul"))
        )
        assert result.errors == ["end.dateTime must be after start.dateTime"]

    def test_bad_time_zone(self):
        """Test unknown zones are rejected."""
        result = validate_calendar_event(
            _event(start=EventDateTime("2024-01-01T09:00:00", "Mars/Olympus"))
        )
        assert result.errors == ["start.timeZone must be a valid IANA time zone"]

    def test_unparseable_datetime(self):
        """Test a malformed dateTime is reported."""
        result = validate_calendar_event(
            _event(start=EventDateTime("yesterday", "Asia/Seoul"))
        )
        assert "start.dateTime must be in ISO 8601 format" in result.errors

    def test_ensure_valid_event_raises(self):
        """Test invalid events raise with every error attached."""
        with pytest.raises(EventValidationError) as exc_info:
            ensure_valid_event(_event(summary=""))
        assert exc_info.value.errors == ["summary (운동 이름) is required"]


class TestValidateWorkoutData:
    """Tests for validate_workout_data."""

    def test_valid_workout(self, sample_routine):
        """Test a normal workout passes."""
        assert validate_workout_data(sample_routine.workouts[0]).valid

    def test_empty_workout(self):
        """Test a workout needs a name and exercises."""
        result = validate_workout_data(Workout(id="w", day_number=1, name=""))
        assert "workout.name is required" in result.errors
        assert "workout.exercises must not be empty" in result.errors

    def test_bad_exercise(self):
        """Test exercise fields are checked by position."""
        workout = Workout(
            id="w",
            day_number=1,
            name="Push",
            exercises=[
                Exercise(id="e", name="", sets=0, reps="", muscle_group=MuscleGroup.CHEST)
            ],
        )
        with pytest.raises(WorkoutDataError) as exc_info:
            ensure_valid_workout(workout)
        assert exc_info.value.errors == [
            "exercise[0].name is required",
            "exercise[0].sets must be a positive number",
            "exercise[0].reps is required",
        ]


class TestCompletionMarker:
    """Tests for the completion marker helpers."""

    def test_add_is_idempotent(self):
        """Test the marker is added once."""
        once = add_completion_marker("🏋️ Chest (3분할)")
        assert once == COMPLETION_MARKER + "🏋️ Chest (3분할)"
        assert add_completion_marker(once) == once

    def test_remove_is_idempotent(self):
        """Test removing twice leaves the plain title."""
        marked = "✅ 🏋️ Chest (3분할)"
        assert remove_completion_marker(marked) == "🏋️ Chest (3분할)"
        assert remove_completion_marker("🏋️ Chest (3분할)") == "🏋️ Chest (3분할)"

    def test_has_marker(self):
        """Test marker detection."""
        assert has_completion_marker("✅ Legs")
        assert not has_completion_marker("Legs ✅")


class TestDisplayHelpers:
    """Tests for exercise_summary and format_duration."""

    def test_exercise_summary(self, sample_routine):
        """Test short and long exercise lists."""
        back = sample_routine.workouts[1].exercises
        assert exercise_summary([]) == "운동 없음"
        assert exercise_summary(back) == "바벨 로우, 풀업, 바벨 컬"
        more = back + sample_routine.workouts[2].exercises
        assert exercise_summary(more) == "바벨 로우, 풀업, 바벨 컬 외 2개"

    def test_format_duration(self):
        """Test minutes and hours formatting."""
        assert format_duration(45) == "45분"
        assert format_duration(60) == "1시간"
        assert format_duration(95) == "1시간 35분"
