"""Turn workouts into Google Calendar events.

All functions in this module are pure. Event times are local wall-clock
strings ("YYYY-MM-DDTHH:MM:SS", no offset) paired with an IANA time zone,
which is how the Calendar API expects timed events in a named zone.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

import pytz

from ..config import DEFAULT_START_TIME, DEFAULT_TIME_ZONE, SyncSettings
from ..errors import EventValidationError, WorkoutDataError
from ..models.calendar import CalendarEvent, EventDateTime, Reminder, ValidationResult
from ..models.routine import Exercise, Workout

COMPLETION_MARKER = "✅ "
COMPLETED_COLOR_ID = "10"  # Basil (green)

MINUTES_PER_EXERCISE = 5
WARMUP_MINUTES = 10
MIN_WORKOUT_DURATION = 30
REMINDER_MINUTES = 30

_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


@dataclass
class EventOptions:
    """Per-event parameters for ``workout_to_calendar_event``."""

    routine_name: str
    event_date: date
    start_time: str = DEFAULT_START_TIME  # HH:MM
    duration_minutes: int | None = None
    time_zone: str = DEFAULT_TIME_ZONE

    @classmethod
    def from_settings(
        cls, settings: SyncSettings, routine_name: str, event_date: date
    ) -> "EventOptions":
        return cls(
            routine_name=routine_name,
            event_date=event_date,
            start_time=settings.default_start_time,
            duration_minutes=settings.duration_minutes,
            time_zone=settings.time_zone,
        )


def estimate_duration(exercise_count: int, override: int | None = None) -> int:
    """Estimated workout length in minutes.

    Five minutes per exercise plus a ten minute warm-up, never less than
    thirty. A positive override wins.
    """
    if override is not None and override > 0:
        return override
    return max(exercise_count * MINUTES_PER_EXERCISE + WARMUP_MINUTES, MIN_WORKOUT_DURATION)


def format_exercise_list(exercises: list[Exercise]) -> str:
    return "\n".join(
        f"{i}. {ex.name} - {ex.sets}세트 x {ex.reps}"
        for i, ex in enumerate(exercises, start=1)
    )


def format_event_summary(workout_name: str, routine_name: str) -> str:
    return f"🏋️ {workout_name} ({routine_name})"


def format_event_description(
    exercise_list: str, duration_minutes: int, routine_name: str
) -> str:
    return (
        f"📋 운동 목록:\n{exercise_list}\n\n"
        f"⏱️ 예상 소요 시간: {duration_minutes}분\n\n"
        f"🎯 루틴: {routine_name}"
    )


def build_time_range(event_date: date, start_time: str, duration_minutes: int) -> tuple[str, str]:
    """Start and end wall-clock strings; the end rolls over midnight."""
    start = datetime.combine(event_date, datetime.strptime(start_time, "%H:%M").time())
    end = start + timedelta(minutes=duration_minutes)
    return start.strftime(_DATETIME_FORMAT), end.strftime(_DATETIME_FORMAT)


def workout_to_calendar_event(workout: Workout, options: EventOptions) -> CalendarEvent:
    """Build the calendar event for one workout occurrence.

    Args:
        workout: Workout to schedule
        options: Routine name, date, start time, zone and optional duration

    Returns:
        CalendarEvent with title, exercise list body, time window and a
        30 minute popup reminder. No color is set.
    """
    duration = estimate_duration(len(workout.exercises), options.duration_minutes)
    start, end = build_time_range(options.event_date, options.start_time, duration)

    return CalendarEvent(
        summary=format_event_summary(workout.name, options.routine_name),
        description=format_event_description(
            format_exercise_list(workout.exercises), duration, options.routine_name
        ),
        start=EventDateTime(date_time=start, time_zone=options.time_zone),
        end=EventDateTime(date_time=end, time_zone=options.time_zone),
        reminders=[Reminder(method="popup", minutes=REMINDER_MINUTES)],
    )


def _parse_iso(value: EventDateTime) -> datetime | None:
    try:
        return datetime.fromisoformat(value.date_time)
    except ValueError:
        return None


def _localize(parsed: datetime, time_zone: str) -> datetime | None:
    """Resolve a wall-clock time in its zone to an aware datetime."""
    if parsed.tzinfo is not None:
        return parsed
    try:
        return pytz.timezone(time_zone).localize(parsed)
    except pytz.UnknownTimeZoneError:
        return None


def validate_calendar_event(event: CalendarEvent) -> ValidationResult:
    """Check an event is structurally complete before it is sent."""
    errors = []

    if not event.summary or not event.summary.strip():
        errors.append("summary (운동 이름) is required")
    if not event.description or not event.description.strip():
        errors.append("description (운동 목록) is required")

    for label, value in (("start", event.start), ("end", event.end)):
        if value is None or not value.date_time:
            errors.append(f"{label}.dateTime is required")
        if value is None or not value.time_zone:
            errors.append(f"{label}.timeZone is required")
        elif value.time_zone not in pytz.all_timezones_set:
            errors.append(f"{label}.timeZone must be a valid IANA time zone")

    localized = {}
    for label, value in (("start", event.start), ("end", event.end)):
        if value is None or not value.date_time:
            continue
        parsed = _parse_iso(value)
        if parsed is None:
            errors.append(f"{label}.dateTime must be in ISO 8601 format")
            continue
        localized[label] = _localize(parsed, value.time_zone)

    start, end = localized.get("start"), localized.get("end")

    if start is not None and end is not None and end <= start:
        errors.append("end.dateTime must be after start.dateTime")

    return ValidationResult(valid=not errors, errors=errors)


def ensure_valid_event(event: CalendarEvent) -> CalendarEvent:
    """Return the event unchanged or raise EventValidationError."""
    result = validate_calendar_event(event)
    if not result.valid:
        raise EventValidationError(result.errors)
    return event


def validate_workout_data(workout: Workout) -> ValidationResult:
    """Check a workout has what an event needs."""
    errors = []

    if not workout.id:
        errors.append("workout.id is required")
    if not workout.name or not workout.name.strip():
        errors.append("workout.name is required")

    if not workout.exercises:
        errors.append("workout.exercises must not be empty")
    for idx, ex in enumerate(workout.exercises):
        if not ex.name or not ex.name.strip():
            errors.append(f"exercise[{idx}].name is required")
        if not isinstance(ex.sets, int) or ex.sets < 1:
            errors.append(f"exercise[{idx}].sets must be a positive number")
        if not ex.reps or not str(ex.reps).strip():
            errors.append(f"exercise[{idx}].reps is required")

    return ValidationResult(valid=not errors, errors=errors)


def ensure_valid_workout(workout: Workout) -> Workout:
    """Return the workout unchanged or raise WorkoutDataError."""
    result = validate_workout_data(workout)
    if not result.valid:
        raise WorkoutDataError(result.errors)
    return workout


# Completion marker helpers. All are idempotent.


def has_completion_marker(title: str) -> bool:
    return title.startswith(COMPLETION_MARKER)


def add_completion_marker(title: str) -> str:
    if has_completion_marker(title):
        return title
    return COMPLETION_MARKER + title


def remove_completion_marker(title: str) -> str:
    if has_completion_marker(title):
        return title[len(COMPLETION_MARKER):]
    return title


def exercise_summary(exercises: list[Exercise]) -> str:
    """Short one-line list of exercise names."""
    if not exercises:
        return "운동 없음"
    names = [ex.name for ex in exercises]
    if len(names) <= 3:
        return ", ".join(names)
    return f"{', '.join(names[:3])} 외 {len(names) - 3}개"


def format_duration(minutes: int) -> str:
    """Human readable duration in Korean units."""
    if minutes < 60:
        return f"{minutes}분"
    hours, rest = divmod(minutes, 60)
    if rest == 0:
        return f"{hours}시간"
    return f"{hours}시간 {rest}분"
