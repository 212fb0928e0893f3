"""Schedule routes: which workout falls on which day."""

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query

from ...calendar.transform import estimate_duration, format_duration
from ...scheduling import project_schedule, resolve_workout_for_date
from ...services.factory import Services
from ...utils.dates import date_range, month_bounds, week_start
from ..deps import get_current_user_id, get_services, require_active_routine, resolve_day

router = APIRouter(prefix="/api/schedule", tags=["schedule"])


def _day_entry(day: date, workout, completed: bool) -> dict:
    return {
        "date": day.isoformat(),
        "is_rest_day": workout is None,
        "workout": workout.to_dict() if workout else None,
        "is_completed": completed,
    }


@router.get("/today")
async def today(
    day: date | None = Query(default=None, alias="date"),
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Workout for one day with its progress."""
    routine = await require_active_routine(services, user_id)
    day = resolve_day(services, day)
    workout = resolve_workout_for_date(routine, day)
    if workout is None:
        return {**_day_entry(day, None, False), "progress": None}

    progress = await services.logs.get_workout_progress(user_id, routine.id, workout, day)
    log = await services.logs.get_log(user_id, routine.id, workout.id, day)
    return {
        **_day_entry(day, workout, progress.is_completed),
        "completed_exercises": sorted(log.completed_exercises) if log else [],
        "estimated_duration": format_duration(estimate_duration(len(workout.exercises))),
        "progress": progress.to_dict(),
    }


@router.get("/week")
async def week(
    day: date | None = Query(default=None, alias="date"),
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Monday-to-Sunday week containing ``date``."""
    routine = await require_active_routine(services, user_id)
    monday = week_start(resolve_day(services, day))
    logs = await services.logs.get_weekly_logs(user_id, monday)
    completed = {(log.workout_id, log.date) for log in logs if log.is_completed}

    days = []
    for d in date_range(monday, monday + timedelta(days=6)):
        workout = resolve_workout_for_date(routine, d)
        days.append(_day_entry(d, workout, bool(workout) and (workout.id, d) in completed))
    return {"routine_id": routine.id, "days": days}


@router.get("/month")
async def month(
    year: int | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Every scheduled workout in a calendar month."""
    routine = await require_active_routine(services, user_id)
    today = services.settings.today()
    year = year or today.year
    month = month or today.month
    first, last = month_bounds(year, month)

    logs = await services.logs.get_monthly_logs(user_id, year, month)
    completed = {(log.workout_id, log.date) for log in logs if log.is_completed}
    return {
        "routine_id": routine.id,
        "year": year,
        "month": month,
        "workouts": [
            _day_entry(item.date, item.workout, (item.workout.id, item.date) in completed)
            for item in project_schedule(routine, first, last)
        ],
    }
