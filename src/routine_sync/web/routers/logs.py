"""Workout log routes."""

from datetime import date

from fastapi import APIRouter, Body, Depends, HTTPException

from ...errors import PersistenceError
from ...models.calendar import ToggleResult
from ...services.factory import Services
from ..deps import (
    get_current_user_id,
    get_services,
    require_active_routine,
    require_routine,
    resolve_day,
)

router = APIRouter(prefix="/api/logs", tags=["logs"])


async def _routine(services: Services, user_id: str, routine_id: str | None):
    if routine_id:
        return await require_routine(services, user_id, routine_id)
    return await require_active_routine(services, user_id)


async def _run(coro) -> ToggleResult:
    try:
        return await coro
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.post("/toggle")
async def toggle_exercise(
    workout_id: str = Body(...),
    exercise_id: str = Body(...),
    day: date | None = Body(default=None, alias="date"),
    routine_id: str | None = Body(default=None),
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Tick or untick one exercise; returns ``{log, sync}``."""
    routine = await _routine(services, user_id, routine_id)
    result = await _run(
        services.tracker.toggle_in_routine(
            routine, workout_id, exercise_id, resolve_day(services, day)
        )
    )
    return result.to_dict()


@router.post("/complete")
async def complete_workout(
    workout_id: str = Body(...),
    day: date | None = Body(default=None, alias="date"),
    routine_id: str | None = Body(default=None),
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Mark every exercise of a workout done."""
    routine = await _routine(services, user_id, routine_id)
    result = await _run(
        services.tracker.complete_workout(routine, workout_id, resolve_day(services, day))
    )
    return result.to_dict()


@router.get("")
async def list_logs(
    start: date | None = None,
    end: date | None = None,
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Logs between ``start`` and ``end`` inclusive (default: today)."""
    start = resolve_day(services, start)
    end = end or start
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    logs = await services.logs.get_logs_in_range(user_id, start, end)
    return {"logs": [log.to_dict() for log in logs]}
