"""Routine management routes."""

import uuid
from datetime import date

from fastapi import APIRouter, Body, Depends, HTTPException

from ...models.routine import Routine
from ...services.factory import Services
from ..deps import get_current_user_id, get_services, require_routine

router = APIRouter(prefix="/api/routines", tags=["routines"])


@router.get("")
async def list_routines(
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """List the user's routines."""
    routines = await services.routines.list_routines(user_id)
    return {"routines": [r.to_dict() for r in routines]}


@router.post("", status_code=201)
async def create_routine(
    data: dict = Body(...),
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Store a new (inactive) routine from its JSON form."""
    data = {**data, "user_id": user_id}
    data.pop("id", None)
    for number, workout in enumerate(data.get("workouts", []), start=1):
        workout.setdefault("id", str(uuid.uuid4()))
        workout.setdefault("day_number", number)
        for exercise in workout.get("exercises", []):
            exercise.setdefault("id", str(uuid.uuid4()))

    try:
        routine = Routine.from_dict(data)
    except (ValueError, KeyError, TypeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid routine: {e}") from e

    routine = await services.routines.create_routine(routine)
    return routine.to_dict()


@router.get("/{routine_id}")
async def get_routine(
    routine_id: str,
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Get one routine."""
    routine = await require_routine(services, user_id, routine_id)
    return routine.to_dict()


@router.post("/{routine_id}/activate")
async def activate_routine(
    routine_id: str,
    start_date: date | None = None,
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Activate a routine and schedule its calendar events."""
    await require_routine(services, user_id, routine_id)
    change = await services.routines.activate_routine(user_id, routine_id, start_date)
    return change.to_dict()


@router.post("/{routine_id}/deactivate")
async def deactivate_routine(
    routine_id: str,
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Deactivate a routine and remove its calendar events."""
    await require_routine(services, user_id, routine_id)
    change = await services.routines.deactivate_routine(user_id, routine_id)
    return change.to_dict()


@router.delete("/{routine_id}")
async def delete_routine(
    routine_id: str,
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Delete a routine with its logs and calendar events."""
    await require_routine(services, user_id, routine_id)
    change = await services.routines.delete_routine(user_id, routine_id)
    return change.to_dict()
