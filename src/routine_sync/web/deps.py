"""Request dependencies shared by the routers."""

from datetime import date

from fastapi import Header, HTTPException, Request

from ..errors import RoutineNotFoundError
from ..models.routine import Routine
from ..services.factory import Services


def get_services(request: Request) -> Services:
    """Get the service graph from app state."""
    return request.app.state.services


def get_current_user_id(x_user_id: str = Header(default="local")) -> str:
    """User the request acts for, taken from the ``X-User-Id`` header."""
    if not x_user_id.strip():
        raise HTTPException(status_code=400, detail="X-User-Id must not be empty")
    return x_user_id


def resolve_day(services: Services, day: date | None) -> date:
    """Requested date, or today in the configured time zone."""
    return day or services.settings.today()


async def require_routine(services: Services, user_id: str, routine_id: str) -> Routine:
    """Load a routine of the user or raise 404."""
    try:
        return await services.routines.get_routine(user_id, routine_id)
    except RoutineNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


async def require_active_routine(services: Services, user_id: str) -> Routine:
    """Load the user's active routine or raise 404."""
    routine = await services.routines.get_active_routine(user_id)
    if routine is None:
        raise HTTPException(status_code=404, detail="No active routine")
    return routine
