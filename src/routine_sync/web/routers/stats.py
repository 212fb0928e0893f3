"""Progress statistics routes."""

from datetime import date

from fastapi import APIRouter, Depends

from ...services.factory import Services
from ...services.progress_stats import motivation_message, remaining_days
from ..deps import get_current_user_id, get_services, resolve_day

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("")
async def progress_stats(
    day: date | None = None,
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Weekly, monthly and muscle group stats with the routine's progress."""
    today = resolve_day(services, day)
    routine = await services.routines.get_active_routine(user_id)

    stats = await services.progress.progress_stats(user_id, routine, today)
    progress = await services.progress.routine_progress(user_id, routine, today)
    return {
        **stats.to_dict(),
        "routine_progress": progress.to_dict(),
        "remaining_days": remaining_days(routine, today) if routine else 0,
        "motivation": motivation_message(stats),
    }


@router.get("/weekly")
async def weekly_stats(
    day: date | None = None,
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Completion over the week containing ``day``."""
    stats = await services.progress.weekly_stats(user_id, resolve_day(services, day))
    return stats.to_dict()


@router.get("/monthly")
async def monthly_stats(
    year: int | None = None,
    month: int | None = None,
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Completion over one calendar month."""
    stats = await services.progress.monthly_stats(user_id, year, month)
    return stats.to_dict()
