"""Google Calendar connection and sync routes."""

from datetime import date

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from ...errors import CalendarAuthError, CalendarError
from ...services.factory import Services
from ..deps import get_current_user_id, get_services

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


def _redirect_uri(request: Request) -> str:
    return str(request.url_for("oauth_callback"))


@router.get("/auth-url")
async def auth_url(
    request: Request,
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Consent URL; the user id travels in the OAuth ``state``."""
    try:
        url = services.engine.get_auth_url(_redirect_uri(request), state=user_id)
    except CalendarError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"auth_url": url}


@router.get("/callback", name="oauth_callback")
async def oauth_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    services: Services = Depends(get_services),
):
    """OAuth redirect target: exchange the code for the user in ``state``."""
    if error:
        raise HTTPException(status_code=400, detail=f"Authorization denied: {error}")
    if not code or not state:
        raise HTTPException(status_code=400, detail="Missing code or state")

    try:
        connection = await services.engine.connect(state, code, _redirect_uri(request))
    except CalendarAuthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except CalendarError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return connection.to_dict()


@router.post("/connect")
async def connect(
    request: Request,
    code: str = Body(..., embed=True),
    redirect_uri: str | None = Body(default=None, embed=True),
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Exchange a code obtained by the client itself."""
    try:
        connection = await services.engine.connect(
            user_id, code, redirect_uri or _redirect_uri(request)
        )
    except CalendarAuthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except CalendarError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return connection.to_dict()


@router.get("/status")
async def status(
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Connection and sync status."""
    connection = await services.engine.get_connection_status(user_id)
    return connection.to_dict()


@router.post("/sync")
async def sync(
    start_date: date | None = None,
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Recreate all events of the active routine."""
    if not await services.engine.is_connected(user_id):
        raise HTTPException(status_code=400, detail="Google Calendar is not connected")
    result = await services.routines.sync_active_routine(user_id, start_date)
    return result.to_dict()


@router.post("/disconnect")
async def disconnect(
    services: Services = Depends(get_services),
    user_id: str = Depends(get_current_user_id),
):
    """Forget the token, event mappings and sync status."""
    await services.engine.disconnect(user_id)
    return await status(services, user_id)
