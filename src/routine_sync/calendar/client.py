"""Google Calendar clients.

Blocking ``googleapiclient`` and ``google-auth`` calls run in a worker thread
so the event loop is never blocked. Every failure leaves this module as a
``CalendarAPIError`` or ``CalendarAuthError``.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import httplib2
from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config import SCOPES
from ..errors import CalendarAPIError, CalendarAuthError
from ..models.calendar import CalendarToken

logger = logging.getLogger(__name__)

REVOKE_URI = "https://oauth2.googleapis.com/revoke"

# Statuses that mean the event is already gone
_GONE_STATUSES = {404, 410}


@dataclass
class AuthorizedAccount:
    """Result of a successful OAuth code exchange."""

    credentials: str  # Credentials.to_json()
    account_email: str | None
    token_expiry: datetime | None


@runtime_checkable
class CalendarAuthProvider(Protocol):
    """OAuth side of the remote calendar."""

    def get_auth_url(self, redirect_uri: str, state: str | None = None) -> str:
        """Build the consent screen URL."""
        ...

    async def exchange_code_for_tokens(
        self, code: str, redirect_uri: str
    ) -> AuthorizedAccount:
        """Trade an authorization code for stored credentials."""
        ...

    async def revoke(self, token: CalendarToken) -> None:
        """Revoke the credential at the provider."""
        ...


@runtime_checkable
class CalendarClient(Protocol):
    """Event operations against one user's calendar."""

    async def create_event(self, body: dict) -> str:
        """Insert an event and return its remote id."""
        ...

    async def get_event(self, event_id: str) -> dict:
        """Fetch an event resource."""
        ...

    async def delete_event(self, event_id: str) -> None:
        """Delete an event. An already deleted event is not an error."""
        ...

    async def patch_event_title_and_color(
        self, event_id: str, title: str, color_id: str | None
    ) -> dict:
        """Replace an event's summary and color, returning the updated event."""
        ...


ClientFactory = Callable[[CalendarToken], Awaitable[CalendarClient]]


def _http_error(action: str, error: HttpError) -> CalendarAPIError:
    status = getattr(error.resp, "status", None)
    return CalendarAPIError(f"Failed to {action}: {error}", status=status)


async def _execute(request: Any, action: str) -> Any:
    """Run a googleapiclient request in a thread, mapping its errors."""
    try:
        return await asyncio.to_thread(request.execute)
    except HttpError as e:
        raise _http_error(action, e) from e
    except RefreshError as e:
        raise CalendarAuthError(f"Failed to {action}: {e}") from e
    except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as e:
        # Transport failures such as DNS errors or timeouts
        raise CalendarAPIError(f"Failed to {action}: {e}") from e


class GoogleCalendarClient:
    """CalendarClient backed by the Calendar API v3."""

    def __init__(self, credentials: Credentials, calendar_id: str = "primary"):
        self.credentials = credentials
        self.calendar_id = calendar_id
        self._service = None

    @property
    def service(self):
        if self._service is None:
            self._service = build(
                "calendar", "v3", credentials=self.credentials, cache_discovery=False
            )
        return self._service

    async def create_event(self, body: dict) -> str:
        event = await _execute(
            self.service.events().insert(calendarId=self.calendar_id, body=body),
            "create event",
        )
        logger.info("Created calendar event %s", event.get("id"))
        return event["id"]

    async def get_event(self, event_id: str) -> dict:
        return await _execute(
            self.service.events().get(calendarId=self.calendar_id, eventId=event_id),
            f"get event {event_id}",
        )

    async def delete_event(self, event_id: str) -> None:
        try:
            await _execute(
                self.service.events().delete(
                    calendarId=self.calendar_id, eventId=event_id
                ),
                f"delete event {event_id}",
            )
        except CalendarAPIError as e:
            if e.status in _GONE_STATUSES:
                logger.debug("Event %s already deleted", event_id)
                return
            raise
        logger.info("Deleted calendar event %s", event_id)

    async def patch_event_title_and_color(
        self, event_id: str, title: str, color_id: str | None
    ) -> dict:
        return await _execute(
            self.service.events().patch(
                calendarId=self.calendar_id,
                eventId=event_id,
                body={"summary": title, "colorId": color_id},
            ),
            f"update event {event_id}",
        )


class GoogleOAuthProvider:
    """CalendarAuthProvider using an OAuth web client secrets file."""

    def __init__(self, client_secrets_path: Path, scopes: list[str] | None = None):
        self.client_secrets_path = Path(client_secrets_path)
        self.scopes = scopes or SCOPES

    def _flow(self, redirect_uri: str) -> Flow:
        if not self.client_secrets_path.exists():
            raise CalendarAuthError(
                f"{self.client_secrets_path} not found. "
                "Download OAuth client credentials from Google Cloud Console."
            )
        return Flow.from_client_secrets_file(
            str(self.client_secrets_path),
            scopes=self.scopes,
            redirect_uri=redirect_uri,
            autogenerate_code_verifier=False,
        )

    def get_auth_url(self, redirect_uri: str, state: str | None = None) -> str:
        url, _ = self._flow(redirect_uri).authorization_url(
            access_type="offline",
            prompt="consent",
            include_granted_scopes="true",
            state=state,
        )
        return url

    async def exchange_code_for_tokens(
        self, code: str, redirect_uri: str
    ) -> AuthorizedAccount:
        flow = self._flow(redirect_uri)
        try:
            await asyncio.to_thread(flow.fetch_token, code=code)
        except Exception as e:
            # oauthlib raises its own hierarchy for rejected codes
            raise CalendarAuthError(f"Failed to exchange authorization code: {e}") from e

        credentials = flow.credentials
        client = GoogleCalendarClient(credentials)
        # The primary calendar id is the account's email address
        primary = await _execute(
            client.service.calendars().get(calendarId="primary"),
            "read primary calendar",
        )
        return AuthorizedAccount(
            credentials=credentials.to_json(),
            account_email=primary.get("id"),
            token_expiry=credentials.expiry,
        )

    async def revoke(self, token: CalendarToken) -> None:
        info = json.loads(token.credentials)
        value = info.get("refresh_token") or info.get("token")
        if not value:
            return

        request = Request()
        try:
            response = await asyncio.to_thread(
                request,
                url=REVOKE_URI,
                method="POST",
                body=f"token={value}",
                headers={"content-type": "application/x-www-form-urlencoded"},
            )
        except GoogleAuthError as e:
            raise CalendarAPIError(f"Failed to revoke token: {e}") from e
        if response.status != 200:
            raise CalendarAPIError(
                f"Failed to revoke token: HTTP {response.status}", status=response.status
            )


class GoogleClientFactory:
    """Builds a GoogleCalendarClient from a stored token.

    Refreshes stale access tokens up front and writes the refreshed
    credential back. A failed refresh flags the stored token as expired.
    """

    def __init__(self, token_repo, calendar_id: str = "primary"):
        self.token_repo = token_repo
        self.calendar_id = calendar_id

    async def __call__(self, token: CalendarToken) -> GoogleCalendarClient:
        try:
            credentials = Credentials.from_authorized_user_info(
                json.loads(token.credentials), SCOPES
            )
        except ValueError as e:
            await self.token_repo.mark_expired(token.user_id)
            raise CalendarAuthError(f"Stored credentials are unusable: {e}") from e

        if not credentials.valid:
            if not credentials.refresh_token:
                await self.token_repo.mark_expired(token.user_id)
                raise CalendarAuthError("Access token expired and no refresh token")
            try:
                await asyncio.to_thread(credentials.refresh, Request())
            except RefreshError as e:
                await self.token_repo.mark_expired(token.user_id)
                raise CalendarAuthError(f"Token refresh failed: {e}") from e
            except GoogleAuthError as e:
                raise CalendarAPIError(f"Token refresh failed: {e}") from e

            token.credentials = credentials.to_json()
            token.token_expiry = credentials.expiry
            token.token_expired = False
            await self.token_repo.upsert(token)
            logger.info("Refreshed Google credentials for user %s", token.user_id)

        return GoogleCalendarClient(credentials, self.calendar_id)
