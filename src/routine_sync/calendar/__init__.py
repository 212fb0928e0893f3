"""Google Calendar integration."""

from .client import (
    AuthorizedAccount,
    CalendarAuthProvider,
    CalendarClient,
    GoogleCalendarClient,
    GoogleClientFactory,
    GoogleOAuthProvider,
)
from .sync import CalendarSyncEngine

__all__ = [
    "AuthorizedAccount",
    "CalendarAuthProvider",
    "CalendarClient",
    "CalendarSyncEngine",
    "GoogleCalendarClient",
    "GoogleClientFactory",
    "GoogleOAuthProvider",
]
