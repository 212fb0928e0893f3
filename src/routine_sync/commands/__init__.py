"""CLI commands for routine-sync."""

from .calendar import calendar
from .init import init
from .log import log
from .routine import routine
from .schedule import schedule
from .serve import serve
from .stats import stats

__all__ = [
    "calendar",
    "init",
    "log",
    "routine",
    "schedule",
    "serve",
    "stats",
]
