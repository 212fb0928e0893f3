"""routine-sync: workout scheduling and Google Calendar sync."""

__version__ = "0.1.0"
