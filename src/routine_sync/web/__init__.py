"""JSON API for routine-sync."""

from .app import create_app

__all__ = ["create_app"]
