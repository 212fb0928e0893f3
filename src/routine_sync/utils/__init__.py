"""Utility helpers for routine-sync."""
