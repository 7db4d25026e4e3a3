"""Utility helpers."""

from .clock import Clock, SystemClock, utc_now

__all__ = ["Clock", "SystemClock", "utc_now"]
