# core/settings/app.py
from functools import lru_cache

from core.settings.sections.context import ContextSettings
from core.settings.sections.events import EventSinkSettings
from core.settings.sections.resilience import ResilienceSettings


class AppSettings:
    """
    Central application settings aggregator.
    Settings are loaded lazily inside __init__
    to prevent eager evaluation at import time.
    """

    def __init__(self):
        self.resilience = ResilienceSettings()
        self.context = ContextSettings()
        self.events = EventSinkSettings()


@lru_cache()
def get_app_settings() -> AppSettings:
    """Return cached global settings for the entire app."""
    return AppSettings()
