# Settings package
from core.settings.app import AppSettings, get_app_settings
from core.settings.sections.context import ContextSettings
from core.settings.sections.events import EventSinkSettings
from core.settings.sections.resilience import ResilienceSettings

__all__ = [
    "AppSettings",
    "get_app_settings",
    "ContextSettings",
    "EventSinkSettings",
    "ResilienceSettings",
]
