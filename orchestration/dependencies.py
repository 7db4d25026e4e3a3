"""Wiring - builds the orchestration core from settings."""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

# Load environment variables ONCE before any settings objects are created
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

from core.application.interfaces import IOperationExecutor  # noqa: E402
from core.infrastructure.bus import RedisStreamEventSink  # noqa: E402
from core.infrastructure.context import ContextStore  # noqa: E402
from core.infrastructure.resilience import ResilienceManager  # noqa: E402
from core.settings import AppSettings, get_app_settings  # noqa: E402
from relay_sdk.utils.clock import Clock  # noqa: E402

from .bus import EventBusProtocol, InMemoryEventBus  # noqa: E402
from .events import EVENT_NAMES  # noqa: E402
from .orchestrator import OrchestrationEngine  # noqa: E402


def create_default_engine(
    executor: IOperationExecutor,
    settings: AppSettings | None = None,
    event_bus: EventBusProtocol | None = None,
    clock: Clock | None = None,
) -> OrchestrationEngine:
    """Create an engine with its resilience manager and context store.

    Args:
        executor: Executor performing provider calls
        settings: Application settings (defaults to the cached global settings)
        event_bus: Event bus (defaults to a new in-memory bus)
        clock: Time source shared by all components

    Returns:
        OrchestrationEngine instance
    """
    settings = settings or get_app_settings()
    bus = event_bus or InMemoryEventBus()

    if settings.events.redis_enabled:
        sink = RedisStreamEventSink(
            redis_url=settings.events.redis_url,
            stream_name=settings.events.stream_name,
            maxlen=settings.events.stream_maxlen,
        )
        sink.attach(bus, EVENT_NAMES)

    return OrchestrationEngine(
        resilience_manager=ResilienceManager.from_settings(
            executor, settings.resilience, clock=clock
        ),
        context_store=ContextStore.from_settings(settings.context, clock=clock),
        event_bus=bus,
        clock=clock,
    )
