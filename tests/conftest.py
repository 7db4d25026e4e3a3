"""Shared fakes and fixtures for orchestration core tests."""
import inspect
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from core.application.interfaces import IOperationExecutor
from core.domain.value_objects import OperationDescriptor


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class RecordingSleep:
    """Sleep replacement that records delays and advances a fake clock."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.clock.advance(delay)


class ScriptedExecutor(IOperationExecutor):
    """Executor delegating to a (sync or async) handler and recording calls."""

    def __init__(self, handler: Callable[[str, OperationDescriptor], Any]) -> None:
        self._handler = handler
        self.calls: list[tuple[str, OperationDescriptor]] = []

    @property
    def providers_called(self) -> list[str]:
        return [provider for provider, _ in self.calls]

    async def execute(self, provider: str, operation: OperationDescriptor) -> Any:
        self.calls.append((provider, operation))
        result = self._handler(provider, operation)
        if inspect.isawaitable(result):
            result = await result
        return result


class FakeEventBus:
    """Fake EventBus for testing."""

    def __init__(self) -> None:
        """Initialize fake event bus."""
        self.events: list[Any] = []

    async def publish(self, event: Any) -> None:
        """Store event."""
        self.events.append(event)

    def subscribe(self, event_name: str, handler: object) -> None:
        """Subscribe handler (no-op for fake)."""
        pass

    def named(self, name: str) -> list[Any]:
        return [event for event in self.events if event.name == name]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def event_bus() -> FakeEventBus:
    return FakeEventBus()


@pytest.fixture
def make_executor() -> Callable[[Callable[[str, OperationDescriptor], Any]], ScriptedExecutor]:
    return ScriptedExecutor
