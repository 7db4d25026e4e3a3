"""
Resilience Manager.

Executes provider operations through a uniform resilience layer:
per-provider circuit breaking, retry with exponential backoff and
failover to an alternate provider when the current one is unavailable.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Optional

from core.application.interfaces import IOperationExecutor
from core.domain.enums import CircuitStatus
from core.domain.exceptions import (
    MaxRetriesExceededError,
    ProviderUnavailableError,
    UnknownProviderError,
)
from core.domain.value_objects import OperationDescriptor
from relay_sdk.utils.clock import Clock, SystemClock

from .provider import ProviderRecord

if TYPE_CHECKING:
    from core.settings.sections.resilience import ResilienceSettings


logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class ResilienceManager:
    """
    Tracks provider health and runs operations with retry and failover.

    The provider table is owned exclusively by this manager. All state
    transitions happen synchronously between awaits, so a single event
    loop never observes a half-applied update.

    Attempts are counted per call, not per provider: a failover to an
    alternate provider consumes one of the ``max_retries`` attempts.
    """

    def __init__(
        self,
        executor: IOperationExecutor,
        providers: Iterable[str] = (),
        circuit_breaker_threshold: int = 5,
        circuit_breaker_timeout: float = 60.0,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_backoff: float = 30.0,
        clock: Optional[Clock] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Initialize resilience manager.

        Args:
            executor: Executor performing the actual provider calls
            providers: Provider names, in failover preference order
            circuit_breaker_threshold: Consecutive failures that open a circuit
            circuit_breaker_timeout: Seconds an open circuit waits before half-opening
            max_retries: Total attempts per call, across provider switches
            base_delay: Backoff delay in seconds for the first retry
            max_backoff: Upper bound for any single backoff delay in seconds
            clock: Time source (defaults to the system clock)
            sleep: Awaitable sleep used between attempts (defaults to asyncio.sleep)
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if circuit_breaker_threshold < 1:
            raise ValueError("circuit_breaker_threshold must be at least 1")

        self._executor = executor
        self.circuit_breaker_threshold = circuit_breaker_threshold
        self.circuit_breaker_timeout = timedelta(seconds=circuit_breaker_timeout)
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_backoff = max_backoff
        self._clock = clock or SystemClock()
        self._sleep = sleep or asyncio.sleep
        self._providers: dict[str, ProviderRecord] = {}

        for name in providers:
            self.register_provider(name)

    @classmethod
    def from_settings(
        cls,
        executor: IOperationExecutor,
        settings: "ResilienceSettings",
        clock: Optional[Clock] = None,
        sleep: Optional[SleepFunc] = None,
    ) -> "ResilienceManager":
        """Build a manager from the resilience settings section."""
        return cls(
            executor=executor,
            providers=settings.providers,
            circuit_breaker_threshold=settings.circuit_breaker_threshold,
            circuit_breaker_timeout=settings.circuit_breaker_timeout_seconds,
            max_retries=settings.max_retries,
            base_delay=settings.base_delay_seconds,
            max_backoff=settings.max_backoff_seconds,
            clock=clock,
            sleep=sleep,
        )

    # =========================================================================
    # Provider table
    # =========================================================================

    def register_provider(self, name: str) -> ProviderRecord:
        """Register a provider with a closed circuit. Idempotent."""
        if not name:
            raise ValueError("Provider name cannot be empty")
        if name not in self._providers:
            self._providers[name] = ProviderRecord(name=name)
        return self._providers[name]

    def get_provider(self, name: str) -> ProviderRecord:
        """
        Get the health record of a provider.

        Raises:
            UnknownProviderError: If the provider was never registered
        """
        try:
            return self._providers[name]
        except KeyError:
            raise UnknownProviderError(name) from None

    @property
    def providers(self) -> list[str]:
        return list(self._providers)

    def provider_health(self) -> list[dict[str, Any]]:
        """Snapshot of every provider's circuit state."""
        return [record.to_dict() for record in self._providers.values()]

    # =========================================================================
    # Circuit breaker
    # =========================================================================

    def calculate_backoff(self, attempt: int) -> float:
        """
        Exponential backoff delay for a 0-based attempt index.

        Returns:
            Delay in seconds: min(base_delay * 2**attempt, max_backoff)
        """
        return min(self.base_delay * (2 ** attempt), self.max_backoff)

    def is_circuit_open(self, name: str) -> bool:
        """
        Check whether calls to a provider are currently blocked.

        An open circuit whose reset timeout has elapsed moves to HALF_OPEN
        and is reported as closed, letting one trial call through.
        """
        record = self.get_provider(name)
        if record.status != CircuitStatus.OPEN:
            return False

        now = self._clock.now()
        if record.last_failure_at is None or (
            now - record.last_failure_at >= self.circuit_breaker_timeout
        ):
            record.status = CircuitStatus.HALF_OPEN
            logger.info(f"Circuit half-open for provider '{name}'")
            return False

        return True

    def get_next_provider(self, current: str) -> Optional[str]:
        """First other provider, in registration order, whose circuit is not open."""
        for name in self._providers:
            if name != current and not self.is_circuit_open(name):
                return name
        return None

    def _record_success(self, record: ProviderRecord) -> None:
        record.consecutive_failures = 0
        if record.status == CircuitStatus.HALF_OPEN:
            record.status = CircuitStatus.CLOSED
            logger.info(f"Circuit closed for provider '{record.name}'")

    def _record_failure(self, record: ProviderRecord) -> None:
        record.consecutive_failures += 1
        record.last_failure_at = self._clock.now()

        if (
            record.consecutive_failures >= self.circuit_breaker_threshold
            and record.status != CircuitStatus.OPEN
        ):
            record.status = CircuitStatus.OPEN
            logger.warning(
                f"Circuit breaker opened for provider '{record.name}' "
                f"after {record.consecutive_failures} consecutive failures"
            )

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute_with_resilience(
        self, provider: str, operation: OperationDescriptor
    ) -> Any:
        """
        Execute an operation with circuit breaking, retry and failover.

        Args:
            provider: Name of a registered provider to try first
            operation: Operation to execute

        Returns:
            The executor's result from the first successful attempt

        Raises:
            UnknownProviderError: If ``provider`` is not registered
            ProviderUnavailableError: If the circuit is open and no other
                provider is available (no further attempts are made)
            MaxRetriesExceededError: If every attempt failed
        """
        current = self.get_provider(provider).name

        for attempt in range(self.max_retries):
            if self.is_circuit_open(current):
                candidate = self.get_next_provider(current)
                if candidate is None:
                    logger.error(
                        f"No provider available for {operation.action} "
                        f"(circuit open for '{current}')"
                    )
                    raise ProviderUnavailableError(current)
                logger.warning(f"Switching from provider '{current}' to '{candidate}'")
                current = candidate

            record = self._providers[current]
            logger.debug(
                f"Provider call attempt {attempt + 1}/{self.max_retries} "
                f"to '{current}': {operation.action} {operation.type}"
            )

            try:
                result = await self._executor.execute(current, operation)
            except Exception as exc:
                self._record_failure(record)

                if attempt == self.max_retries - 1:
                    logger.error(
                        f"Operation {operation.action} on '{current}' failed "
                        f"after {self.max_retries} attempts: {exc}"
                    )
                    raise MaxRetriesExceededError(self.max_retries, exc) from exc

                delay = self.calculate_backoff(attempt)
                logger.warning(
                    f"Attempt {attempt + 1} on '{current}' failed ({exc}); "
                    f"retrying in {delay:.2f}s"
                )
                await self._sleep(delay)
                continue

            self._record_success(record)
            return result