"""
Simulated Operation Executor.

Stands in for real provider backends in demos and tests: every call
sleeps for a random latency and fails with a configurable probability.
"""
import asyncio
import logging
import random
import uuid
from typing import Any, Optional

from core.application.interfaces import IOperationExecutor
from core.domain.value_objects import OperationDescriptor
from relay_sdk.utils.clock import utc_now


logger = logging.getLogger(__name__)


class SimulatedProviderError(Exception):
    """Injected provider failure."""


class SimulatedExecutor(IOperationExecutor):
    """
    Fault-injecting executor.

    Never talks to a real backend. Pass a seeded ``random.Random`` for
    reproducible failure sequences.
    """

    def __init__(
        self,
        failure_rate: float = 0.3,
        min_latency: float = 0.5,
        max_latency: float = 1.5,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize simulated executor.

        Args:
            failure_rate: Probability in [0, 1] that a call fails
            min_latency: Minimum simulated latency in seconds
            max_latency: Maximum simulated latency in seconds
            rng: Random source (defaults to a fresh unseeded Random)
        """
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError(f"failure_rate must be within [0, 1], got: {failure_rate}")
        if min_latency < 0 or max_latency < min_latency:
            raise ValueError(
                f"Invalid latency range: {min_latency}..{max_latency}"
            )

        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self._rng = rng or random.Random()
        self.calls: list[tuple[str, OperationDescriptor]] = []

    async def execute(self, provider: str, operation: OperationDescriptor) -> Any:
        self.calls.append((provider, operation))

        latency = self._rng.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)

        if self._rng.random() < self.failure_rate:
            logger.debug(f"Injected failure for {provider}: {operation.action}")
            raise SimulatedProviderError(
                f"Provider {provider} service temporarily unavailable"
            )

        return {
            "provider": provider,
            "operation": operation.to_dict(),
            "result": f"Successfully executed {operation.action} on {provider}",
            "timestamp": utc_now().isoformat(),
            "request_id": str(uuid.uuid4()),
        }
