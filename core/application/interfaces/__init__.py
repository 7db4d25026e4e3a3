"""Application layer interfaces."""
from abc import ABC, abstractmethod
from typing import Any

from core.domain.value_objects import OperationDescriptor


class IOperationExecutor(ABC):
    """
    Interface for performing a single provider call.

    Implementations talk to a real backend (or simulate one). Any
    exception raised is treated as an opaque failure by the resilience
    layer, which decides whether to retry or fail over.
    """

    @abstractmethod
    async def execute(self, provider: str, operation: OperationDescriptor) -> Any:
        """
        Execute an operation against a provider.

        Args:
            provider: Provider name
            operation: Operation descriptor

        Returns:
            Provider result (any JSON-friendly value)

        Raises:
            Exception: If the call fails
        """
        pass
