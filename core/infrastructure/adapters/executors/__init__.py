"""Operation executor adapters."""
from .simulated_executor import SimulatedExecutor, SimulatedProviderError

__all__ = ["SimulatedExecutor", "SimulatedProviderError"]
