"""Domain enums."""

from .circuit_status import CircuitStatus
from .execution_status import ExecutionStatus

__all__ = ["CircuitStatus", "ExecutionStatus"]
