"""Domain layer - enums, value objects and the error taxonomy."""

from .enums import CircuitStatus, ExecutionStatus
from .exceptions import (
    MaxRetriesExceededError,
    OrchestrationError,
    ProviderUnavailableError,
    StepExecutionError,
    UnknownProviderError,
    WorkflowNotFoundError,
)
from .value_objects import ExecutionID, OperationDescriptor

__all__ = [
    "CircuitStatus",
    "ExecutionID",
    "ExecutionStatus",
    "MaxRetriesExceededError",
    "OperationDescriptor",
    "OrchestrationError",
    "ProviderUnavailableError",
    "StepExecutionError",
    "UnknownProviderError",
    "WorkflowNotFoundError",
]
