"""Domain value objects."""

from .operation import OperationDescriptor
from .value_objects import ExecutionID

__all__ = [
    "ExecutionID",
    "OperationDescriptor",
]
