"""
Execution Status Enum.

Status values for workflow execution tracking.
"""
from enum import Enum


class ExecutionStatus(str, Enum):
    """Workflow execution status values."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
