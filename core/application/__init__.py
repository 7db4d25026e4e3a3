"""Application layer - contracts consumed by the orchestration core."""

from .interfaces import IOperationExecutor

__all__ = ["IOperationExecutor"]
