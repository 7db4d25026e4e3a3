"""Context store - per-session operation history."""
from .models import CompressedSummary, OperationRecord, Session, SessionSummary
from .store import ContextStore, serialized_size

__all__ = [
    "CompressedSummary",
    "ContextStore",
    "OperationRecord",
    "Session",
    "SessionSummary",
    "serialized_size",
]
