"""Context models - CompressedSummary, OperationRecord, Session, SessionSummary."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

from core.domain.value_objects import OperationDescriptor


@dataclass(frozen=True)
class CompressedSummary:
    """Stand-in for a result too large to keep verbatim."""

    summary: str
    type: str
    keys: list[str]
    original_size: int
    compressed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "type": self.type,
            "keys": list(self.keys),
            "compressed": self.compressed,
            "originalSize": self.original_size,
        }


StoredResult = Union[CompressedSummary, Any]


@dataclass(frozen=True)
class OperationRecord:
    """One executed operation in a session log."""

    id: str
    timestamp: datetime
    operation: OperationDescriptor
    result: StoredResult

    @property
    def provider(self) -> str:
        return self.operation.provider

    @property
    def action(self) -> str:
        return self.operation.action

    @property
    def is_compressed(self) -> bool:
        return isinstance(self.result, CompressedSummary)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form; also the basis of the context size budget."""
        result = self.result.to_dict() if self.is_compressed else self.result
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "operation": self.operation.to_dict(),
            "result": result,
            "provider": self.provider,
            "action": self.action,
        }


@dataclass
class Session:
    """Per-caller operation history."""

    id: str
    created_at: datetime
    last_activity_at: datetime
    operations: list[OperationRecord] = field(default_factory=list)
    # Lifetime counters; unaffected by eviction
    total_operations: int = 0
    operations_by_provider: dict[str, int] = field(default_factory=dict)


@dataclass
class SessionSummary:
    """Read-only overview of a session."""

    session_id: str
    created_at: datetime
    last_activity_at: datetime
    total_operations: int
    operations_by_provider: dict[str, int]
    context_size: int
    recent_operations: list[OperationRecord]
