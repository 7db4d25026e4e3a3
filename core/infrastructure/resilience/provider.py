"""Provider health record."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from core.domain.enums import CircuitStatus


@dataclass
class ProviderRecord:
    """Circuit breaker state for one provider."""

    name: str
    status: CircuitStatus = CircuitStatus.CLOSED
    consecutive_failures: int = 0
    last_failure_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "consecutive_failures": self.consecutive_failures,
            "last_failure_at": (
                self.last_failure_at.isoformat() if self.last_failure_at else None
            ),
        }
