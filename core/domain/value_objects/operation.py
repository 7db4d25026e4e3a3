"""Operation descriptor value object."""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class OperationDescriptor:
    """
    What to do against a provider.

    Immutable once created: ``parameters`` is exposed through a read-only
    mapping proxy over a private copy of the mapping passed in.
    """
    provider: str
    action: str
    type: str = ""
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.provider:
            raise ValueError("Operation provider cannot be empty")
        if not self.action:
            raise ValueError("Operation action cannot be empty")
        object.__setattr__(
            self, "parameters", MappingProxyType(dict(self.parameters))
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly copy."""
        return {
            "provider": self.provider,
            "action": self.action,
            "type": self.type,
            "parameters": dict(self.parameters),
        }
