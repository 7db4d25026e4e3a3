"""Workflow definitions - StepDefinition, WorkflowOptions, WorkflowDefinition."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from core.domain.value_objects import OperationDescriptor


@dataclass(frozen=True)
class StepDefinition:
    """A single step in a workflow."""

    name: str
    provider: str
    action: str
    type: str = ""
    parameters: Mapping[str, Any] = field(default_factory=dict)
    condition: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Step name cannot be empty")
        # Validates provider/action and freezes parameters
        object.__setattr__(self, "parameters", self.to_operation().parameters)

    def to_operation(self) -> OperationDescriptor:
        """Operation descriptor for this step, without runtime parameters."""
        return OperationDescriptor(
            provider=self.provider,
            action=self.action,
            type=self.type,
            parameters=self.parameters,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StepDefinition":
        """Build a step from a plain mapping."""
        return cls(
            name=data["name"],
            provider=data["provider"],
            action=data["action"],
            type=data.get("type", ""),
            parameters=data.get("parameters") or {},
            condition=data.get("condition"),
        )


@dataclass(frozen=True)
class WorkflowOptions:
    """Execution options of a workflow."""

    parallel: bool = False
    retry_on_failure: bool = True
    description: str | None = None


@dataclass(frozen=True)
class WorkflowDefinition:
    """Definition of a workflow."""

    name: str
    steps: tuple[StepDefinition, ...]
    options: WorkflowOptions = field(default_factory=WorkflowOptions)

    @property
    def description(self) -> str:
        return self.options.description or f"{len(self.steps)} step workflow"
