"""Orchestration models - StepResult, WorkflowExecution."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from core.domain.enums.execution_status import ExecutionStatus


@dataclass
class StepResult:
    """Result of a workflow step execution."""

    name: str
    success: bool
    duration_ms: int
    result: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "success": self.success,
            "result": self.result,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass
class WorkflowExecution:
    """One run of a workflow.

    Mutated only by the engine that created it while RUNNING; ``finish``
    seals it and later mutation attempts raise RuntimeError.
    """

    id: str
    workflow_name: str
    session_id: str
    started_at: datetime
    parameters: dict[str, Any] = field(default_factory=dict)
    status: ExecutionStatus = ExecutionStatus.RUNNING
    completed_at: datetime | None = None
    error: str | None = None
    steps: list[StepResult] = field(default_factory=list)

    @property
    def is_running(self) -> bool:
        return self.status == ExecutionStatus.RUNNING

    def _ensure_running(self) -> None:
        if not self.is_running:
            raise RuntimeError(
                f"Workflow execution {self.id} is already {self.status.value}"
            )

    def add_step(self, step_result: StepResult) -> None:
        self._ensure_running()
        self.steps.append(step_result)

    def finish(
        self, status: ExecutionStatus, completed_at: datetime, error: str | None = None
    ) -> None:
        self._ensure_running()
        if status == ExecutionStatus.RUNNING:
            raise ValueError("Cannot finish a workflow execution as running")
        self.status = status
        self.completed_at = completed_at
        self.error = error

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workflow_name": self.workflow_name,
            "session_id": self.session_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error": self.error,
            "steps": [step.to_dict() for step in self.steps],
        }
