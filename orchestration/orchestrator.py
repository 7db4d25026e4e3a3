"""Orchestration engine - runs named workflows through the resilience layer."""

import asyncio
import time
from collections.abc import Iterable, Mapping
from typing import Any

from core.domain.enums.execution_status import ExecutionStatus
from core.domain.exceptions import StepExecutionError, WorkflowNotFoundError
from core.domain.value_objects import ExecutionID, OperationDescriptor
from core.infrastructure.context import ContextStore
from core.infrastructure.resilience import ResilienceManager
from relay_sdk.logging import get_logger
from relay_sdk.utils.clock import Clock, SystemClock

from .bus import EventBusProtocol
from .conditions import evaluate_condition
from .events import (
    STEP_COMPLETED,
    WORKFLOW_COMPLETED,
    WORKFLOW_STARTED,
    Event,
    EventMetadata,
)
from .models import StepResult, WorkflowExecution
from .workflow import StepDefinition, WorkflowDefinition, WorkflowOptions


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class OrchestrationEngine:
    """Registry of workflow templates and the runtime that executes them.

    Workflow definitions are owned by the engine; sessions belong to the
    context store and provider health to the resilience manager.
    """

    def __init__(
        self,
        resilience_manager: ResilienceManager,
        context_store: ContextStore,
        event_bus: EventBusProtocol,
        clock: Clock | None = None,
    ) -> None:
        """Initialize orchestration engine.

        Args:
            resilience_manager: Executes step operations with retry and failover
            context_store: Records step results per session
            event_bus: Receives step and workflow completion events
            clock: Time source for execution timestamps
        """
        self._resilience = resilience_manager
        self._context_store = context_store
        self._event_bus = event_bus
        self._clock = clock or SystemClock()
        self._workflows: dict[str, WorkflowDefinition] = {}
        self._active: dict[str, WorkflowExecution] = {}
        self._logger = get_logger("orchestration.engine")

    @property
    def resilience_manager(self) -> ResilienceManager:
        return self._resilience

    @property
    def context_store(self) -> ContextStore:
        return self._context_store

    # =========================================================================
    # Workflow registry
    # =========================================================================

    def define_workflow(
        self,
        name: str,
        steps: Iterable[StepDefinition | Mapping[str, Any]],
        options: WorkflowOptions | None = None,
    ) -> WorkflowDefinition:
        """Register a workflow template.

        Re-registering an existing name replaces the previous definition.

        Args:
            name: Workflow name
            steps: Ordered steps, as StepDefinition or plain mappings
            options: Execution options

        Returns:
            The registered WorkflowDefinition
        """
        if not name:
            raise ValueError("Workflow name cannot be empty")

        definition = WorkflowDefinition(
            name=name,
            steps=tuple(
                step if isinstance(step, StepDefinition) else StepDefinition.from_dict(step)
                for step in steps
            ),
            options=options or WorkflowOptions(),
        )
        if not definition.steps:
            raise ValueError(f"Workflow '{name}' must have at least one step")

        if name in self._workflows:
            self._logger.warning("workflow_redefined workflow_name=%s", name)
        self._workflows[name] = definition
        return definition

    def get_workflow(self, name: str) -> WorkflowDefinition:
        """Return a registered workflow.

        Raises:
            WorkflowNotFoundError: If no workflow has that name
        """
        try:
            return self._workflows[name]
        except KeyError:
            raise WorkflowNotFoundError(name) from None

    def get_workflow_templates(self) -> list[dict[str, Any]]:
        return [
            {
                "name": workflow.name,
                "description": workflow.description,
                "steps": len(workflow.steps),
                "parallel": workflow.options.parallel,
            }
            for workflow in self._workflows.values()
        ]

    def get_active_workflows(self) -> list[dict[str, Any]]:
        return [
            {
                "id": execution.id,
                "workflow_name": execution.workflow_name,
                "status": execution.status.value,
                "started_at": execution.started_at.isoformat(),
                "steps_completed": len(execution.steps),
                "total_steps": len(self._workflows[execution.workflow_name].steps),
            }
            for execution in self._active.values()
        ]

    def get_system_status(self) -> dict[str, Any]:
        """Snapshot of provider health, sessions and workflows."""
        return {
            "resilience": {"providers": self._resilience.provider_health()},
            "context": {
                "active_sessions": self._context_store.session_count,
                "total_operations": self._context_store.total_operations(),
            },
            "orchestration": {
                "workflows": self.get_workflow_templates(),
                "active": self.get_active_workflows(),
            },
        }

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute_workflow(
        self, name: str, session_id: str, parameters: Mapping[str, Any] | None = None
    ) -> WorkflowExecution:
        """Run a registered workflow.

        Step failures are captured in the returned execution and never
        change its status; only a failure of the engine's own control
        logic marks the execution FAILED.

        Args:
            name: Registered workflow name
            session_id: Caller session whose context the steps share
            parameters: Runtime parameters merged into every step

        Returns:
            The finished WorkflowExecution

        Raises:
            WorkflowNotFoundError: If ``name`` is not registered
        """
        workflow = self.get_workflow(name)

        execution = WorkflowExecution(
            id=str(ExecutionID.generate()),
            workflow_name=workflow.name,
            session_id=session_id,
            started_at=self._clock.now(),
            parameters=dict(parameters or {}),
        )
        self._active[execution.id] = execution
        self._context_store.get_or_create_session(session_id)

        self._logger.info(
            "workflow_starting execution_id=%s workflow_name=%s session_id=%s step_count=%d parallel=%s",
            execution.id,
            workflow.name,
            session_id,
            len(workflow.steps),
            workflow.options.parallel,
        )

        try:
            await self._notify(
                WORKFLOW_STARTED,
                execution,
                {
                    "workflow_name": workflow.name,
                    "step_count": len(workflow.steps),
                    "parallel": workflow.options.parallel,
                },
            )
            await self._run_with_recovery(workflow, execution)
        finally:
            self._active.pop(execution.id, None)

        self._logger.info(
            "workflow_finished execution_id=%s workflow_name=%s status=%s success_count=%d step_count=%d",
            execution.id,
            workflow.name,
            execution.status.value,
            sum(1 for s in execution.steps if s.success),
            len(execution.steps),
        )

        await self._notify(
            WORKFLOW_COMPLETED,
            execution,
            {
                "kind": "workflow",
                "id": execution.id,
                "status": execution.status.value,
                "result": execution.to_dict(),
                "error": execution.error,
            },
        )

        return execution

    async def _run_with_recovery(
        self, workflow: WorkflowDefinition, execution: WorkflowExecution
    ) -> None:
        attempts = 2 if workflow.options.retry_on_failure else 1

        for attempt in range(1, attempts + 1):
            try:
                if workflow.options.parallel:
                    await self._execute_parallel_steps(workflow, execution)
                else:
                    await self._execute_sequential_steps(workflow, execution)
            except Exception as exc:
                # Re-dispatch only while no step result has been recorded
                if attempt < attempts and not execution.steps:
                    self._logger.warning(
                        "workflow_dispatch_retry execution_id=%s workflow_name=%s error=%s",
                        execution.id,
                        workflow.name,
                        exc,
                    )
                    continue

                self._logger.error(
                    "workflow_failed execution_id=%s workflow_name=%s error=%s",
                    execution.id,
                    workflow.name,
                    exc,
                    exc_info=True,
                )
                execution.finish(ExecutionStatus.FAILED, self._clock.now(), error=str(exc))
                return

            execution.finish(ExecutionStatus.COMPLETED, self._clock.now())
            return

    async def _execute_sequential_steps(
        self, workflow: WorkflowDefinition, execution: WorkflowExecution
    ) -> None:
        for step in workflow.steps:
            step_result = await self.execute_step(step, execution)
            execution.add_step(step_result)
            await self._publish_step_event(step, execution, step_result)

            # A step's condition is checked against that step's own result
            if step.condition and not evaluate_condition(step.condition, step_result):
                self._logger.info(
                    "workflow_early_exit execution_id=%s step_name=%s condition=%s",
                    execution.id,
                    step.name,
                    step.condition,
                )
                break

    async def _execute_parallel_steps(
        self, workflow: WorkflowDefinition, execution: WorkflowExecution
    ) -> None:
        outcomes = await asyncio.gather(
            *(self.execute_step(step, execution) for step in workflow.steps),
            return_exceptions=True,
        )

        step_results: list[StepResult] = []
        for step, outcome in zip(workflow.steps, outcomes):
            if isinstance(outcome, StepResult):
                step_result = outcome
            elif isinstance(outcome, Exception):
                step_result = StepResult(
                    name=step.name,
                    success=False,
                    duration_ms=0,
                    error=str(StepExecutionError(step.name, outcome)),
                )
            else:
                # Cancellation of a branch
                raise outcome
            step_results.append(step_result)
            execution.add_step(step_result)

        for step, step_result in zip(workflow.steps, step_results):
            await self._publish_step_event(step, execution, step_result)

    async def execute_step(
        self, step: StepDefinition, execution: WorkflowExecution
    ) -> StepResult:
        """Execute a single step and capture its outcome.

        Args:
            step: Step to execute
            execution: Execution the step belongs to

        Returns:
            StepResult; failures are reported in it, never raised
        """
        started = time.monotonic()
        operation = step.to_operation()

        try:
            context = self._context_store.get_relevant_context(execution.session_id, operation)
            request = OperationDescriptor(
                provider=step.provider,
                action=step.action,
                type=step.type,
                parameters={**step.parameters, **execution.parameters, "context": context},
            )
            result = await self._resilience.execute_with_resilience(step.provider, request)
            self._context_store.add_operation_result(execution.session_id, operation, result)
        except Exception as exc:
            error = StepExecutionError(step.name, exc)
            self._logger.warning(
                "step_failed execution_id=%s step_name=%s provider=%s error=%s",
                execution.id,
                step.name,
                step.provider,
                exc,
            )
            return StepResult(
                name=step.name,
                success=False,
                duration_ms=_elapsed_ms(started),
                error=str(error),
            )

        return StepResult(
            name=step.name,
            success=True,
            duration_ms=_elapsed_ms(started),
            result=result,
        )

    # =========================================================================
    # Events
    # =========================================================================

    async def _publish_step_event(
        self, step: StepDefinition, execution: WorkflowExecution, step_result: StepResult
    ) -> None:
        await self._notify(
            STEP_COMPLETED,
            execution,
            {
                "kind": "step",
                "id": f"{execution.id}-step-{step.name}",
                "status": "completed" if step_result.success else "failed",
                "result": step_result.to_dict(),
                "error": step_result.error,
                "provider": step.provider,
                "action": step.action,
                "type": step.type,
            },
        )

    async def _notify(
        self, name: str, execution: WorkflowExecution, payload: dict[str, object]
    ) -> None:
        """Publish an event; a failing bus is logged, not raised."""
        try:
            await self._publish_event(name, execution, payload)
        except Exception as exc:
            self._logger.error(
                "event_publish_failed event_name=%s execution_id=%s error=%s",
                name,
                execution.id,
                exc,
                exc_info=True,
            )

    async def _publish_event(
        self, name: str, execution: WorkflowExecution, payload: dict[str, object]
    ) -> None:
        """Publish an event.

        Args:
            name: Event name
            execution: Execution the event belongs to
            payload: Event payload
        """
        metadata = EventMetadata(
            execution_id=execution.id,
            workflow_name=execution.workflow_name,
            session_id=execution.session_id,
            timestamp=self._clock.now(),
        )
        event = Event(name=name, payload=payload, metadata=metadata)
        await self._event_bus.publish(event)
