"""Tests for OrchestrationEngine - sequential workflows."""

import pytest

from core.domain.enums.execution_status import ExecutionStatus
from core.domain.exceptions import WorkflowNotFoundError
from core.infrastructure.context import ContextStore
from core.infrastructure.resilience import ResilienceManager
from orchestration.events import STEP_COMPLETED, WORKFLOW_COMPLETED, WORKFLOW_STARTED
from orchestration.orchestrator import OrchestrationEngine
from orchestration.workflow import StepDefinition, WorkflowOptions


def build_engine(executor, event_bus, clock, sleep, providers=("alpha", "beta")):
    manager = ResilienceManager(
        executor=executor, providers=providers, clock=clock, sleep=sleep
    )
    store = ContextStore(clock=clock)
    return OrchestrationEngine(
        resilience_manager=manager,
        context_store=store,
        event_bus=event_bus,
        clock=clock,
    )


@pytest.mark.asyncio
async def test_provision_workflow_end_to_end(make_executor, event_bus, clock, sleep):
    """Test a two-step workflow whose second step checks its own result."""

    def handler(provider, operation):
        if operation.action == "create":
            return {"id": 1}
        return {"ok": True}

    executor = make_executor(handler)
    engine = build_engine(executor, event_bus, clock, sleep)
    engine.define_workflow(
        "provision",
        [
            StepDefinition(name="step1", provider="alpha", action="create"),
            StepDefinition(
                name="step2", provider="beta", action="verify", condition="result.id"
            ),
        ],
    )

    execution = await engine.execute_workflow("provision", "s1", {})

    assert execution.status == ExecutionStatus.COMPLETED
    assert execution.workflow_name == "provision"
    assert execution.session_id == "s1"
    assert execution.completed_at is not None
    assert [s.name for s in execution.steps] == ["step1", "step2"]
    assert all(s.success for s in execution.steps)
    assert execution.steps[0].result == {"id": 1}
    assert execution.steps[1].result == {"ok": True}
    assert executor.providers_called == ["alpha", "beta"]


@pytest.mark.asyncio
async def test_condition_false_stops_remaining_steps(make_executor, event_bus, clock, sleep):
    """Test a 'failure' condition on a succeeding step ends the workflow early."""
    executor = make_executor(lambda provider, operation: "done")
    engine = build_engine(executor, event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(name="A", provider="alpha", action="create", condition="failure"),
            StepDefinition(name="B", provider="alpha", action="update"),
            StepDefinition(name="C", provider="beta", action="delete"),
        ],
    )

    execution = await engine.execute_workflow("W", "s1")

    assert execution.status == ExecutionStatus.COMPLETED
    assert [s.name for s in execution.steps] == ["A"]
    assert len(executor.calls) == 1
    # The step that triggered the early exit is still reported
    step_events = event_bus.named(STEP_COMPLETED)
    assert len(step_events) == 1
    assert step_events[0].payload["id"] == f"{execution.id}-step-A"


@pytest.mark.asyncio
async def test_missing_result_path_stops_workflow(make_executor, event_bus, clock, sleep):
    """Test a result path condition that resolves to nothing is false."""
    executor = make_executor(lambda provider, operation: {"data": {}})
    engine = build_engine(executor, event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(
                name="A", provider="alpha", action="create", condition="result.data.id"
            ),
            StepDefinition(name="B", provider="alpha", action="update"),
        ],
    )

    execution = await engine.execute_workflow("W", "s1")

    assert [s.name for s in execution.steps] == ["A"]


@pytest.mark.asyncio
async def test_empty_collection_at_result_path_continues(make_executor, event_bus, clock, sleep):
    """Test an empty list at the result path still counts as present."""
    executor = make_executor(lambda provider, operation: {"items": []})
    engine = build_engine(executor, event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(
                name="A", provider="alpha", action="create", condition="result.items"
            ),
            StepDefinition(name="B", provider="alpha", action="update"),
        ],
    )

    execution = await engine.execute_workflow("W", "s1")

    assert [s.name for s in execution.steps] == ["A", "B"]


@pytest.mark.asyncio
async def test_unrecognized_condition_continues(make_executor, event_bus, clock, sleep):
    """Test unknown condition strings are permissive."""
    executor = make_executor(lambda provider, operation: None)
    engine = build_engine(executor, event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(name="A", provider="alpha", action="create", condition="whenever"),
            StepDefinition(name="B", provider="alpha", action="update"),
        ],
    )

    execution = await engine.execute_workflow("W", "s1")

    assert [s.name for s in execution.steps] == ["A", "B"]


@pytest.mark.asyncio
async def test_step_failure_is_captured_and_workflow_completes(
    make_executor, event_bus, clock, sleep
):
    """Test a failing step yields a failed StepResult, not a failed workflow."""

    def handler(provider, operation):
        if operation.action == "create":
            raise ValueError("always fails")
        return "ok"

    executor = make_executor(handler)
    engine = build_engine(executor, event_bus, clock, sleep, providers=("alpha",))
    engine.define_workflow(
        "W",
        [
            StepDefinition(name="A", provider="alpha", action="create"),
            StepDefinition(name="B", provider="alpha", action="verify"),
        ],
    )

    execution = await engine.execute_workflow("W", "s1")

    assert execution.status == ExecutionStatus.COMPLETED
    first, second = execution.steps
    assert first.success is False
    assert first.result is None
    assert "always fails" in first.error
    assert "after 3 attempts" in first.error
    assert second.success is True
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_failure_condition_continues_after_failed_step(
    make_executor, event_bus, clock, sleep
):
    """Test 'failure' lets the workflow go on when the step failed."""

    def handler(provider, operation):
        if operation.action == "create":
            raise RuntimeError("boom")
        return "compensated"

    executor = make_executor(handler)
    engine = build_engine(executor, event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(name="A", provider="alpha", action="create", condition="failure"),
            StepDefinition(name="rollback", provider="beta", action="cleanup"),
        ],
    )

    execution = await engine.execute_workflow("W", "s1")

    assert [s.success for s in execution.steps] == [False, True]


@pytest.mark.asyncio
async def test_unknown_workflow_raises(make_executor, event_bus, clock, sleep):
    """Test unknown workflow names abort before anything runs."""
    engine = build_engine(make_executor(lambda p, o: None), event_bus, clock, sleep)

    with pytest.raises(WorkflowNotFoundError):
        await engine.execute_workflow("missing", "s1")

    assert event_bus.events == []
    assert engine.context_store.session_count == 0


@pytest.mark.asyncio
async def test_step_parameters_merge_runtime_parameters_and_context(
    make_executor, event_bus, clock, sleep
):
    """Test each call sees step params, then execution params, then context."""
    executor = make_executor(lambda provider, operation: {"id": 7})
    engine = build_engine(executor, event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(
                name="A",
                provider="alpha",
                action="create",
                type="kv",
                parameters={"name": "cfg", "region": "eu"},
            ),
            StepDefinition(
                name="B", provider="alpha", action="update", type="kv", parameters={"ttl": 5}
            ),
        ],
    )

    await engine.execute_workflow("W", "s1", {"region": "us"})

    first_op = executor.calls[0][1]
    second_op = executor.calls[1][1]
    assert first_op.parameters["name"] == "cfg"
    assert first_op.parameters["region"] == "us"
    assert first_op.parameters["context"] == []
    assert second_op.parameters["ttl"] == 5
    context = second_op.parameters["context"]
    assert len(context) == 1
    assert context[0].operation.action == "create"
    assert context[0].result == {"id": 7}


@pytest.mark.asyncio
async def test_successful_results_are_recorded_in_session(
    make_executor, event_bus, clock, sleep
):
    """Test only successful steps are written to the context store."""

    def handler(provider, operation):
        if operation.action == "delete":
            raise RuntimeError("nope")
        return {"action": operation.action}

    executor = make_executor(handler)
    engine = build_engine(executor, event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(name="A", provider="alpha", action="create"),
            StepDefinition(name="B", provider="beta", action="delete"),
        ],
    )

    await engine.execute_workflow("W", "s1")

    summary = engine.context_store.get_session_summary("s1")
    assert summary.total_operations == 1
    assert summary.operations_by_provider == {"alpha": 1}
    # Recorded descriptor carries the step's own parameters only
    assert "context" not in summary.recent_operations[0].operation.parameters


@pytest.mark.asyncio
async def test_events_follow_sink_contract(make_executor, event_bus, clock, sleep):
    """Test started, step and workflow events and their payloads."""

    def handler(provider, operation):
        if operation.action == "verify":
            raise RuntimeError("bad")
        return "ok"

    engine = build_engine(make_executor(handler), event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(name="A", provider="alpha", action="create"),
            StepDefinition(name="B", provider="beta", action="verify"),
        ],
    )

    execution = await engine.execute_workflow("W", "s1")

    assert [e.name for e in event_bus.events] == [
        WORKFLOW_STARTED,
        STEP_COMPLETED,
        STEP_COMPLETED,
        WORKFLOW_COMPLETED,
    ]
    step_a, step_b = event_bus.named(STEP_COMPLETED)
    assert step_a.payload["kind"] == "step"
    assert step_a.payload["status"] == "completed"
    assert step_a.payload["error"] is None
    assert step_b.payload["status"] == "failed"
    assert "bad" in step_b.payload["error"]
    assert step_b.payload["provider"] == "beta"

    (finished,) = event_bus.named(WORKFLOW_COMPLETED)
    assert finished.payload["kind"] == "workflow"
    assert finished.payload["id"] == execution.id
    assert finished.payload["status"] == "completed"
    assert finished.metadata.session_id == "s1"
    assert finished.metadata.workflow_name == "W"


class FailingStepEventBus:
    """Event bus whose step events fail a configurable number of times."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.events: list[object] = []

    async def publish(self, event) -> None:
        if event.name == STEP_COMPLETED and self.failures > 0:
            self.failures -= 1
            raise ConnectionError("sink unreachable")
        self.events.append(event)

    def subscribe(self, event_name, handler) -> None:
        pass


@pytest.mark.asyncio
async def test_failing_step_event_does_not_repeat_provider_calls(make_executor, clock, sleep):
    """Test a broken sink never causes a step to run twice."""
    bus = FailingStepEventBus(failures=1)
    executor = make_executor(lambda p, o: "ok")
    engine = build_engine(executor, bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(name="A", provider="alpha", action="create"),
            StepDefinition(name="B", provider="alpha", action="deploy"),
        ],
        WorkflowOptions(retry_on_failure=True),
    )

    execution = await engine.execute_workflow("W", "s1")

    assert execution.status == ExecutionStatus.COMPLETED
    assert [s.name for s in execution.steps] == ["A", "B"]
    assert [operation.action for _, operation in executor.calls] == ["create", "deploy"]
    assert len(engine.context_store.get_or_create_session("s1").operations) == 2
    assert [e.payload["id"] for e in bus.events if e.name == STEP_COMPLETED] == [
        f"{execution.id}-step-B"
    ]


@pytest.mark.asyncio
async def test_engine_error_marks_workflow_failed(
    make_executor, event_bus, clock, sleep, monkeypatch
):
    """Test a failure in the engine's own control flow fails the execution."""
    engine = build_engine(make_executor(lambda p, o: "ok"), event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [StepDefinition(name="A", provider="alpha", action="create")],
        WorkflowOptions(retry_on_failure=False),
    )

    async def broken_execute_step(step, execution):
        raise RuntimeError("engine broke")

    monkeypatch.setattr(engine, "execute_step", broken_execute_step)

    execution = await engine.execute_workflow("W", "s1")

    assert execution.status == ExecutionStatus.FAILED
    assert execution.error == "engine broke"
    assert execution.completed_at is not None
    assert event_bus.events[-1].payload["status"] == "failed"


@pytest.mark.asyncio
async def test_retry_on_failure_redispatches_when_no_step_recorded(
    make_executor, event_bus, clock, sleep, monkeypatch
):
    """Test retry_on_failure re-runs a dispatch that failed before any step result."""
    executor = make_executor(lambda p, o: "ok")
    engine = build_engine(executor, event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [StepDefinition(name="A", provider="alpha", action="create")],
        WorkflowOptions(retry_on_failure=True),
    )
    original = engine.execute_step
    failures = {"left": 1}

    async def flaky_execute_step(step, execution):
        if failures["left"]:
            failures["left"] -= 1
            raise RuntimeError("engine hiccup")
        return await original(step, execution)

    monkeypatch.setattr(engine, "execute_step", flaky_execute_step)

    execution = await engine.execute_workflow("W", "s1")

    assert execution.status == ExecutionStatus.COMPLETED
    assert [s.name for s in execution.steps] == ["A"]
    assert len(executor.calls) == 1


@pytest.mark.asyncio
async def test_retry_on_failure_never_redispatches_after_a_step_ran(
    make_executor, event_bus, clock, sleep, monkeypatch
):
    """Test an engine error after a recorded step fails the execution instead."""
    executor = make_executor(lambda p, o: "ok")
    engine = build_engine(executor, event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(name="A", provider="alpha", action="create"),
            StepDefinition(name="B", provider="alpha", action="deploy"),
        ],
        WorkflowOptions(retry_on_failure=True),
    )
    original = engine.execute_step

    async def failing_second_step(step, execution):
        if step.name == "B":
            raise RuntimeError("engine broke")
        return await original(step, execution)

    monkeypatch.setattr(engine, "execute_step", failing_second_step)

    execution = await engine.execute_workflow("W", "s1")

    assert execution.status == ExecutionStatus.FAILED
    assert execution.error == "engine broke"
    assert [s.name for s in execution.steps] == ["A"]
    assert len(executor.calls) == 1
    assert len(engine.context_store.get_or_create_session("s1").operations) == 1


@pytest.mark.asyncio
async def test_execution_is_tracked_only_while_running(make_executor, event_bus, clock, sleep):
    """Test active workflows list the execution during the call only."""
    seen: list[list[dict]] = []
    engine = None

    def handler(provider, operation):
        seen.append(engine.get_active_workflows())
        return "ok"

    engine = build_engine(make_executor(handler), event_bus, clock, sleep)
    engine.define_workflow(
        "W",
        [
            StepDefinition(name="A", provider="alpha", action="create"),
            StepDefinition(name="B", provider="alpha", action="update"),
        ],
    )

    execution = await engine.execute_workflow("W", "s1")

    assert seen[0][0]["id"] == execution.id
    assert seen[0][0]["status"] == "running"
    assert seen[0][0]["steps_completed"] == 0
    assert seen[1][0]["steps_completed"] == 1
    assert seen[1][0]["total_steps"] == 2
    assert engine.get_active_workflows() == []


@pytest.mark.asyncio
async def test_finished_execution_is_sealed(make_executor, event_bus, clock, sleep):
    """Test a finished execution rejects further mutation."""
    engine = build_engine(make_executor(lambda p, o: "ok"), event_bus, clock, sleep)
    engine.define_workflow("W", [StepDefinition(name="A", provider="alpha", action="create")])

    execution = await engine.execute_workflow("W", "s1")

    with pytest.raises(RuntimeError):
        execution.add_step(execution.steps[0])
    with pytest.raises(RuntimeError):
        execution.finish(ExecutionStatus.FAILED, clock.now())


def test_define_workflow_accepts_mappings_and_overwrites(make_executor, event_bus, clock, sleep):
    """Test registration from plain mappings and re-registration."""
    engine = build_engine(make_executor(lambda p, o: None), event_bus, clock, sleep)

    engine.define_workflow("W", [{"name": "A", "provider": "alpha", "action": "create"}])
    redefined = engine.define_workflow(
        "W",
        [
            {"name": "A", "provider": "alpha", "action": "create"},
            {"name": "B", "provider": "beta", "action": "verify", "condition": "success"},
        ],
        WorkflowOptions(description="Two steps"),
    )

    assert engine.get_workflow("W") is redefined
    assert redefined.steps[1].condition == "success"
    assert engine.get_workflow_templates() == [
        {"name": "W", "description": "Two steps", "steps": 2, "parallel": False}
    ]


def test_define_workflow_rejects_invalid_definitions(make_executor, event_bus, clock, sleep):
    """Test empty names, empty step lists and incomplete steps are rejected."""
    engine = build_engine(make_executor(lambda p, o: None), event_bus, clock, sleep)

    with pytest.raises(ValueError):
        engine.define_workflow("", [StepDefinition(name="A", provider="alpha", action="x")])
    with pytest.raises(ValueError):
        engine.define_workflow("W", [])
    with pytest.raises(ValueError):
        engine.define_workflow("W", [{"name": "A", "provider": "", "action": "x"}])
