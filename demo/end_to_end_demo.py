"""
End-to-End Demo: Multi-Provider Workflows

This demonstrates the complete flow:
1. Build the engine (resilience manager + context store + event bus)
2. Register the default workflow templates
3. Run a sequential workflow against a flaky simulated executor
4. Run a parallel workflow in the same session
5. Inspect session context and system status

Uses a simulated executor (no real provider backends needed).
"""
import asyncio
import json
import logging
import random

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from core.infrastructure.adapters.executors import SimulatedExecutor
from orchestration import (
    Event,
    InMemoryEventBus,
    create_default_engine,
    register_default_workflows,
)
from orchestration.events import STEP_COMPLETED, WORKFLOW_COMPLETED


async def print_event(event: Event) -> None:
    payload = event.payload
    print(f"   📣 {event.name}: {payload.get('id')} -> {payload.get('status')}")


async def demo_workflows():
    """Demo: run both default workflows in one session."""

    print("\n" + "="*80)
    print("DEMO: Multi-Provider Workflow Orchestration")
    print("="*80 + "\n")

    # =========================================================================
    # SETUP
    # =========================================================================
    executor = SimulatedExecutor(
        failure_rate=0.3,
        min_latency=0.05,
        max_latency=0.2,
        rng=random.Random(7),
    )
    bus = InMemoryEventBus()
    bus.subscribe(STEP_COMPLETED, print_event)
    bus.subscribe(WORKFLOW_COMPLETED, print_event)

    engine = create_default_engine(executor, event_bus=bus)
    names = register_default_workflows(engine)
    print(f"✅ Registered workflows: {', '.join(names)}\n")

    session_id = "demo-session"

    # =========================================================================
    # RUN WORKFLOWS
    # =========================================================================
    for name in names:
        print(f"🚀 Running {name}...")
        execution = await engine.execute_workflow(name, session_id, {"env": "demo"})
        print(f"   Status: {execution.status.value}")
        for step in execution.steps:
            marker = "✅" if step.success else "❌"
            print(f"   {marker} {step.name} ({step.duration_ms}ms) {step.error or ''}")
        print()

    # =========================================================================
    # INSPECT
    # =========================================================================
    summary = engine.context_store.get_session_summary(session_id)
    if summary:
        print(f"🧠 Session {summary.session_id}: {summary.total_operations} operations")
        print(f"   By provider: {summary.operations_by_provider}")
        print(f"   Context size: {summary.context_size} chars\n")

    print("📊 System status:")
    print(json.dumps(engine.get_system_status(), indent=2, default=str))
    print(f"\n   Executor calls: {len(executor.calls)}")


if __name__ == "__main__":
    asyncio.run(demo_workflows())
