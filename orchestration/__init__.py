"""Orchestration layer - workflow orchestration with eventing."""

from .bus import EventBusProtocol, InMemoryEventBus
from .conditions import evaluate_condition
from .dependencies import create_default_engine
from .events import Event, EventMetadata
from .maintenance import SessionCleanupScheduler
from .models import StepResult, WorkflowExecution
from .orchestrator import OrchestrationEngine
from .presets import register_default_workflows
from .workflow import StepDefinition, WorkflowDefinition, WorkflowOptions

__all__ = [
    "Event",
    "EventBusProtocol",
    "EventMetadata",
    "InMemoryEventBus",
    "OrchestrationEngine",
    "SessionCleanupScheduler",
    "StepDefinition",
    "StepResult",
    "WorkflowDefinition",
    "WorkflowExecution",
    "WorkflowOptions",
    "create_default_engine",
    "evaluate_condition",
    "register_default_workflows",
]
