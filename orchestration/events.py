"""Orchestration events - Event, EventMetadata, event names."""

from dataclasses import dataclass
from datetime import datetime

WORKFLOW_STARTED = "workflow.started"
STEP_COMPLETED = "workflow.step.completed"
WORKFLOW_COMPLETED = "workflow.completed"

EVENT_NAMES = (WORKFLOW_STARTED, STEP_COMPLETED, WORKFLOW_COMPLETED)


@dataclass
class EventMetadata:
    """Metadata for an event."""

    execution_id: str
    workflow_name: str
    session_id: str
    timestamp: datetime


@dataclass
class Event:
    """Notification emitted by the orchestration engine.

    Step and workflow events carry the sink contract in their payload:
    ``kind``, ``id``, ``status``, ``result`` and ``error``.
    """

    name: str
    payload: dict[str, object]
    metadata: EventMetadata
