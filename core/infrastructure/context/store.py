"""
Context Store.

Keeps, per caller session, a size-bounded log of executed operations so
later workflow steps can see what earlier ones did.
"""
import json
import logging
import uuid
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Optional

from core.domain.value_objects import OperationDescriptor
from relay_sdk.utils.clock import Clock, SystemClock

from .models import CompressedSummary, OperationRecord, Session, SessionSummary, StoredResult

if TYPE_CHECKING:
    from core.settings.sections.context import ContextSettings


logger = logging.getLogger(__name__)

# Actions that form a create -> update -> delete lifecycle on one resource type
SEQUENCE_ACTIONS = frozenset({"create", "update", "delete"})

SUMMARY_KEY_LIMIT = 5
SUMMARY_RECENT_LIMIT = 3


def serialized_size(value: Any) -> int:
    """Character length of the compact JSON encoding of ``value``."""
    return len(json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str))


def _summary_keys(result: Any) -> list[str]:
    if isinstance(result, dict):
        keys = list(result.keys())
    elif isinstance(result, (list, tuple, str)):
        keys = range(len(result))
    else:
        keys = []
    return [str(key) for key in list(keys)[:SUMMARY_KEY_LIMIT]]


def is_related_operation(existing: OperationRecord, new_operation: OperationDescriptor) -> bool:
    """Both operations are lifecycle actions on the same resource type."""
    return (
        existing.action in SEQUENCE_ACTIONS
        and new_operation.action in SEQUENCE_ACTIONS
        and existing.operation.type == new_operation.type
    )


class ContextStore:
    """
    Session map with bounded operation logs.

    Invariant: after every ``add_operation_result`` the serialized size of
    a session's operation log is at most ``max_context_size``, except when
    a single remaining record is larger on its own. Oldest records are
    evicted first.
    """

    def __init__(
        self,
        max_context_size: int = 10000,
        compression_threshold: int = 5000,
        relevant_context_limit: int = 5,
        clock: Optional[Clock] = None,
    ):
        self.max_context_size = max_context_size
        self.compression_threshold = compression_threshold
        self.relevant_context_limit = relevant_context_limit
        self._clock = clock or SystemClock()
        self._sessions: dict[str, Session] = {}

    @classmethod
    def from_settings(
        cls, settings: "ContextSettings", clock: Optional[Clock] = None
    ) -> "ContextStore":
        """Build a store from the context settings section."""
        return cls(
            max_context_size=settings.max_context_size,
            compression_threshold=settings.compression_threshold,
            relevant_context_limit=settings.relevant_context_limit,
            clock=clock,
        )

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def total_operations(self) -> int:
        """Operations recorded across all live sessions."""
        return sum(session.total_operations for session in self._sessions.values())

    def get_or_create_session(self, session_id: str) -> Session:
        """
        Return the session, creating it on first use.

        Always refreshes the session's last activity timestamp.
        """
        now = self._clock.now()
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(id=session_id, created_at=now, last_activity_at=now)
            self._sessions[session_id] = session
            logger.debug(f"Created session {session_id}")
        session.last_activity_at = now
        return session

    def compress_result(self, result: Any) -> StoredResult:
        """
        Replace a result larger than the compression threshold by a summary.

        The summary's ``type`` is the Python type name of the result
        (``dict``, ``list``, ``str``, ...).
        """
        size = serialized_size(result)
        if size <= self.compression_threshold:
            return result

        return CompressedSummary(
            summary=f"Large result ({size} chars)",
            type=type(result).__name__,
            keys=_summary_keys(result),
            original_size=size,
        )

    def context_size(self, session: Session) -> int:
        return serialized_size([record.to_dict() for record in session.operations])

    def add_operation_result(
        self, session_id: str, operation: OperationDescriptor, result: Any
    ) -> str:
        """
        Append an operation result to a session log.

        Args:
            session_id: Session identifier (created if missing)
            operation: Operation that produced the result
            result: Raw result; stored verbatim or as a CompressedSummary

        Returns:
            Id of the new operation record
        """
        session = self.get_or_create_session(session_id)

        record = OperationRecord(
            id=str(uuid.uuid4()),
            timestamp=self._clock.now(),
            operation=operation,
            result=self.compress_result(result),
        )
        session.operations.append(record)
        session.total_operations += 1
        session.operations_by_provider[record.provider] = (
            session.operations_by_provider.get(record.provider, 0) + 1
        )

        self._enforce_size_bound(session)
        return record.id

    def _enforce_size_bound(self, session: Session) -> None:
        evicted = 0
        while (
            len(session.operations) > 1
            and self.context_size(session) > self.max_context_size
        ):
            session.operations.pop(0)
            evicted += 1

        if evicted:
            logger.info(
                f"Evicted {evicted} oldest operation(s) from session {session.id} "
                f"to respect context size {self.max_context_size}"
            )

    def get_relevant_context(
        self, session_id: str, new_operation: OperationDescriptor
    ) -> list[OperationRecord]:
        """
        Recent operations relevant to ``new_operation``, most recent first.

        A record is relevant when it shares the provider or the action, or
        when it is a related lifecycle operation. Unknown sessions yield an
        empty list.
        """
        session = self._sessions.get(session_id)
        if session is None:
            return []

        relevant: list[OperationRecord] = []
        for record in reversed(session.operations):
            if (
                record.provider == new_operation.provider
                or record.action == new_operation.action
                or is_related_operation(record, new_operation)
            ):
                relevant.append(record)
                if len(relevant) >= self.relevant_context_limit:
                    break
        return relevant

    def get_session_summary(self, session_id: str) -> Optional[SessionSummary]:
        session = self._sessions.get(session_id)
        if session is None:
            return None

        return SessionSummary(
            session_id=session.id,
            created_at=session.created_at,
            last_activity_at=session.last_activity_at,
            total_operations=session.total_operations,
            operations_by_provider=dict(session.operations_by_provider),
            context_size=self.context_size(session),
            recent_operations=session.operations[-SUMMARY_RECENT_LIMIT:],
        )

    def cleanup_expired_sessions(self, max_age: timedelta = timedelta(hours=24)) -> int:
        """
        Delete sessions inactive for longer than ``max_age``.

        Returns:
            Number of sessions removed
        """
        cutoff = self._clock.now() - max_age
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.last_activity_at < cutoff
        ]
        for session_id in expired:
            del self._sessions[session_id]

        if expired:
            logger.info(f"Removed {len(expired)} expired session(s)")
        return len(expired)
