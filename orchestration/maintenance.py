"""Periodic session cleanup for the context store."""

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

from core.infrastructure.context import ContextStore
from relay_sdk.logging import get_logger

if TYPE_CHECKING:
    from core.settings.sections.context import ContextSettings


class SessionCleanupScheduler:
    """Runs ``ContextStore.cleanup_expired_sessions`` on a fixed interval."""

    def __init__(
        self,
        context_store: ContextStore,
        interval_seconds: float = 60 * 60,
        max_age: timedelta = timedelta(hours=24),
    ) -> None:
        """Initialize scheduler.

        Args:
            context_store: Store whose sessions are swept
            interval_seconds: Delay between sweeps
            max_age: Inactivity after which a session is removed
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._context_store = context_store
        self.interval_seconds = interval_seconds
        self.max_age = max_age
        self._task: asyncio.Task[None] | None = None
        self._logger = get_logger("orchestration.maintenance")

    @classmethod
    def from_settings(
        cls, context_store: ContextStore, settings: "ContextSettings"
    ) -> "SessionCleanupScheduler":
        return cls(
            context_store,
            interval_seconds=settings.cleanup_interval_seconds,
            max_age=timedelta(seconds=settings.session_max_age_seconds),
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> int:
        """Sweep expired sessions now.

        Returns:
            Number of sessions removed
        """
        removed = self._context_store.cleanup_expired_sessions(self.max_age)
        self._logger.debug("session_cleanup removed=%d", removed)
        return removed

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.run_once()
            except Exception as exc:
                self._logger.error("session_cleanup_failed error=%s", exc, exc_info=True)

    def start(self) -> None:
        """Start sweeping in a background task on the running loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        self._logger.info(
            "session_cleanup_started interval_seconds=%s max_age=%s",
            self.interval_seconds,
            self.max_age,
        )

    async def stop(self) -> None:
        """Cancel the background task and wait for it to end."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._logger.info("session_cleanup_stopped")
