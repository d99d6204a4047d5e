"""Periodic background sweep of expired conversations."""

import asyncio
import contextlib
import logging

from .base import ConversationStore

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 10 * 60


class ConversationSweeper:
    """Runs ``store.sweep()`` on a fixed interval in an asyncio task.

    Usage:
        sweeper = ConversationSweeper(store)
        sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(
        self,
        store: ConversationStore,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._store = store
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="conversation-sweeper")
        logger.debug("Conversation sweeper started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.debug("Conversation sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._store.sweep()
            except Exception:
                logger.exception("Conversation sweep failed; retrying in %.0fs", self._interval)
