"""Reindex lifecycle: start a backend reindex and poll its progress."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from semsearch.core.errors import InvalidResponseError, SearchError
from semsearch.core.types import ReindexParams, ReindexProgress, ReindexStatus
from semsearch.utils.config import Config, get_config
from semsearch.utils.logging import get_logger

if TYPE_CHECKING:
    from semsearch.client.service import SearchServiceClient

logger = get_logger(__name__)

ProgressCallback = Callable[[ReindexProgress], None]


class PollerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"


class ReindexPoller:
    """Starts a reindex and follows its progress in a background task.

    Polling runs every ``interval`` seconds until the backend reports a
    terminal status, a poll fails, or :meth:`stop` is called.

    Example:
        >>> poller = ReindexPoller(client, on_progress=print)
        >>> await poller.start(ReindexParams(environment="production"))
        >>> progress = await poller.wait()
    """

    def __init__(
        self,
        client: SearchServiceClient,
        interval: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
        config: Optional[Config] = None,
    ):
        config = config or get_config()
        self.client = client
        self.interval = float(
            interval if interval is not None else config.get("reindex.poll_interval", 2.0)
        )
        self.on_progress = on_progress
        self.state = PollerState.IDLE
        self.status: Optional[ReindexStatus] = None
        self.progress: Optional[ReindexProgress] = None
        self.error: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, params: Optional[ReindexParams] = None) -> ReindexStatus:
        """Ask the backend to reindex and begin polling.

        Raises:
            SearchError: If a reindex is already being polled
            InvalidResponseError: If the backend refused to start
            TransportError: If the backend could not be reached
        """
        if self.running:
            raise SearchError("A reindex is already in progress")

        self.state = PollerState.IDLE
        self.progress = None
        self.error = None
        try:
            status = await self.client.start_reindex(params)
        except SearchError as e:
            self.state = PollerState.FAILED
            self.error = e.message
            raise

        self.status = status
        if not status.success:
            self.state = PollerState.FAILED
            self.error = status.message or "Reindex could not be started"
            raise InvalidResponseError(self.error)

        logger.info(f"Reindex started: {status.message or status.status}")
        self.state = PollerState.RUNNING
        self._task = asyncio.create_task(self._poll())
        return status

    async def _poll(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.interval)
                try:
                    progress = await self.client.get_reindex_progress()
                except SearchError as e:
                    logger.error(f"Progress polling error: {e.message}")
                    self.state = PollerState.FAILED
                    self.error = e.message
                    return

                self.progress = progress
                logger.debug(
                    f"Reindex progress: {progress.processed}/{progress.total} "
                    f"({progress.percentage:.1f}%) {progress.current_content_type or ''}"
                )
                if self.on_progress is not None:
                    self.on_progress(progress)

                if progress.is_terminal:
                    if progress.status == "completed":
                        self.state = PollerState.COMPLETED
                        logger.info(f"Reindex completed: {progress.processed} entries")
                    else:
                        self.state = PollerState.FAILED
                        self.error = "; ".join(progress.errors) or "Reindexing failed"
                        logger.error(f"Reindex failed: {self.error}")
                    return
        except asyncio.CancelledError:
            self.state = PollerState.STOPPED
            logger.info("Reindex polling stopped")
            raise
        except Exception as e:
            # Includes errors raised by the on_progress callback
            logger.error(f"Reindex polling aborted: {e}", exc_info=True)
            self.state = PollerState.FAILED
            self.error = str(e) or type(e).__name__

    async def wait(self) -> Optional[ReindexProgress]:
        """Wait for polling to end and return the last progress seen."""
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                if not self._task.cancelled():
                    raise
        return self.progress

    async def stop(self) -> None:
        """Stop polling. The backend job itself keeps running."""
        if not self.running:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self.state = PollerState.STOPPED

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "progress": self.progress.to_dict() if self.progress else None,
            "error": self.error,
        }


__all__ = ["PollerState", "ReindexPoller"]
