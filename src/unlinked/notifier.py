"""Progress notification decoupled from probing."""

import asyncio
from typing import Callable, Optional
import structlog

from unlinked.models import LinkStatus

logger = structlog.get_logger()

ProgressCallback = Callable[[str, LinkStatus], None]

_STOP = object()


class ProgressNotifier:
    """
    Delivers (url, status) events to a user callback.

    Workers only enqueue; a single consumer task drains the queue and runs
    the callback in a worker thread, one event at a time, so a slow callback
    never holds up probing and is never called concurrently with itself.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self._queue: Optional[asyncio.Queue] = None
        self._consumer: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the consumer task (no-op without a callback)."""
        if self.callback is None or self._consumer is not None:
            return
        self._queue = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume())

    def notify(self, url: str, status: LinkStatus) -> None:
        """Queue one progress event. Never blocks."""
        if self._queue is not None:
            self._queue.put_nowait((url, status))

    async def aclose(self) -> None:
        """Deliver pending events, then stop the consumer."""
        if self._consumer is None:
            return
        self._queue.put_nowait(_STOP)
        try:
            await self._consumer
        finally:
            self._consumer = None
            self._queue = None

    async def _consume(self) -> None:
        while True:
            item = await self._queue.get()
            if item is _STOP:
                return
            url, status = item
            try:
                await asyncio.to_thread(self.callback, url, status)
            except Exception as e:
                logger.error("progress_callback_failed", url=url, error=str(e))
