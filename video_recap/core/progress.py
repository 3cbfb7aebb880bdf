"""
Ordered progress event channel between a running job and its caller.
"""

import asyncio
from typing import AsyncIterator, Optional

from video_recap.models.schemas import (
    ErrorEvent,
    ProgressEvent,
    StatusEvent,
    StatusUpdate,
    SummaryEvent,
    TranscriptEvent,
)
from video_recap.utils.error_handling import StreamClosedError, describe_error
from video_recap.utils.logger import logging

_END_OF_STREAM = object()


def format_sse(event: ProgressEvent) -> str:
    """Render one event as a server-sent-events ``data:`` line."""
    payload = event.model_dump_json(by_alias=True, exclude_none=True)
    return f"data: {payload}\n\n"


class ProgressEmitter:
    """
    Append-only event sink for a single job.

    Emitting never blocks and never reorders: events go into an unbounded
    queue that the caller drains through :meth:`events` or :meth:`stream`.
    ``close()`` ends the stream normally, ``fail()`` sends a final error event
    and ends it. Any emission after that raises :class:`StreamClosedError`.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop = asyncio.get_running_loop()
        self._closed = False
        self._cancelled = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancelled(self) -> bool:
        """True once the consumer stopped listening."""
        return self._cancelled

    def emit(self, event: ProgressEvent) -> None:
        if self._closed:
            raise StreamClosedError("Cannot emit on a closed progress stream")
        self._queue.put_nowait(event)

    def emit_threadsafe(self, event: ProgressEvent) -> None:
        """Emit from a worker thread, preserving submission order."""
        self._loop.call_soon_threadsafe(self._emit_if_open, event)

    def _emit_if_open(self, event: ProgressEvent) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    def status(self, step: int, message: str, is_error: Optional[bool] = None) -> None:
        self.emit(StatusEvent(status=StatusUpdate(step=step, message=message, is_error=is_error)))

    def transcript(self, text: str) -> None:
        self.emit(TranscriptEvent(transcript=text))

    def summary(self, text: str) -> None:
        self.emit(SummaryEvent(summary=text))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END_OF_STREAM)

    def fail(self, error: Exception) -> None:
        """Send a final error event, then close the stream."""
        if self._closed:
            logging.warning(f"Dropping error on closed stream: {error}")
            return
        self.emit(ErrorEvent(error=describe_error(error)))
        self.close()

    def cancel(self) -> None:
        """Mark the consumer as gone. The job stops at its next unit boundary."""
        self._cancelled = True
        self._closed = True

    async def events(self) -> AsyncIterator[ProgressEvent]:
        """Yield events in emission order until the stream is closed."""
        while True:
            event = await self._queue.get()
            if event is _END_OF_STREAM:
                return
            yield event

    async def stream(self) -> AsyncIterator[str]:
        """Yield the events as server-sent-events lines."""
        async for event in self.events():
            yield format_sse(event)
