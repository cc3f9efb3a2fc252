"""Reconnecting stream subscription.

Architecture:
    A StreamSubscription owns one background task. The task opens a frame
    source (an HTTP streaming body or a websocket), decodes frames into
    StreamEvents and puts them on a bounded queue that the caller drains
    with `async for`. When the connection drops or the body ends, the task
    reconnects with capped exponential backoff, passing the last seen frame
    id so the source can ask the server to resume.

Design Decisions:
    - Task + queue instead of callbacks: the caller's loop controls pacing,
      and a full queue applies backpressure to the connection
    - Cancellation is an explicit Event checked before each reconnect and
      raced against every backoff sleep; cancelling also cancels the task,
      which closes the source and releases the socket
    - 401/403 is a fatal rejection (revoked token): no retry
    - Consecutive failures reset once a connection delivers data; after
      `max_reconnect_attempts` consecutive failures the subscription ends
      with StreamError
    - The closing StreamError queues behind already-delivered events, so a
      slow consumer sees every event before the error
    - Delivery is at-least-once: resumption is best-effort and events may be
      replayed or lost across a reconnect
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any, Optional, Union

from ...core.config import StreamConfig
from ...core.exceptions import ApiError, StreamError, StreamFrameError, TransportError
from ...models.events import StreamEvent, StreamFrame
from ..rest.transport import Transport
from .dispatch import EntityDecoder, JsonEntityDecoder, decode_event
from .framing import FrameDecoder

logger = logging.getLogger(__name__)

# Opens one connection. Yields frames; None means data arrived but no frame
# completed yet (heartbeats), which still counts as a live connection.
FrameSource = Callable[[Optional[str]], AsyncIterator[Optional[StreamFrame]]]

_FATAL_STATUSES = (401, 403)


class _End:
    pass


_END = _End()

_QueueItem = Union[StreamEvent, StreamError, _End]


def http_frames(
    transport: Transport,
    url: str,
    *,
    headers: Callable[[], Mapping[str, str]],
    params: Mapping[str, Any] | None = None,
) -> FrameSource:
    """Build a FrameSource reading a line-oriented HTTP streaming body.

    `headers` is called on every (re)connect so a refreshed token is used.
    """

    async def open_frames(last_event_id: str | None) -> AsyncIterator[StreamFrame | None]:
        request_headers = dict(headers())
        request_headers["Accept"] = "text/event-stream"
        if last_event_id:
            request_headers["Last-Event-ID"] = last_event_id
        decoder = FrameDecoder(last_event_id)
        chunks = transport.open_stream(url, headers=request_headers, params=params)
        async with contextlib.aclosing(chunks):
            async for chunk in chunks:
                frames = decoder.feed(chunk)
                if not frames:
                    yield None
                for frame in frames:
                    yield frame
        if decoder.has_partial:
            logger.debug(f"Discarding partial frame at end of stream {url}")

    return open_frames


class StreamSubscription:
    """Async iterator of StreamEvents over a self-healing connection."""

    def __init__(
        self,
        open_frames: FrameSource,
        *,
        endpoint: str,
        decoder: EntityDecoder | None = None,
        config: StreamConfig | None = None,
    ) -> None:
        self.endpoint = endpoint
        self._open_frames = open_frames
        self._decoder = decoder or JsonEntityDecoder()
        self._conf = config or StreamConfig()
        self._queue: asyncio.Queue[_QueueItem] = asyncio.Queue(maxsize=self._conf.queue_size)
        self._cancelled = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._finished = False
        self._received = False
        self.last_event_id: str | None = None
        self.connection_attempts = 0
        self.reconnects = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the connection task (idempotent)."""
        if self._task is None and not self._cancelled.is_set():
            self._task = asyncio.create_task(self._run(), name=f"stream:{self.endpoint}")

    async def cancel(self) -> None:
        """Stop the subscription and release the connection.

        Takes precedence over any pending reconnect; iteration ends with
        StopAsyncIteration.
        """
        self._cancelled.set()
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._finish_now(_END)

    def _finish_now(self, item: StreamError | _End) -> None:
        """Enqueue the final item without waiting, evicting if the queue is full.

        Only used on cancellation, where iteration stops anyway.
        """
        if self._finished:
            return
        self._finished = True
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()

    async def _finish(self, item: StreamError | _End) -> None:
        """Enqueue the final item behind every event already queued."""
        if self._finished:
            return
        await self._queue.put(item)
        self._finished = True

    async def _backoff(self, delay: float) -> bool:
        """Sleep for `delay` seconds; return True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def _pump(self) -> None:
        """Run one connection to its end.

        Sets `_received` as soon as the connection delivers anything, so the
        caller still sees it when the connection later fails.
        """
        self._received = False
        frames = self._open_frames(self.last_event_id)
        async with contextlib.aclosing(frames):
            self.connection_attempts += 1
            async for frame in frames:
                if not self._received:
                    self._received = True
                    logger.info(f"Stream connected: {self.endpoint}")
                if frame is None:
                    continue
                if frame.id is not None:
                    self.last_event_id = frame.id
                try:
                    event = decode_event(frame, self._decoder)
                except StreamFrameError as e:
                    logger.warning(f"Dropping stream frame on {self.endpoint}: {e}")
                    continue
                await self._queue.put(event)

    def _terminal(self, message: str, status: int | None, attempts: int) -> StreamError:
        return StreamError(
            message,
            endpoint=self.endpoint,
            status=status,
            last_event_id=self.last_event_id,
            attempts=attempts,
        )

    async def _run(self) -> None:
        delay = self._conf.base_reconnect_delay
        failures = 0
        last_status: int | None = None
        try:
            while not self._cancelled.is_set():
                try:
                    await self._pump()
                    logger.warning(f"Stream ended: {self.endpoint}")
                except ApiError as e:
                    last_status = e.status
                    if e.status in _FATAL_STATUSES:
                        logger.error(f"Stream rejected with status {e.status}: {self.endpoint}")
                        await self._finish(
                            self._terminal(
                                f"Stream {self.endpoint} rejected: {e}", e.status, failures + 1
                            )
                        )
                        return
                    logger.warning(f"Stream error on {self.endpoint}: {e}")
                except TransportError as e:
                    logger.warning(f"Stream connection dropped on {self.endpoint}: {e}")

                if self._cancelled.is_set():
                    return
                if self._received:
                    failures = 0
                    delay = self._conf.base_reconnect_delay
                failures += 1
                if failures > self._conf.max_reconnect_attempts:
                    logger.error(
                        f"Giving up on {self.endpoint} after {failures - 1} failed reconnects"
                    )
                    await self._finish(
                        self._terminal(
                            f"Stream {self.endpoint} failed after {failures - 1} reconnect attempts",
                            last_status,
                            failures - 1,
                        )
                    )
                    return

                logger.info(
                    f"Reconnecting to {self.endpoint} in {delay:.2f}s "
                    f"(attempt {failures}/{self._conf.max_reconnect_attempts})"
                )
                if await self._backoff(delay):
                    return
                self.reconnects += 1
                delay = self._conf.next_delay(delay)
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.exception(f"Stream task for {self.endpoint} crashed")
            await self._finish(
                self._terminal(f"Stream {self.endpoint} crashed: {e}", None, failures)
            )

    def __aiter__(self) -> StreamSubscription:
        self.start()
        return self

    async def __anext__(self) -> StreamEvent:
        if self._cancelled.is_set():
            raise StopAsyncIteration
        item = await self._queue.get()
        if isinstance(item, _End):
            self._queue.put_nowait(item)
            raise StopAsyncIteration
        if isinstance(item, StreamError):
            self._queue.put_nowait(_END)
            raise item
        return item

    async def __aenter__(self) -> StreamSubscription:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.cancel()
