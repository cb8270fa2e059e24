from __future__ import annotations

import asyncio
from typing import AsyncIterator, Callable, Dict, List, Optional

from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from .logging_config import get_logger

logger = get_logger(__name__)

SSE_HEADERS: Dict[str, str] = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def sse_entry(field: str, value: str) -> str:
    """Make an SSE entry, one ``field: line`` per line of ``value``."""
    return "".join(f"{field}: {line}\n" for line in value.split("\n"))


def format_retry(retry_ms: int) -> str:
    return sse_entry("retry", str(retry_ms)) + "\n"


def format_event(event_id: int, data: str, event: Optional[str] = None) -> str:
    """Build a complete event frame, terminated by the blank dispatch line."""
    frame = sse_entry("id", str(event_id))
    if event is not None:
        frame += sse_entry("event", event)
    return frame + sse_entry("data", data) + "\n"


class SSEConnection:
    """Output stream of a single subscriber plus its event-id counter.

    Chunks are delivered in write order. ``close()`` ends the stream and runs
    the close handlers exactly once.
    """

    def __init__(self, topic: str):
        self.topic = topic
        self.id_counter = 0
        self.publish_lock = asyncio.Lock()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._close_handlers: List[Callable[[], None]] = []

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, chunk: str) -> None:
        if self._closed:
            raise RuntimeError(f"SSE connection for {self.topic} is closed")
        self._queue.put_nowait(chunk)

    def next_id(self) -> int:
        event_id = self.id_counter
        self.id_counter += 1
        return event_id

    def on_close(self, handler: Callable[[], None]) -> None:
        self._close_handlers.append(handler)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # None marks the end of the stream for chunks()
        self._queue.put_nowait(None)
        for handler in self._close_handlers:
            handler()

    async def chunks(self) -> AsyncIterator[str]:
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk


class EventStreamResponse(StreamingResponse):
    """Streams an SSEConnection to the client until either side closes it."""

    def __init__(self, connection: SSEConnection, headers: Optional[Dict[str, str]] = None):
        super().__init__(connection.chunks(), headers=headers or SSE_HEADERS)
        self.connection = connection
        self.client_disconnected = False

    async def _watch_disconnect(self, receive: Receive) -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                self.client_disconnected = True
                self.connection.close()
                return

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        watcher = asyncio.ensure_future(self._watch_disconnect(receive))
        try:
            await send(
                {
                    "type": "http.response.start",
                    "status": self.status_code,
                    "headers": self.raw_headers,
                }
            )
            async for chunk in self.body_iterator:
                await send(
                    {
                        "type": "http.response.body",
                        "body": chunk.encode(self.charset),
                        "more_body": True,
                    }
                )
            if not self.client_disconnected:
                await send({"type": "http.response.body", "body": b"", "more_body": False})
        except OSError as ex:
            logger.debug(f"SSE transport for {self.connection.topic} went away: {ex}")
        finally:
            watcher.cancel()
            self.connection.close()
