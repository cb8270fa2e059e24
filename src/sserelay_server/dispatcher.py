from __future__ import annotations

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from starlette.requests import ClientDisconnect
from starlette.types import Receive, Scope, Send

from .errors import DuplicateSubscriber, MalformedPayload, NoSubscriber, RelayError, UnsupportedMethod
from .logging_config import get_logger, log_request
from .models import PublishPayload
from .registry import ConnectionRegistry
from .sse import EventStreamResponse, SSEConnection, format_event, format_retry

logger = get_logger(__name__)

DEFAULT_RETRY_MS = 3000


def topic_for(request: Request) -> str:
    """The topic is the request target as sent: raw path plus query, if any."""
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    query = request.url.query
    return f"{path}?{query}" if query else path


def parse_payload(body: bytes) -> PublishPayload:
    try:
        return PublishPayload.model_validate_json(body)
    except ValidationError as ex:
        raise MalformedPayload(str(ex)) from ex


class RelayDispatcher:
    """Routes each request to subscribe (GET), publish (POST) or rejection."""

    def __init__(self, registry: ConnectionRegistry, retry_ms: int = DEFAULT_RETRY_MS):
        self.registry = registry
        self.retry_ms = retry_ms

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        # Mounted as a plain ASGI endpoint so every HTTP method reaches dispatch().
        response = await self.dispatch(Request(scope, receive))
        await response(scope, receive, send)

    async def dispatch(self, request: Request) -> Response:
        topic = topic_for(request)
        client_ip = request.client.host if request.client else "unknown"
        log_request(logger, request.method, topic, client_ip)

        try:
            if request.method == "GET":
                return self.subscribe(topic)
            if request.method == "POST":
                return await self.publish(topic, request)
            raise UnsupportedMethod(request.method)
        except MalformedPayload as ex:
            logger.warning(f"{ex.message} {topic}: {ex.reason}")
            return PlainTextResponse(ex.message, status_code=ex.status_code)
        except RelayError as ex:
            logger.warning(ex.message)
            return PlainTextResponse(ex.message, status_code=ex.status_code)

    def subscribe(self, topic: str) -> EventStreamResponse:
        if self.registry.lookup(topic) is not None:
            raise DuplicateSubscriber(topic)

        logger.info(f"Creating a new connection for {topic}.")
        connection = SSEConnection(topic)
        self.registry.register(topic, connection)

        def closed() -> None:
            logger.info(f"Closing {topic}.")
            self.registry.deregister(topic)

        connection.on_close(closed)
        connection.write(format_retry(self.retry_ms))
        return EventStreamResponse(connection)

    async def publish(self, topic: str, request: Request) -> Response:
        connection = self.registry.lookup(topic)
        if connection is None:
            raise NoSubscriber(topic)

        logger.info(f"Receiving data for {topic}.")

        # The lock is FIFO, so frames reach the subscriber in POST arrival order.
        async with connection.publish_lock:
            try:
                body = await request.body()
            except ClientDisconnect as ex:
                raise MalformedPayload("publisher disconnected before the body was complete") from ex

            payload = parse_payload(body)
            if connection.closed:
                raise NoSubscriber(topic)
            connection.write(format_event(connection.next_id(), payload.data, payload.event))

        return Response(status_code=200)
