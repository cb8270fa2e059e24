from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .settings import Settings
from .registry import ConnectionRegistry
from .dispatcher import RelayDispatcher
from .middleware import AllowAllOriginsMiddleware
from .logging_config import get_logger

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()  # reads env
    registry = ConnectionRegistry()
    dispatcher = RelayDispatcher(registry, retry_ms=settings.retry_ms)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting SSE server on {settings.bind}:{settings.port}.")
        yield
        logger.info(f"Shutting down SSE server, closing {len(registry)} connection(s)")
        registry.close_all()

    # Every path is a topic, so the documentation routes stay off.
    app = FastAPI(
        title="SSE Relay",
        description="Relay JSON pushed by HTTP POST to a Server-Sent Events subscriber on the same path",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.dispatcher = dispatcher

    if settings.allow_all_origins:
        app.add_middleware(AllowAllOriginsMiddleware)

    # An ASGI endpoint (not a function) gives a Starlette route with no method filter.
    app.add_route("/{topic:path}", dispatcher, include_in_schema=False)

    return app


class RelayServer(uvicorn.Server):
    """uvicorn server that ends every open event stream when asked to exit.

    Idle subscriber streams would otherwise keep the graceful shutdown waiting.
    """

    def __init__(self, config: uvicorn.Config, registry: ConnectionRegistry):
        super().__init__(config)
        self.registry = registry
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def serve(self, sockets=None) -> None:
        self._loop = asyncio.get_running_loop()
        await super().serve(sockets=sockets)

    def handle_exit(self, sig, frame) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self.registry.close_all)
        super().handle_exit(sig, frame)


def run_server(settings: Settings) -> None:
    app = create_app(settings)
    config = uvicorn.Config(app, host=settings.bind, port=settings.port, log_level=settings.log_level)
    RelayServer(config, app.state.registry).run()


app = create_app()
