"""
Relay Server - single endpoint HTTP relay.
Executes caller-described requests upstream and records the response bodies.
"""

import asyncio
from collections.abc import AsyncIterator

import aiohttp
import uvloop
from aiohttp import web

from .config import Settings, get_settings
from .handlers import RequestHandlers
from .logging import get_logger, setup_logging
from .registry import ResponseRegistry
from .translator import RelayExecutor

logger = get_logger(__name__)

HANDLERS_KEY = web.AppKey("handlers", RequestHandlers)


class RelayServer:
    """Owns the response registry and serves the relay endpoint."""

    def __init__(
        self,
        settings: Settings | None = None,
        registry: ResponseRegistry | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        if registry is None:
            registry = ResponseRegistry(capacity=self.settings.registry_capacity)
        self.registry = registry
        self.session: aiohttp.ClientSession | None = None

    async def _client_session_ctx(self, app: web.Application) -> AsyncIterator[None]:
        """Open the outbound client shared by every relay call."""
        self.session = aiohttp.ClientSession(auto_decompress=False)
        executor = RelayExecutor(
            self.session,
            self.registry,
            timeout=self.settings.request_timeout,
        )
        app[HANDLERS_KEY] = RequestHandlers(executor)

        yield

        await self.session.close()
        self.session = None

    async def _handle_proxy(self, request: web.Request) -> web.Response:
        return await request.app[HANDLERS_KEY].handle_proxy(request)

    def setup_routes(self, app: web.Application) -> None:
        """Configure application routes."""
        app.router.add_post("/proxy", self._handle_proxy)

    def create_app(self) -> web.Application:
        """Create the aiohttp application."""
        app = web.Application()
        app.cleanup_ctx.append(self._client_session_ctx)
        self.setup_routes(app)
        return app

    async def start(self) -> None:
        """Start the relay server."""
        runner = web.AppRunner(self.create_app())
        await runner.setup()

        site = web.TCPSite(runner, self.settings.host, self.settings.port)
        await site.start()

        logger.info(f"Server is running on http://{self.settings.host}:{self.settings.port}")
        if self.settings.request_timeout is None:
            logger.info("Outbound calls have no deadline")
        if self.settings.registry_capacity is None:
            logger.info("Response registry is unbounded")

        try:
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()
            logger.info("Relay server stopped")


def main() -> None:
    """Entry point for the server."""
    settings = get_settings()
    setup_logging(settings.log_level, access_log=settings.access_log)

    server = RelayServer(settings)

    try:
        uvloop.run(server.start())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    main()
