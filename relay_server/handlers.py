"""HTTP request handlers."""

from aiohttp import web

from .errors import RelayError
from .logging import get_logger
from .translator import RelayExecutor, encode_relay_response, parse_relay_request

logger = get_logger(__name__)


class RequestHandlers:
    """HTTP request handlers for the relay server."""

    def __init__(self, executor: RelayExecutor) -> None:
        self.executor = executor

    async def handle_proxy(self, request: web.Request) -> web.Response:
        """Relay the described request upstream and answer with its summary."""
        logger.info("Received request")

        try:
            raw = await request.read()
            relay_request = parse_relay_request(raw)
            summary = await self.executor.relay(relay_request)
            payload = encode_relay_response(summary)
        except RelayError as exc:
            return web.Response(text=str(exc), status=exc.status)

        return web.Response(text=payload, content_type="application/json")
