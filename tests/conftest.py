"""Shared fixtures: upstream test doubles and relay clients."""
import asyncio
import gzip
from contextlib import asynccontextmanager

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer
from multidict import CIMultiDict

from relay_server.config import Settings
from relay_server.registry import ResponseRegistry
from relay_server.server import RelayServer
from relay_server.translator import RelayExecutor


class Upstream:
    """Upstream test double that records every request it receives."""

    gzip_plain = b"relay " * 100

    def __init__(self):
        self.calls = []
        self.server = None

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))

    async def _record(self, request: web.Request):
        body = await request.read()
        self.calls.append({
            "method": request.method,
            "path": request.path,
            "headers": request.headers.copy(),
            "body": body,
        })

    async def handle_ok(self, request: web.Request) -> web.Response:
        await self._record(request)
        return web.Response(status=201, body=b"hello", content_type="text/plain")

    async def handle_echo(self, request: web.Request) -> web.Response:
        await self._record(request)
        return web.Response(text=f"body-{request.match_info['name']}")

    async def handle_multi(self, request: web.Request) -> web.Response:
        await self._record(request)
        headers = CIMultiDict([("X-Multi", "first"), ("X-Multi", "second")])
        return web.Response(text="multi", headers=headers)

    async def handle_binary(self, request: web.Request) -> web.Response:
        await self._record(request)
        return web.Response(body=b"\x00\xff\xfe\xfd", content_type="application/octet-stream")

    async def handle_gzip(self, request: web.Request) -> web.Response:
        await self._record(request)
        if "gzip" not in request.headers.get("Accept-Encoding", ""):
            return web.Response(body=self.gzip_plain, content_type="text/plain")
        return web.Response(
            body=gzip.compress(self.gzip_plain),
            content_type="text/plain",
            headers={"Content-Encoding": "gzip"},
        )

    async def handle_slow(self, request: web.Request) -> web.Response:
        await self._record(request)
        await asyncio.sleep(1.0)
        return web.Response(text="late")

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/ok", self.handle_ok)
        app.router.add_route("*", "/echo/{name}", self.handle_echo)
        app.router.add_route("*", "/multi", self.handle_multi)
        app.router.add_route("*", "/binary", self.handle_binary)
        app.router.add_route("*", "/slow", self.handle_slow)
        app.router.add_route("*", "/gzip", self.handle_gzip)
        return app


@pytest_asyncio.fixture
async def upstream():
    """Running upstream test double"""
    double = Upstream()
    double.server = TestServer(double.create_app())
    await double.server.start_server()
    yield double
    await double.server.close()


RAW_TRUNCATED = b"HTTP/1.1 200 OK\r\nContent-Length: 100\r\n\r\nhello"
RAW_BINARY_HEADER = b"HTTP/1.1 200 OK\r\nX-Bin: \xff\xfe\r\nContent-Length: 2\r\n\r\nok"


@asynccontextmanager
async def raw_upstream(payload: bytes):
    """Serve one canned HTTP response per connection, then hang up"""

    async def serve(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        await reader.readuntil(b"\r\n\r\n")
        writer.write(payload)
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(serve, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}/"
    finally:
        server.close()
        await server.wait_closed()


@pytest_asyncio.fixture
async def truncated_upstream():
    """Raw server that promises 100 bytes, sends 5 and hangs up"""
    async with raw_upstream(RAW_TRUNCATED) as url:
        yield url


@pytest_asyncio.fixture
async def binary_header_upstream():
    """Raw server whose header value is not valid UTF-8"""
    async with raw_upstream(RAW_BINARY_HEADER) as url:
        yield url


@pytest.fixture
def registry():
    return ResponseRegistry()


@pytest_asyncio.fixture
async def executor(registry):
    """Relay executor over a live client session"""
    async with aiohttp.ClientSession(auto_decompress=False) as session:
        yield RelayExecutor(session, registry)


@pytest_asyncio.fixture
async def relay_client(registry):
    """In-process client for the relay endpoint"""
    server = RelayServer(Settings(), registry=registry)
    client = TestClient(TestServer(server.create_app()))
    await client.start_server()
    yield client
    await client.close()
