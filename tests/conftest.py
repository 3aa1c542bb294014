import re
from typing import Callable, Dict, List, Optional
from urllib.parse import urlencode

import anyio
import httpx
import pytest
from fastapi.testclient import TestClient

from stream_proxy.config import Settings
from stream_proxy.main import create_app

RANGE_RE = re.compile(r"bytes=(\d+)-(\d*)$")


@pytest.fixture
def anyio_backend():
    return "asyncio"


class ChunkedStream(httpx.AsyncByteStream):
    """Upstream body served in fixed-size chunks; remembers whether it was closed."""

    def __init__(self, payload: bytes, chunk_size: int = 4096, fail_after: Optional[int] = None,
                 error: Optional[Exception] = None):
        self.payload = payload
        self.chunk_size = chunk_size
        self.fail_after = fail_after
        self.error = error or httpx.ReadError("upstream reset")
        self.closed = False

    async def __aiter__(self):
        for n, i in enumerate(range(0, len(self.payload), self.chunk_size)):
            if self.fail_after is not None and n >= self.fail_after:
                raise self.error
            await anyio.sleep(0)
            yield self.payload[i:i + self.chunk_size]

    async def aclose(self):
        self.closed = True


class MockUpstream:
    """Stand-in for the remote media server, keyed by absolute URL."""

    def __init__(self):
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def route(self, url: str, handler: Callable[[httpx.Request], httpx.Response]):
        self.routes[url] = handler

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(str(request.url))
        if handler is None:
            return httpx.Response(404)
        return handler(request)


def serve_media(payload: bytes, content_type: str = "audio/mpeg", extra_headers: Optional[Dict[str, str]] = None):
    """Handler for a file server that honors single byte ranges."""
    def handler(request: httpx.Request) -> httpx.Response:
        headers = {"Content-Type": content_type, "Accept-Ranges": "bytes"}
        headers.update(extra_headers or {})
        m = RANGE_RE.match(request.headers.get("range", ""))
        if not m:
            headers["Content-Length"] = str(len(payload))
            return httpx.Response(200, headers=headers, stream=ChunkedStream(payload))
        start = int(m.group(1))
        end = int(m.group(2)) if m.group(2) else len(payload) - 1
        body = payload[start:end + 1]
        headers["Content-Length"] = str(len(body))
        headers["Content-Range"] = f"bytes {start}-{end}/{len(payload)}"
        return httpx.Response(206, headers=headers, stream=ChunkedStream(body))
    return handler


@pytest.fixture
def upstream():
    return MockUpstream()


@pytest.fixture
def app(upstream):
    return create_app(Settings(), transport=upstream.transport)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def http_scope(query: dict, spec_version: str = "2.3") -> dict:
    """Bare ASGI scope for GET /api/stream, for tests that play the server."""
    return {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": spec_version},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": "/api/stream",
        "raw_path": b"/api/stream",
        "root_path": "",
        "query_string": urlencode(query).encode(),
        "headers": [(b"host", b"testserver")],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }
