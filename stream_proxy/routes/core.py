import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from ..errors import InternalStreamingError, MissingParameter, UpstreamError
from ..models import HealthStatus, ProxyRequest
from ..utils import passthrough_headers, upstream_request_headers

router = APIRouter(prefix="/api", tags=["core"])
logger = logging.getLogger(__name__)


class RelayResponse(StreamingResponse):
    """
    Streams an open upstream response to the client.
    The upstream is closed whenever the ASGI call ends: finished, failed,
    or cut short by the client going away.
    """
    def __init__(self, upstream: httpx.Response):
        self.upstream = upstream
        self.finished = False
        super().__init__(
            self._body(),
            status_code=upstream.status_code,
            headers=passthrough_headers(upstream),
        )

    async def _body(self):
        try:
            async for chunk in self.upstream.aiter_raw():
                if chunk:
                    yield chunk
        except Exception:
            # Headers are already out; re-raising makes the server drop the connection.
            logger.exception("Streaming error while relaying %s", self.upstream.url)
            raise
        self.finished = True

    async def __call__(self, scope, receive, send):
        try:
            await super().__call__(scope, receive, send)
        finally:
            if not self.finished:
                logger.debug("Relay of %s ended early, closing upstream", self.upstream.url)
            await self.upstream.aclose()


@router.get("/health", response_model=HealthStatus)
async def health():
    return HealthStatus()


@router.get("/stream")
async def stream(request: Request, url: Optional[str] = None):
    if not url:
        raise MissingParameter("url")
    req = ProxyRequest(url=url, range=request.headers.get("range"))

    try:
        client: httpx.AsyncClient = request.app.state.http
        outbound = client.build_request("GET", req.url, headers=upstream_request_headers(req.range))
        upstream = await client.send(outbound, stream=True)
    except Exception as e:
        logger.exception("Streaming error: fetch of %s failed", req.url)
        raise InternalStreamingError() from e

    if not upstream.is_success:
        await upstream.aclose()
        logger.warning("Upstream %s answered %d %s", req.url, upstream.status_code, upstream.reason_phrase)
        raise UpstreamError(upstream.status_code, upstream.reason_phrase)

    return RelayResponse(upstream)
