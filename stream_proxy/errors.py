from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse


class StreamProxyError(Exception):
    """Base for failures that are turned into a plain-text HTTP response."""

    status_code = 500
    detail = "Internal streaming error"

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None):
        if detail is not None:
            self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.detail)


class MissingParameter(StreamProxyError):
    status_code = 400

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing {name}")


class UpstreamError(StreamProxyError):
    def __init__(self, status_code: int, reason: str):
        self.reason = reason
        super().__init__(f"Upstream error: {reason}", status_code)


class InternalStreamingError(StreamProxyError):
    pass


async def _render(request: Request, exc: StreamProxyError) -> PlainTextResponse:
    return PlainTextResponse(exc.detail, status_code=exc.status_code)


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(StreamProxyError, _render)
