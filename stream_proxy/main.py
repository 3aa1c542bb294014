import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Use absolute package imports so uvicorn can resolve the module reliably.
from stream_proxy.config import CORS_METHODS, CORS_ORIGINS, Settings, load_settings
from stream_proxy.errors import register_error_handlers
from stream_proxy.routes.core import router as core_router

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the proxy app. `transport` replaces the network for the upstream
    client (tests pass an httpx.MockTransport).

    Also usable as a uvicorn factory:
    `uvicorn stream_proxy.main:create_app --factory --port N`
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(
            transport=transport,
            timeout=httpx.Timeout(settings.upstream_timeout),
            follow_redirects=True,
        ) as client:
            app.state.http = client
            yield

    app = FastAPI(title="Stream Proxy", lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=CORS_METHODS,
        allow_credentials=True,
    )
    register_error_handlers(app)
    app.include_router(core_router)
    return app


def run():
    settings = load_settings()
    configure_logging(settings.log_level)
    logger.info("Streaming server running on port %d", settings.port)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
