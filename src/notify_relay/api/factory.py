"""FastAPI application factory."""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from notify_relay.context import RelayContext, build_context
from notify_relay.errors import RelayError
from notify_relay.infra.keepalive import run_keepalive
from notify_relay.observability.correlation import (
    CORRELATION_ID_HEADER,
    correlation_scope,
)
from notify_relay.observability.logging import get_logger

from .routers import public
from .routes import messages, pairing

logger = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    relay: RelayContext = app.state.relay
    await relay.session.start()

    keepalive: asyncio.Task | None = None
    if relay.settings.keepalive_url:
        keepalive = asyncio.create_task(
            run_keepalive(relay.settings.keepalive_url, relay.settings.keepalive_interval)
        )

    logger.info(
        "relay started",
        extra={"extra_fields": {"version": relay.settings.version, "port": relay.settings.port}},
    )
    try:
        yield
    finally:
        if keepalive is not None:
            keepalive.cancel()
            try:
                await keepalive
            except asyncio.CancelledError:
                pass
        await relay.session.stop()
        logger.info("relay stopped")


def create_app(context: RelayContext | None = None) -> FastAPI:
    """Create the relay app.

    Args:
        context: Pre-wired collaborators. When None, production collaborators
                 are built from environment variables.

    Returns:
        Configured FastAPI application. The WhatsApp supervisor and the
        optional keep-alive ping start with the app lifespan.
    """
    app = FastAPI(
        title="Notify Relay",
        docs_url=None,
        redoc_url=None,
        lifespan=_lifespan,
    )
    app.state.relay = context or build_context()

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        with correlation_scope(request.headers.get(CORRELATION_ID_HEADER)) as cid:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        logger.warning(
            "request failed",
            extra={
                "extra_fields": {
                    "path": request.url.path,
                    "error_type": type(exc).__name__,
                    "status": exc.status_code,
                }
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.summary, "details": exc.details},
        )

    app.include_router(public.router)
    app.include_router(messages.router)
    app.include_router(pairing.router)

    return app
