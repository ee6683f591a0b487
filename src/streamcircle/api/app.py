"""FastAPI application factory and server startup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from streamcircle.api.pubsub import StatusBus
from streamcircle.api.relay import Relay
from streamcircle.config import Config
from streamcircle.db import close_db, init_db

logger = logging.getLogger(__name__)


def _error_response(status: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message, "status": status}, status_code=status)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _error_response(404, "route not found")
    return _error_response(exc.status_code, str(exc.detail))


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "invalid request")
    return _error_response(400, f"{location}: {message}" if location else message)


def create_api(config: Config) -> FastAPI:
    """Create the app with one status bus shared by the webhooks and the relay."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await init_db(config.database_url)
        logger.info("streamcircle ready (stream host %s)", config.stream_host)
        try:
            yield
        finally:
            await close_db()
            logger.info("Database closed")

    app = FastAPI(
        title="streamcircle",
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    bus = StatusBus()
    app.state.config = config
    app.state.status_bus = bus
    app.state.relay = Relay(bus)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)

    from streamcircle.api.routes import health, hooks, rooms, ws

    app.include_router(health.router)
    app.include_router(rooms.router, prefix="/api")
    app.include_router(hooks.router, prefix="/hooks/rtmp")
    app.include_router(ws.router)

    return app


def run_server(app: FastAPI, host: str, port: int) -> None:
    """Run uvicorn in the foreground until SIGINT/SIGTERM."""
    import uvicorn

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
        access_log=False,
    )
