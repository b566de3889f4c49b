"""ReportSync service entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .database import init_db
from .middleware import RequestContextMiddleware, get_request_id
from .observability import RequestMetricsMiddleware
from .routers import admin, health, observability, reports, section_types
from .utils.errors import ReportSyncError
from .utils.logging import configure_logging

settings = get_settings()
configure_logging()
logger = logging.getLogger("uvicorn.error")

cors_allow_origins = list(settings.cors_allow_origins) or [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
allow_credentials = "*" not in cors_allow_origins
if not allow_credentials:
    cors_allow_origins = ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and run migrations before serving requests."""

    init_db()
    yield


app = FastAPI(title="ReportSync", version=__version__, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(RequestMetricsMiddleware)


ROUTERS: Iterable = (
    health.router,
    reports.router,
    admin.router,
    section_types.router,
    observability.router,
)

for router in ROUTERS:
    app.include_router(router)


@app.exception_handler(ReportSyncError)
async def handle_engine_error(request: Request, exc: ReportSyncError) -> JSONResponse:
    """Answer engine errors that escaped a router with a 422 and their code."""

    logger.warning(
        "%s while processing %s %s: %s",
        exc.code,
        request.method,
        request.url.path,
        exc.message,
    )
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "code": exc.code, "requestId": get_request_id()},
    )


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Ensure unexpected exceptions return a JSON payload."""

    logger.exception(
        "Unhandled exception while processing %s %s", request.method, request.url.path
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error", "requestId": get_request_id()},
    )


__all__ = ["app"]
