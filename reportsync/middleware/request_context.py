"""Per-request identifiers: a correlation id and the acting user."""

from __future__ import annotations

import contextvars
import re
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

REQUEST_ID_HEADER = "X-Request-ID"
USER_ID_HEADER = "X-User-ID"

_REQUEST_ID: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_ACTOR: contextvars.ContextVar[str | None] = contextvars.ContextVar("actor", default=None)

_TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9._@:-]{1,128}$")


def get_request_id(default: str | None = None) -> str | None:
    """Return the correlation id of the request being handled."""

    return _REQUEST_ID.get() or default


def get_actor(default: str | None = None) -> str | None:
    """Return the user id sent with the current request, if it was well formed."""

    return _ACTOR.get() or default


def clean_token(value: str | None) -> str | None:
    """Return ``value`` stripped when it is a safe header token, else ``None``."""

    if not value:
        return None
    candidate = value.strip()
    return candidate if _TOKEN_PATTERN.match(candidate) else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind the request id and user id to context variables for the request.

    The request id is echoed back in the response; a missing or malformed one
    is replaced with a generated token.
    """

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER) -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next):
        request_id = clean_token(request.headers.get(self.header_name)) or uuid.uuid4().hex
        request_token = _REQUEST_ID.set(request_id)
        actor_token = _ACTOR.set(clean_token(request.headers.get(USER_ID_HEADER)))
        try:
            response = await call_next(request)
        finally:
            _ACTOR.reset(actor_token)
            _REQUEST_ID.reset(request_token)
        response.headers[self.header_name] = request_id
        return response


__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContextMiddleware",
    "USER_ID_HEADER",
    "clean_token",
    "get_actor",
    "get_request_id",
]
