"""ASGI middleware for the ReportSync service."""

from .request_context import (
    RequestContextMiddleware,
    clean_token,
    get_actor,
    get_request_id,
)

__all__ = ["RequestContextMiddleware", "clean_token", "get_actor", "get_request_id"]
