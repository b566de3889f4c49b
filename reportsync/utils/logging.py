"""Process-wide logging setup; every record carries the active request id."""

from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] | %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp ``record.request_id`` with the id bound by the request middleware."""

    def filter(self, record: logging.LogRecord) -> bool:
        from ..middleware.request_context import get_request_id

        if not hasattr(record, "request_id"):
            record.request_id = get_request_id("-")
        return True


def configure_logging(default_level: str = "INFO") -> logging.Logger:
    level_name = os.getenv("REPORTSYNC_LOG_LEVEL", default_level).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, stream=sys.stdout, format=LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(item, RequestIdFilter) for item in handler.filters):
            handler.addFilter(RequestIdFilter())
    return logging.getLogger("reportsync")


__all__ = ["LOG_FORMAT", "RequestIdFilter", "configure_logging"]
