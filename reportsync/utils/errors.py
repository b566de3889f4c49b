from __future__ import annotations

from typing import Any, Dict


class ReportSyncError(Exception):
    """Base class for engine errors carrying a stable ``code``."""

    code = "error"

    def __init__(self, message: str, extra: Dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class InvalidPath(ReportSyncError):
    """Raised when a dot-path string cannot be parsed."""

    code = "invalid_path"


class ParseError(ReportSyncError):
    """Raised when an update batch cannot be decoded; the whole batch is rejected."""

    code = "parse_error"

    def __init__(
        self,
        message: str,
        raw: str | None = None,
        extra: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, extra)
        self.raw = raw


class ValidationError(ReportSyncError):
    """Raised when a single update is rejected; the batch continues."""

    code = "validation_error"


class PathNotFound(ReportSyncError):
    """Raised by strict lookups when a path does not resolve."""

    code = "path_not_found"


class TypeConflict(ReportSyncError):
    """Raised when ``set`` meets a container of the wrong kind."""

    code = "type_conflict"


class MergeTypeError(ReportSyncError):
    """Raised when a merge strategy is incompatible with the current target."""

    code = "merge_type_error"


class ReconciliationError(ReportSyncError):
    """Raised when a single report cannot be reconciled."""

    code = "reconciliation_error"


class StoreError(ReportSyncError):
    """Raised when the document or row store fails to read or write."""

    code = "store_error"


__all__ = [
    "InvalidPath",
    "MergeTypeError",
    "ParseError",
    "PathNotFound",
    "ReconciliationError",
    "ReportSyncError",
    "StoreError",
    "TypeConflict",
    "ValidationError",
]
