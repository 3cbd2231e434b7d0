# File: /inline_db/core/errors.py | Version: 1.0 | Title: Domain error taxonomy
from __future__ import annotations

from typing import Any, Optional


class InlineDbError(Exception):
    """Base class for every error the Mutation API raises on purpose."""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, *, detail: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidColumnConfig(InlineDbError):
    status_code = 422
    code = "INVALID_COLUMN_CONFIG"


class InvalidEntryProperties(InlineDbError):
    status_code = 422
    code = "INVALID_ENTRY_PROPERTIES"


class CsvParseError(InlineDbError):
    status_code = 422
    code = "CSV_PARSE_ERROR"


class NotFound(InlineDbError):
    status_code = 404
    code = "NOT_FOUND"


class Forbidden(InlineDbError):
    status_code = 403
    code = "FORBIDDEN"


class Conflict(InlineDbError):
    status_code = 409
    code = "CONFLICT"


# ---- Recovered locally; never surfaced through the API ----


class UnresolvedReference(InlineDbError):
    """A rollup, formula or relation points at a deleted column, database or entry."""

    code = "UNRESOLVED_REFERENCE"


class CoercionFailure(InlineDbError):
    """A written value could not be parsed for its column type (stored as null)."""

    code = "COERCION_FAILURE"


class ImportRowFailure(InlineDbError):
    """One import row could not be created. Recorded per row, never aborts the batch."""

    code = "IMPORT_ROW_FAILURE"

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(reason)
        self.index = index
        self.reason = reason
