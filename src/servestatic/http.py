"""HTTP status codes and header helpers used by the static file pipeline."""

from __future__ import annotations

import calendar
from email.utils import formatdate, parsedate_tz
from enum import IntEnum
from http import HTTPStatus as _HTTPStatus


class Status(IntEnum):
    """Enumeration of the HTTP status codes the middleware can produce."""

    OK = 200
    PARTIAL_CONTENT = 206
    MOVED_PERMANENTLY = 301
    NOT_MODIFIED = 304
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    PRECONDITION_FAILED = 412
    RANGE_NOT_SATISFIABLE = 416
    INTERNAL_SERVER_ERROR = 500


def ensure_status(status: int | Status) -> int:
    """Normalize ``status`` to an ``int`` and ensure it is within the HTTP range."""

    code = int(status)
    if code < 100 or code > 599:
        raise ValueError(f"Invalid HTTP status code: {status}")
    return code


def reason_phrase(status: int | Status) -> str:
    """Return the HTTP reason phrase for ``status`` if known."""

    try:
        code = ensure_status(status)
    except ValueError:
        return "Unknown Status"
    try:
        return _HTTPStatus(code).phrase
    except ValueError:  # pragma: no cover - non-standard status codes
        return "Unknown Status"


def http_date(timestamp: float) -> str:
    """Format ``timestamp`` as an IMF-fixdate (second precision)."""

    return formatdate(int(timestamp), usegmt=True)


def parse_http_date(value: str | None) -> int | None:
    """Parse an HTTP date into epoch seconds, returning ``None`` when invalid."""

    if not value:
        return None
    parsed = parsedate_tz(value.strip())
    if parsed is None:
        return None
    offset = parsed[9] or 0
    try:
        return calendar.timegm(parsed[:6] + (0, 0, 0)) - offset
    except (OverflowError, ValueError):
        return None


def parse_token_list(value: str) -> list[str]:
    """Split a comma separated header into its non-empty, stripped tokens."""

    return [token.strip() for token in value.split(",") if token.strip()]


__all__ = [
    "Status",
    "ensure_status",
    "http_date",
    "parse_http_date",
    "parse_token_list",
    "reason_phrase",
]
