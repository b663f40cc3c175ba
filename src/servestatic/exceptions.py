"""Error taxonomy raised by the static file pipeline."""

from __future__ import annotations

import errno
from typing import Any, ClassVar, Iterable

from .http import Status, reason_phrase
from .serialization import ErrorDetail, ErrorEnvelope, json_encode


class ServeStaticError(Exception):
    """Base error type."""


class HTTPError(ServeStaticError):
    """An error that maps to an HTTP status and a JSON error body."""

    name: ClassVar[str] = "HTTPError"

    def __init__(
        self,
        status: int,
        detail: Any = None,
        *,
        headers: Iterable[tuple[str, str]] | None = None,
    ) -> None:
        super().__init__(status, detail)
        self.status = status
        self.detail = detail
        self.headers: tuple[tuple[str, str], ...] = tuple(headers or ())

    def to_response_body(self) -> bytes:
        detail = ErrorDetail(
            status=self.status,
            reason=reason_phrase(self.status),
            name=self.name,
            detail=self.detail,
        )
        return json_encode(ErrorEnvelope(error=detail))


class BadRequestError(HTTPError):
    """The request path could not be decoded."""

    name = "BadRequestError"

    def __init__(self, detail: Any = "bad_request") -> None:
        super().__init__(int(Status.BAD_REQUEST), detail)


class ForbiddenError(HTTPError):
    """The request path escapes the root or names a denied dotfile."""

    name = "ForbiddenError"

    def __init__(self, detail: Any = "forbidden") -> None:
        super().__init__(int(Status.FORBIDDEN), detail)


class NotFoundError(HTTPError):
    name = "NotFoundError"

    def __init__(self, detail: Any = "not_found") -> None:
        super().__init__(int(Status.NOT_FOUND), detail)


class MethodNotAllowedError(HTTPError):
    name = "MethodNotAllowedError"

    def __init__(self, allowed: tuple[str, ...] = ("GET", "HEAD")) -> None:
        super().__init__(
            int(Status.METHOD_NOT_ALLOWED),
            "method_not_allowed",
            headers=(("allow", ", ".join(allowed)),),
        )


class PreconditionFailedError(HTTPError):
    name = "PreconditionFailedError"

    def __init__(self, detail: Any = "precondition_failed") -> None:
        super().__init__(int(Status.PRECONDITION_FAILED), detail)


class RangeNotSatisfiableError(HTTPError):
    name = "RangeNotSatisfiableError"

    def __init__(self, size: int) -> None:
        super().__init__(
            int(Status.RANGE_NOT_SATISFIABLE),
            "range_not_satisfiable",
            headers=(("content-range", f"bytes */{size}"),),
        )
        self.size = size


class InternalIOError(HTTPError):
    """A file-system failure other than a missing entry."""

    name = "InternalIOError"

    def __init__(self, detail: Any = "io_error") -> None:
        super().__init__(int(Status.INTERNAL_SERVER_ERROR), detail)


_MISSING_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR, errno.ENAMETOOLONG})


def errno_name(exc: OSError) -> str:
    """Return the symbolic errno of ``exc`` (``"ENOENT"``), never the path."""

    if exc.errno is None:
        return type(exc).__name__
    return errno.errorcode.get(exc.errno, f"E{exc.errno}")


def is_missing(exc: OSError) -> bool:
    """Return ``True`` when ``exc`` means the entry does not exist."""

    return exc.errno in _MISSING_ERRNOS


def from_os_error(exc: OSError) -> HTTPError:
    """Translate ``exc`` into a :class:`NotFoundError` or :class:`InternalIOError`."""

    if is_missing(exc):
        return NotFoundError(errno_name(exc))
    return InternalIOError(errno_name(exc))


__all__ = [
    "BadRequestError",
    "ForbiddenError",
    "HTTPError",
    "InternalIOError",
    "MethodNotAllowedError",
    "NotFoundError",
    "PreconditionFailedError",
    "RangeNotSatisfiableError",
    "ServeStaticError",
    "errno_name",
    "from_os_error",
    "is_missing",
]
