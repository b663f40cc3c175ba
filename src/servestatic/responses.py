"""Response primitives."""

from __future__ import annotations

import html
from typing import TYPE_CHECKING, Iterable

import msgspec

from .exceptions import HTTPError
from .http import Status

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from .filesystem import FileStream


HARDENED_HEADERS: tuple[tuple[str, str], ...] = (
    ("content-security-policy", "default-src 'none'"),
    ("x-content-type-options", "nosniff"),
)

Headers = tuple[tuple[str, str], ...]


class Response(msgspec.Struct, frozen=True):
    """Immutable response payload.

    ``stream`` carries the file body when the response streams from disk; it is
    ``None`` for responses whose whole body lives in ``body``.
    """

    status: int = int(Status.OK)
    headers: Headers = ()
    body: bytes = b""
    stream: "FileStream | None" = None

    def with_headers(self, headers: Iterable[tuple[str, str]]) -> "Response":
        """Return a new response with ``headers`` appended."""

        return Response(
            status=self.status,
            headers=self.headers + tuple(headers),
            body=self.body,
            stream=self.stream,
        )

    def header(self, name: str, default: str | None = None) -> str | None:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return default

    async def read(self) -> bytes:
        """Return the full body, draining and closing ``stream`` if present."""

        if self.stream is None:
            return self.body
        chunks = [self.body] if self.body else []
        try:
            async for chunk in self.stream:
                chunks.append(chunk)
        finally:
            await self.stream.aclose()
        return b"".join(chunks)


def apply_default_security_headers(
    response: Response,
    *,
    headers: Iterable[tuple[str, str]] | None = None,
) -> Response:
    """Append hardening headers to ``response`` when missing."""

    baseline = tuple(headers or HARDENED_HEADERS)
    if not baseline:
        return response
    existing = {name.lower() for name, _ in response.headers}
    additions = tuple((name, value) for name, value in baseline if name.lower() not in existing)
    if not additions:
        return response
    return response.with_headers(additions)


def exception_to_response(exc: HTTPError, *, include_body: bool = True) -> Response:
    """Render ``exc`` as a JSON error response (or a bodiless one)."""

    body = exc.to_response_body() if include_body else b""
    headers: list[tuple[str, str]] = []
    if body:
        headers.append(("content-type", "application/json"))
    headers.append(("content-length", str(len(body))))
    headers.extend(exc.headers)
    response = Response(status=exc.status, headers=tuple(headers), body=body)
    return apply_default_security_headers(response)


def redirect_response(location: str, *, status: int = int(Status.MOVED_PERMANENTLY)) -> Response:
    """Create a redirect whose body links to ``location`` for clients that do not follow it."""

    escaped = html.escape(location, quote=True)
    document = (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        "<title>Redirecting</title>\n"
        "</head>\n"
        "<body>\n"
        f'<pre>Redirecting to <a href="{escaped}">{escaped}</a></pre>\n'
        "</body>\n"
        "</html>\n"
    )
    body = document.encode("utf-8")
    response = Response(
        status=status,
        headers=(
            ("content-type", "text/html; charset=utf-8"),
            ("content-length", str(len(body))),
            ("location", location),
        ),
        body=body,
    )
    return apply_default_security_headers(response)


__all__ = [
    "HARDENED_HEADERS",
    "Headers",
    "Response",
    "apply_default_security_headers",
    "exception_to_response",
    "redirect_response",
]
