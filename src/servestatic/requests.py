"""Request primitives."""

from __future__ import annotations

from typing import Mapping


class Request:
    """Immutable view of an incoming request.

    ``path`` is the raw (still percent-encoded) path relative to the mount
    point, ``original_path`` the raw path the client actually requested. They
    differ when a host mounts the middleware under a prefix.
    """

    __slots__ = (
        "headers",
        "method",
        "original_path",
        "path",
        "query_string",
    )

    def __init__(
        self,
        *,
        method: str,
        path: str,
        headers: Mapping[str, str] | None = None,
        query_string: str | None = None,
        original_path: str | None = None,
    ) -> None:
        self.method = method.upper()
        self.path = path
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.query_string = query_string or ""
        self.original_path = original_path if original_path is not None else path

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    def mounted(self, prefix: str) -> "Request":
        """Return a copy of this request with ``prefix`` stripped from ``path``."""

        stripped = prefix.rstrip("/")
        path = self.path
        if stripped and (path == stripped or path.startswith(stripped + "/")):
            path = path[len(stripped):] or "/"
        return Request(
            method=self.method,
            path=path,
            headers=self.headers,
            query_string=self.query_string,
            original_path=self.original_path,
        )

    def __repr__(self) -> str:
        return f"Request(method={self.method!r}, path={self.path!r})"
