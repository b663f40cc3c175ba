"""Testing helpers."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from .exceptions import HTTPError
from .http import Status
from .middleware import Handler, MiddlewareCallable, apply_middleware
from .requests import Request
from .responses import Response, exception_to_response


async def not_found_endpoint(request: Request) -> Response:
    """Terminal handler used when every middleware fell through."""

    body = b"" if request.method == "HEAD" else b"Not Found"
    return Response(
        status=int(Status.NOT_FOUND),
        headers=(("content-type", "text/plain; charset=utf-8"), ("content-length", "9")),
        body=body,
    )


class TestClient:
    """Async test client that runs middleware in-process like a host framework.

    ``mount`` strips a prefix from ``Request.path`` while ``original_path``
    keeps the full requested path. Errors raised out of the middleware are
    rendered with :func:`exception_to_response`; streamed bodies are collected
    so tests can assert on ``response.body``.
    """

    __test__ = False

    def __init__(
        self,
        middleware: MiddlewareCallable | Iterable[MiddlewareCallable],
        *,
        mount: str = "",
        endpoint: Handler | None = None,
    ) -> None:
        if callable(middleware):
            self._middlewares: tuple[MiddlewareCallable, ...] = (middleware,)
        else:
            self._middlewares = tuple(middleware)
        self.mount = mount
        self._handler = apply_middleware(self._middlewares, endpoint or not_found_endpoint)

    async def __aenter__(self) -> "TestClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        for middleware in self._middlewares:
            shutdown = getattr(middleware, "shutdown", None)
            if shutdown is not None:
                await shutdown()

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        raw_path, _, query_string = path.partition("?")
        request = Request(
            method=method,
            path=raw_path,
            headers=headers,
            query_string=query_string,
            original_path=raw_path,
        )
        if self.mount:
            request = request.mounted(self.mount)
        try:
            response = await self._handler(request)
        except HTTPError as exc:
            return exception_to_response(exc, include_body=request.method != "HEAD")
        body = await response.read()
        return Response(status=response.status, headers=response.headers, body=body)

    async def get(self, path: str, *, headers: Mapping[str, str] | None = None) -> Response:
        return await self.request("GET", path, headers=headers)

    async def head(self, path: str, *, headers: Mapping[str, str] | None = None) -> Response:
        return await self.request("HEAD", path, headers=headers)
