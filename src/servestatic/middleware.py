"""Middleware chaining."""

from __future__ import annotations

from typing import Awaitable, Callable, Iterable, Protocol

from .requests import Request
from .responses import Response

Handler = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    async def __call__(self, request: Request, handler: Handler) -> Response:  # pragma: no cover - protocol
        ...


MiddlewareCallable = Callable[[Request, Handler], Awaitable[Response]]


def apply_middleware(middlewares: Iterable[MiddlewareCallable], endpoint: Handler) -> Handler:
    """Compose ``middlewares`` into one handler; ``endpoint`` answers whatever falls through."""

    chain = tuple(middlewares)
    if not chain:
        return endpoint
    return _Chain(chain, endpoint, 0)


class _Chain:
    """Calls ``middlewares[index]`` with the remainder of the chain as its next handler."""

    __slots__ = ("_endpoint", "_index", "_middlewares")

    def __init__(self, middlewares: tuple[MiddlewareCallable, ...], endpoint: Handler, index: int) -> None:
        self._middlewares = middlewares
        self._endpoint = endpoint
        self._index = index

    async def __call__(self, request: Request) -> Response:
        if self._index >= len(self._middlewares):
            return await self._endpoint(request)
        middleware = self._middlewares[self._index]
        return await middleware(request, _Chain(self._middlewares, self._endpoint, self._index + 1))


__all__ = ["Handler", "Middleware", "MiddlewareCallable", "apply_middleware"]
