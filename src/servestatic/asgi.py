"""ASGI host for the static file middleware."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, Mapping
from urllib.parse import quote

from .exceptions import HTTPError
from .middleware import Handler, MiddlewareCallable, apply_middleware
from .requests import Request
from .responses import Response, exception_to_response
from .testing import not_found_endpoint

logger = logging.getLogger(__name__)

Receive = Callable[[], Awaitable[Mapping[str, Any]]]
Send = Callable[[Mapping[str, Any]], Awaitable[None]]


class StaticFilesApp:
    """Expose one middleware as an ASGI 3 application.

    Requests the middleware does not handle reach ``endpoint`` (a plain 404 by
    default). ``HTTPError`` raised out of the middleware is rendered as a JSON
    error response.
    """

    def __init__(
        self,
        middleware: MiddlewareCallable,
        *,
        endpoint: Handler | None = None,
        mount: str = "",
    ) -> None:
        self.middleware = middleware
        self.mount = mount
        self._handler = apply_middleware((middleware,), endpoint or not_found_endpoint)

    async def __call__(self, scope: Mapping[str, Any], receive: Receive, send: Send) -> None:
        scope_type = scope.get("type")
        if scope_type == "http":
            await self._handle_http(scope, receive, send)
            return
        if scope_type == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        raise RuntimeError("StaticFilesApp only supports HTTP and lifespan scopes")

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            message_type = message.get("type")
            if message_type == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message_type == "lifespan.shutdown":
                shutdown = getattr(self.middleware, "shutdown", None)
                if shutdown is not None:
                    await shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def _handle_http(self, scope: Mapping[str, Any], receive: Receive, send: Send) -> None:
        headers = {key.decode("latin-1").lower(): value.decode("latin-1") for key, value in scope.get("headers", [])}
        raw_path = scope.get("raw_path")
        path = raw_path.decode("latin-1") if raw_path else quote(scope.get("path", "/"), safe="/:@!$&'()*+,;=~")
        request = Request(
            method=scope["method"],
            path=path,
            headers=headers,
            query_string=(scope.get("query_string") or b"").decode("latin-1"),
            original_path=path,
        )
        if self.mount:
            request = request.mounted(self.mount)
        try:
            response = await self._handler(request)
        except HTTPError as exc:
            response = exception_to_response(exc, include_body=request.method != "HEAD")
        await send(
            {
                "type": "http.response.start",
                "status": response.status,
                "headers": [(k.encode("latin-1"), v.encode("latin-1")) for k, v in response.headers],
            }
        )
        await _send_response_body(response, receive, send)


async def _watch_disconnect(receive: Receive, disconnected: asyncio.Event) -> None:
    while True:
        message = await receive()
        if message.get("type") == "http.disconnect":
            disconnected.set()
            return


async def _send_response_body(response: Response, receive: Receive, send: Send) -> None:
    stream = response.stream
    if stream is None:
        await send({"type": "http.response.body", "body": response.body, "more_body": False})
        return
    disconnected = asyncio.Event()
    watcher = asyncio.ensure_future(_watch_disconnect(receive, disconnected))
    try:
        async for chunk in stream:
            if disconnected.is_set():
                logger.debug("Client disconnected while streaming a static file")
                return
            await send({"type": "http.response.body", "body": chunk, "more_body": True})
    except OSError:
        logger.debug("Client went away while streaming a static file", exc_info=True)
        return
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher
        await stream.aclose()
    if disconnected.is_set():
        return
    await send({"type": "http.response.body", "body": b"", "more_body": False})


__all__ = ["StaticFilesApp"]
