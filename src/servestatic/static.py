"""Static file serving middleware.

:class:`ServeStatic` runs one pass per request: resolve the path, select a
candidate, evaluate the conditional headers, evaluate ``Range`` and finally
stream the file. Client errors raised before a file has been identified are
handed to the next handler when ``fallthrough`` is enabled; once a file is
identified every error propagates to the host.
"""

from __future__ import annotations

import logging
import mimetypes
import os
from typing import Awaitable, Callable

from .candidates import CandidateSelector, DirectoryTarget, FileTarget, NotFoundTarget, directory_policy
from .conditional import Condition, cache_control, compute_etag, evaluate_conditions, last_modified
from .config import StaticConfig
from .exceptions import (
    HTTPError,
    MethodNotAllowedError,
    NotFoundError,
    PreconditionFailedError,
    RangeNotSatisfiableError,
    from_os_error,
)
from .execution import TaskExecutor
from .filesystem import FileStat, FileStream, FileSystem, LocalFileSystem
from .http import Status
from .paths import ResolvedPath, resolve_path
from .precompressed import GzipIndex, accepts_gzip
from .ranges import RangeKind, evaluate_range
from .requests import Request
from .responses import Response, exception_to_response

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]
SetHeadersHook = Callable[[dict[str, str], str, FileStat], None]

ALLOWED_METHODS = ("GET", "HEAD")


def content_type_for(path: str, overrides: dict[str, str] | None = None) -> str:
    """Return the ``Content-Type`` for ``path``; ``text/*`` types get a UTF-8 charset."""

    suffix = os.path.splitext(path)[1].lower()
    override = (overrides or {}).get(suffix)
    if override:
        return override
    guessed, _ = mimetypes.guess_type(os.path.basename(path))
    if guessed is None:
        return "application/octet-stream"
    if guessed.startswith("text/") and "charset=" not in guessed:
        return f"{guessed}; charset=utf-8"
    return guessed


class _Transfer:
    """Per-request state; never shared between requests."""

    __slots__ = ("identified", "request")

    def __init__(self, request: Request) -> None:
        self.request = request
        self.identified = False


class ServeStatic:
    """Serve files below ``config.root`` as a request middleware."""

    def __init__(
        self,
        config: StaticConfig,
        *,
        set_headers: SetHeadersHook | None = None,
        executor: TaskExecutor | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        if set_headers is not None and not callable(set_headers):
            raise TypeError("option set_headers must be function")
        self.config = config
        self._set_headers = set_headers
        self._owns_executor = executor is None and filesystem is None
        if filesystem is None:
            executor = executor or TaskExecutor()
            filesystem = LocalFileSystem(executor)
        self._executor = executor
        self._filesystem: FileSystem = filesystem
        self._selector = CandidateSelector(config, self._filesystem)
        self._directory_policy = directory_policy(config.redirect)
        self._content_types = dict(config.content_types)
        self._gzip = GzipIndex.scan(config.root) if config.serve_gzip else None

    async def __call__(self, request: Request, handler: Handler) -> Response:
        if request.method not in ALLOWED_METHODS:
            if self.config.fallthrough:
                return await handler(request)
            return exception_to_response(MethodNotAllowedError(ALLOWED_METHODS), include_body=False)
        transfer = _Transfer(request)
        try:
            return await self.serve(transfer)
        except HTTPError as exc:
            if self.config.fallthrough and not transfer.identified and exc.status < 500:
                logger.debug("Static lookup for %s fell through: %s", request.path, exc.name)
                return await handler(request)
            raise

    @property
    def executor(self) -> TaskExecutor | None:
        """The thread pool behind the local file system, if one is in use."""

        return self._executor

    async def shutdown(self) -> None:
        if self._owns_executor and self._executor is not None:
            await self._executor.shutdown()

    async def serve(self, transfer: _Transfer) -> Response:
        request = transfer.request
        path = request.path
        # The mount point itself must redirect to "<mount>/".
        if path in ("", "/") and not request.original_path.endswith("/"):
            path = ""
        resolved = resolve_path(self.config, path)

        target = await self._precompressed(request, resolved)
        encoded = target is not None
        if target is None:
            if resolved.trailing_slash and self.config.index:
                target = await self._selector.select_index(resolved)
            else:
                target = await self._selector.select(resolved)
        if isinstance(target, NotFoundTarget):
            raise NotFoundError(target.reason)
        if isinstance(target, DirectoryTarget):
            return self._directory_policy.handle(request, resolved)

        transfer.identified = True
        content_path = resolved.path if encoded else target.path
        logger.debug("Serving %s for %s", target.path, request.path)
        return await self._send_file(request, target, content_path, encoded=encoded)

    async def _precompressed(self, request: Request, resolved: ResolvedPath) -> FileTarget | None:
        if self._gzip is None or not accepts_gzip(request.header("accept-encoding")):
            return None
        candidate = self._gzip.lookup(resolved)
        if candidate is None:
            return None
        try:
            stat = await self._filesystem.stat(candidate)
        except OSError:
            logger.debug("Indexed gzip sibling disappeared", exc_info=True)
            return None
        if not stat.is_file:
            return None
        return FileTarget(path=candidate, stat=stat)

    def _entity_headers(self, target: FileTarget, content_path: str, *, encoded: bool) -> dict[str, str]:
        config = self.config
        stat = target.stat
        headers: dict[str, str] = {}
        if config.accept_ranges:
            headers["accept-ranges"] = "bytes"
        if config.cache_control:
            headers["cache-control"] = cache_control(config)
        if config.last_modified:
            headers["last-modified"] = last_modified(stat)
        if config.etag:
            headers["etag"] = compute_etag(stat)
        headers["content-type"] = content_type_for(content_path, self._content_types)
        if encoded:
            headers["content-encoding"] = "gzip"
            headers["vary"] = "Accept-Encoding"
        return headers

    async def _send_file(
        self,
        request: Request,
        target: FileTarget,
        content_path: str,
        *,
        encoded: bool,
    ) -> Response:
        stat = target.stat
        head = request.method == "HEAD"
        headers = self._entity_headers(target, content_path, encoded=encoded)
        etag = headers.get("etag")

        condition = evaluate_conditions(request.headers, stat, etag)
        if condition is Condition.PRECONDITION_FAILED:
            return exception_to_response(PreconditionFailedError(), include_body=not head)
        if condition is Condition.NOT_MODIFIED:
            self._run_hook(headers, target)
            kept = tuple((name, value) for name, value in headers.items() if not name.lower().startswith("content-"))
            return Response(status=int(Status.NOT_MODIFIED), headers=kept)

        status = int(Status.OK)
        offset, length = 0, stat.size
        if self.config.accept_ranges:
            modified = int(stat.mtime) if self.config.last_modified else None
            result = evaluate_range(request.headers, stat.size, etag=etag, modified=modified)
            if result.kind is RangeKind.UNSATISFIABLE:
                error = RangeNotSatisfiableError(stat.size)
                return exception_to_response(error, include_body=False).with_headers((("accept-ranges", "bytes"),))
            if result.kind is RangeKind.PARTIAL and result.interval is not None:
                status = int(Status.PARTIAL_CONTENT)
                offset, length = result.interval.start, result.interval.length
                headers["content-range"] = result.interval.content_range(stat.size)
        headers["content-length"] = str(length)
        self._run_hook(headers, target)

        if head:
            return Response(status=status, headers=tuple(headers.items()))
        try:
            handle = await self._filesystem.open(target.path)
        except OSError as exc:
            raise from_os_error(exc) from exc
        stream = FileStream(
            self._filesystem,
            handle,
            offset=offset,
            length=length,
            chunk_size=self.config.chunk_size,
        )
        return Response(status=status, headers=tuple(headers.items()), stream=stream)

    def _run_hook(self, headers: dict[str, str], target: FileTarget) -> None:
        if self._set_headers is not None:
            self._set_headers(headers, target.path, target.stat)


def serve_static(
    root: str | os.PathLike[str],
    *,
    set_headers: SetHeadersHook | None = None,
    executor: TaskExecutor | None = None,
    filesystem: FileSystem | None = None,
    **options: object,
) -> ServeStatic:
    """Build a :class:`ServeStatic` middleware for ``root``.

    ``options`` are the keyword arguments of :meth:`StaticConfig.from_options`.
    """

    config = StaticConfig.from_options(root, **options)  # type: ignore[arg-type]
    return ServeStatic(config, set_headers=set_headers, executor=executor, filesystem=filesystem)


__all__ = ["ALLOWED_METHODS", "Handler", "ServeStatic", "SetHeadersHook", "content_type_for", "serve_static"]
