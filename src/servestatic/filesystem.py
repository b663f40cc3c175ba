"""File-system capabilities consumed by the static file pipeline.

The pipeline never touches :mod:`os` directly: it asks a :class:`FileSystem`
for ``stat`` metadata, opens handles and reads byte ranges.
:class:`LocalFileSystem` implements the protocol on top of the local disk and
offloads every blocking call to a :class:`TaskExecutor`.
"""

from __future__ import annotations

import logging
import os
import stat as stat_module
from typing import Any, BinaryIO, Protocol

import msgspec

from .exceptions import InternalIOError, errno_name
from .execution import TaskExecutor

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class FileStat(msgspec.Struct, frozen=True):
    """The subset of ``stat`` metadata the pipeline relies on."""

    size: int
    mtime: float
    mode: int

    @property
    def is_dir(self) -> bool:
        return stat_module.S_ISDIR(self.mode)

    @property
    def is_file(self) -> bool:
        return stat_module.S_ISREG(self.mode)

    @property
    def mtime_ms(self) -> int:
        return int(self.mtime * 1000)


class FileSystem(Protocol):
    async def stat(self, path: str) -> FileStat: ...

    async def open(self, path: str) -> BinaryIO: ...

    async def read(self, handle: BinaryIO, offset: int, length: int) -> bytes: ...

    async def close(self, handle: BinaryIO) -> None: ...


def _stat_path(path: str) -> FileStat:
    metadata = os.stat(path)
    return FileStat(size=metadata.st_size, mtime=metadata.st_mtime, mode=metadata.st_mode)


def _open_path(path: str) -> BinaryIO:
    return open(path, "rb")


def _read_handle(handle: BinaryIO, offset: int, length: int) -> bytes:
    handle.seek(offset)
    return handle.read(length)


class LocalFileSystem:
    """:class:`FileSystem` backed by the local disk."""

    def __init__(self, executor: TaskExecutor) -> None:
        self._executor = executor

    async def stat(self, path: str) -> FileStat:
        return await self._executor.run(_stat_path, path)

    async def open(self, path: str) -> BinaryIO:
        return await self._executor.run(_open_path, path)

    async def read(self, handle: BinaryIO, offset: int, length: int) -> bytes:
        return await self._executor.run(_read_handle, handle, offset, length)

    async def close(self, handle: BinaryIO) -> None:
        await self._executor.run(handle.close)


class FileStream:
    """Async iterator over ``length`` bytes of an open file starting at ``offset``.

    The handle is closed when the interval is exhausted, when a read fails, or
    when the consumer calls :meth:`aclose` (for example after the client went
    away). Reads never go past the interval.
    """

    def __init__(
        self,
        filesystem: FileSystem,
        handle: BinaryIO,
        *,
        offset: int,
        length: int,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._filesystem = filesystem
        self._handle: BinaryIO | None = handle
        self._position = offset
        self._remaining = length
        self._chunk_size = chunk_size

    @property
    def closed(self) -> bool:
        return self._handle is None

    @property
    def remaining(self) -> int:
        return self._remaining

    def __aiter__(self) -> "FileStream":
        return self

    async def __anext__(self) -> bytes:
        handle = self._handle
        if handle is None:
            raise StopAsyncIteration
        if self._remaining <= 0:
            await self.aclose()
            raise StopAsyncIteration
        size = min(self._chunk_size, self._remaining)
        try:
            chunk = await self._filesystem.read(handle, self._position, size)
        except OSError as exc:
            logger.exception("Reading static file failed")
            await self.aclose()
            raise InternalIOError(errno_name(exc)) from exc
        if not chunk:
            # File shrank after the headers were computed.
            logger.warning("Static file ended %d bytes early", self._remaining)
            await self.aclose()
            raise StopAsyncIteration
        self._position += len(chunk)
        self._remaining -= len(chunk)
        return chunk

    async def aclose(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        self._remaining = 0
        try:
            await self._filesystem.close(handle)
        except OSError:  # pragma: no cover - close failures leave nothing to recover
            logger.debug("Closing static file handle failed", exc_info=True)

    async def __aenter__(self) -> "FileStream":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()


__all__ = ["DEFAULT_CHUNK_SIZE", "FileStat", "FileStream", "FileSystem", "LocalFileSystem"]
