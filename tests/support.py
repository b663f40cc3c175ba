"""Test support utilities for the static file middleware tests."""

from __future__ import annotations

from typing import Any, BinaryIO

from servestatic import TestClient, serve_static
from servestatic.filesystem import FileStat


def make_client(root: Any, *, mount: str = "", **options: Any) -> TestClient:
    return TestClient(serve_static(root, **options), mount=mount)


class FakeFileSystem:
    """In-memory :class:`~servestatic.filesystem.FileSystem` with scripted failures."""

    def __init__(self, files: dict[str, bytes], *, mtime: float = 1_700_000_000.0) -> None:
        self.files = dict(files)
        self.mtime = mtime
        self.stat_errors: dict[str, OSError] = {}
        self.open_error: OSError | None = None
        self.read_error: OSError | None = None
        self.opened: list[str] = []
        self.closed = 0
        self.reads: list[tuple[int, int]] = []
        self.stats: list[str] = []

    async def stat(self, path: str) -> FileStat:
        self.stats.append(path)
        if path in self.stat_errors:
            raise self.stat_errors[path]
        if path in self.files:
            return FileStat(size=len(self.files[path]), mtime=self.mtime, mode=0o100644)
        prefix = path.rstrip("/") + "/"
        if any(name.startswith(prefix) for name in self.files):
            return FileStat(size=4096, mtime=self.mtime, mode=0o040755)
        raise FileNotFoundError(2, "No such file or directory")

    async def open(self, path: str) -> BinaryIO:
        if self.open_error is not None:
            raise self.open_error
        self.opened.append(path)
        return _FakeHandle(self.files[path])  # type: ignore[return-value]

    async def read(self, handle: BinaryIO, offset: int, length: int) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        self.reads.append((offset, length))
        data = handle.data  # type: ignore[attr-defined]
        return data[offset : offset + length]

    async def close(self, handle: BinaryIO) -> None:
        self.closed += 1


class _FakeHandle:
    def __init__(self, data: bytes) -> None:
        self.data = data
