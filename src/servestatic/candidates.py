"""Candidate selection and directory handling."""

from __future__ import annotations

import logging
import os
from typing import Protocol, Union

import msgspec

from .config import StaticConfig
from .exceptions import InternalIOError, NotFoundError, errno_name, is_missing
from .filesystem import FileStat, FileSystem
from .paths import ResolvedPath, collapse_leading_slashes, encode_url, is_within
from .requests import Request
from .responses import Response, redirect_response

logger = logging.getLogger(__name__)


class FileTarget(msgspec.Struct, frozen=True, tag="file"):
    path: str
    stat: FileStat


class DirectoryTarget(msgspec.Struct, frozen=True, tag="directory"):
    path: str


class NotFoundTarget(msgspec.Struct, frozen=True, tag="not_found"):
    reason: str = "ENOENT"


ResolvedTarget = Union[FileTarget, DirectoryTarget, NotFoundTarget]


class CandidateSelector:
    """Decide which file-system entry answers a resolved path."""

    def __init__(self, config: StaticConfig, filesystem: FileSystem) -> None:
        self._config = config
        self._filesystem = filesystem

    async def select(self, resolved: ResolvedPath) -> ResolvedTarget:
        """Return the literal file, an extension fallback, a directory, or not-found."""

        probe = await self._probe(resolved.path)
        if isinstance(probe, FileStat) and probe.is_file:
            if resolved.trailing_slash:
                return NotFoundTarget("ENOTDIR")
            return FileTarget(path=resolved.path, stat=probe)
        # Extensions never apply to the root itself: root + ".ext" is a sibling.
        if self._config.extensions and resolved.relative and not resolved.trailing_slash:
            for extension in self._config.extensions:
                candidate = f"{resolved.path}.{extension}"
                found = await self._probe(candidate)
                if isinstance(found, FileStat) and found.is_file:
                    return FileTarget(path=candidate, stat=found)
        if isinstance(probe, FileStat):
            if probe.is_dir:
                return DirectoryTarget(path=resolved.path)
            return NotFoundTarget("not_a_file")
        return probe

    async def select_index(self, resolved: ResolvedPath) -> FileTarget | NotFoundTarget:
        """Try each configured index name inside ``resolved`` in order."""

        missing = NotFoundTarget("ENOENT")
        for name in self._config.index:
            candidate = os.path.normpath(os.path.join(resolved.path, name))
            if not is_within(self._config.root, candidate):
                logger.debug("Index %r escapes the static root", name)
                continue
            found = await self._probe(candidate)
            if isinstance(found, NotFoundTarget):
                missing = found
                continue
            if found.is_file:
                return FileTarget(path=candidate, stat=found)
        return missing

    async def _probe(self, path: str) -> FileStat | NotFoundTarget:
        try:
            return await self._filesystem.stat(path)
        except OSError as exc:
            if is_missing(exc):
                return NotFoundTarget(errno_name(exc))
            raise InternalIOError(errno_name(exc)) from exc


class DirectoryPolicy(Protocol):
    def handle(self, request: Request, resolved: ResolvedPath) -> Response: ...


def redirect_location(original_path: str, query_string: str = "") -> str:
    """Return ``original_path`` with one trailing slash, encoded, query kept."""

    location = collapse_leading_slashes(original_path + "/")
    if query_string:
        location = f"{location}?{query_string}"
    return encode_url(location)


class RedirectDirectoryPolicy:
    """Redirect ``/dir`` to ``/dir/``; a path already ending in ``/`` is not found."""

    def handle(self, request: Request, resolved: ResolvedPath) -> Response:
        if resolved.trailing_slash:
            raise NotFoundError("ENOENT")
        location = redirect_location(request.original_path, request.query_string)
        logger.debug("Redirecting directory request %s to %s", request.original_path, location)
        return redirect_response(location)


class NotFoundDirectoryPolicy:
    def handle(self, request: Request, resolved: ResolvedPath) -> Response:
        raise NotFoundError("ENOENT")


def directory_policy(redirect: bool) -> DirectoryPolicy:
    if redirect:
        return RedirectDirectoryPolicy()
    return NotFoundDirectoryPolicy()


__all__ = [
    "CandidateSelector",
    "DirectoryPolicy",
    "DirectoryTarget",
    "FileTarget",
    "NotFoundDirectoryPolicy",
    "NotFoundTarget",
    "RedirectDirectoryPolicy",
    "ResolvedTarget",
    "directory_policy",
    "redirect_location",
]
