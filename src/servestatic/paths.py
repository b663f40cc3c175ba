"""Turn request paths into file-system paths confined to the configured root."""

from __future__ import annotations

import os
import posixpath
import re
from urllib.parse import quote, unquote_to_bytes

import msgspec

from .config import DotfilesPolicy, StaticConfig
from .exceptions import BadRequestError, ForbiddenError, NotFoundError

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_URL_SAFE = "!%&'()*+,/:;=?@[]~"


class ResolvedPath(msgspec.Struct, frozen=True):
    """A request path mapped below the root.

    ``relative`` is the normalized, ``/``-separated path below the root (``""``
    for the root itself) and ``trailing_slash`` records whether the decoded
    request path ended in ``/``.
    """

    path: str
    relative: str
    trailing_slash: bool


def decode_path(raw: str) -> str:
    """Strictly percent-decode ``raw`` as UTF-8."""

    if _BAD_ESCAPE.search(raw):
        raise BadRequestError("malformed_escape")
    try:
        decoded = unquote_to_bytes(raw).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BadRequestError("malformed_escape") from exc
    if "\x00" in decoded:
        raise BadRequestError("null_byte")
    return decoded


def collapse_leading_slashes(value: str) -> str:
    """Collapse every leading run of slashes into a single one."""

    stripped = value.lstrip("/")
    if len(value) - len(stripped) > 1:
        return "/" + stripped
    return value


def encode_url(value: str) -> str:
    """Percent-encode ``value`` for a header, keeping valid escapes as they are."""

    return quote(_BAD_ESCAPE.sub("%25", value), safe=_URL_SAFE)


def is_within(root: str, target: str) -> bool:
    return target == root or os.path.commonpath([root, target]) == root


def contains_dotfile(parts: list[str]) -> bool:
    return any(len(part) > 1 and part.startswith(".") for part in parts)


def resolve_path(config: StaticConfig, raw_path: str) -> ResolvedPath:
    """Map ``raw_path`` below ``config.root`` or raise the matching error.

    ``..`` segments are collapsed first; a path that still climbs above the
    root is forbidden. Dotfile segments are then checked against
    ``config.dotfiles``.
    """

    decoded = collapse_leading_slashes(decode_path(raw_path))
    trailing_slash = decoded.endswith("/")
    relative = decoded.lstrip("/")
    if os.sep != "/":  # pragma: no cover - windows separators
        relative = relative.replace(os.sep, "/")
    normalized = posixpath.normpath("./" + relative) if relative else ""
    if normalized == ".":
        normalized = ""
    if normalized == ".." or normalized.startswith("../"):
        raise ForbiddenError("path_outside_root")
    parts = normalized.split("/") if normalized else []
    if contains_dotfile(parts):
        if config.dotfiles == DotfilesPolicy.DENY:
            raise ForbiddenError("dotfile_denied")
        if config.dotfiles == DotfilesPolicy.IGNORE:
            raise NotFoundError("not_found")
    root = config.root
    target = os.path.normpath(os.path.join(root, *parts)) if parts else root
    if not is_within(root, target):
        raise ForbiddenError("path_outside_root")
    return ResolvedPath(path=target, relative=normalized, trailing_slash=trailing_slash)


__all__ = [
    "ResolvedPath",
    "collapse_leading_slashes",
    "contains_dotfile",
    "decode_path",
    "encode_url",
    "is_within",
    "resolve_path",
]
