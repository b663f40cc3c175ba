"""Lookup table of precompressed ``*.gz`` siblings and gzip negotiation."""

from __future__ import annotations

import logging
import os

from .paths import ResolvedPath

logger = logging.getLogger(__name__)


def parse_accept_encoding(header: str) -> dict[str, float]:
    """Return the highest q-value announced for each coding in ``header``."""

    q_values: dict[str, float] = {}
    for raw_part in header.split(","):
        token = raw_part.strip()
        if not token:
            continue
        parts = [segment.strip() for segment in token.split(";") if segment.strip()]
        if not parts:
            continue
        encoding = parts[0].lower()
        quality = 1.0
        for param in parts[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() != "q":
                continue
            try:
                quality = float(value)
            except ValueError:
                quality = 0.0
        existing = q_values.get(encoding)
        if existing is None or quality > existing:
            q_values[encoding] = quality
    return q_values


def accepts_gzip(header: str | None) -> bool:
    """Return ``True`` when ``Accept-Encoding`` admits gzip.

    An explicit ``gzip`` entry wins over a ``*`` wildcard.
    """

    if not header or not header.strip():
        return False
    q_values = parse_accept_encoding(header)
    explicit = q_values.get("gzip")
    if explicit is not None:
        return explicit > 0
    wildcard = q_values.get("*")
    return wildcard is not None and wildcard > 0


class GzipIndex:
    """Absolute paths of every ``*.gz`` file below ``root``, scanned once."""

    def __init__(self, paths: frozenset[str] = frozenset()) -> None:
        self._paths = paths

    @classmethod
    def scan(cls, root: str) -> "GzipIndex":
        found: set[str] = set()
        for directory, _, files in os.walk(root):
            for name in files:
                if name.endswith(".gz"):
                    found.add(os.path.join(directory, name))
        logger.debug("Indexed %d precompressed files below %s", len(found), root)
        return cls(frozenset(found))

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def lookup(self, resolved: ResolvedPath) -> str | None:
        """Return the ``.gz`` sibling of ``resolved`` when one was indexed.

        Only paths whose last segment carries an extension are considered.
        """

        if resolved.trailing_slash or "." not in resolved.relative.rsplit("/", 1)[-1]:
            return None
        candidate = resolved.path + ".gz"
        if candidate in self._paths:
            return candidate
        return None


__all__ = ["GzipIndex", "accepts_gzip", "parse_accept_encoding"]
