"""``Range`` / ``If-Range`` handling for single byte-range responses."""

from __future__ import annotations

import re
from enum import Enum
from typing import Mapping

import msgspec

from .conditional import strong_match
from .http import parse_http_date

_RANGE_SPEC = re.compile(r"^\s*(\d*)\s*-\s*(\d*)\s*$")


class ByteRange(msgspec.Struct, frozen=True):
    """Inclusive interval ``[start, end]`` of a resource."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        return f"bytes {self.start}-{self.end}/{size}"


class RangeKind(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    UNSATISFIABLE = "unsatisfiable"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


class RangeResult(msgspec.Struct, frozen=True):
    kind: RangeKind
    interval: ByteRange | None = None


FULL = RangeResult(kind=RangeKind.FULL)
UNSATISFIABLE = RangeResult(kind=RangeKind.UNSATISFIABLE)


def parse_range(header: str, size: int) -> list[ByteRange] | None:
    """Parse a ``bytes=`` range header against ``size``.

    Returns ``None`` when the header is not a well-formed ``bytes`` range (it
    must then be ignored) and an empty list when no interval is satisfiable.
    ``end`` positions past the resource are clamped; a suffix longer than the
    resource covers it entirely.
    """

    unit, separator, specs = header.partition("=")
    if not separator or unit.strip().lower() != "bytes":
        return None
    intervals: list[ByteRange] = []
    seen = False
    for part in specs.split(","):
        if not part.strip():
            continue
        seen = True
        match = _RANGE_SPEC.match(part)
        if match is None:
            return None
        first, last = match.groups()
        if not first and not last:
            return None
        if not first:
            suffix = int(last)
            if suffix == 0:
                continue
            start = max(size - suffix, 0)
            end = size - 1
        else:
            start = int(first)
            end = int(last) if last else size - 1
            if last and end < start:
                return None
            end = min(end, size - 1)
        if start >= size or start > end:
            continue
        intervals.append(ByteRange(start=start, end=end))
    if not seen:
        return None
    return intervals


def coalesce(intervals: list[ByteRange]) -> list[ByteRange]:
    """Merge overlapping and adjacent intervals."""

    merged: list[ByteRange] = []
    for interval in sorted(intervals, key=lambda item: item.start):
        if merged and interval.start <= merged[-1].end + 1:
            previous = merged[-1]
            merged[-1] = ByteRange(start=previous.start, end=max(previous.end, interval.end))
            continue
        merged.append(interval)
    return merged


def if_range_matches(if_range: str, *, etag: str | None, modified: int | None) -> bool:
    """Return ``True`` when ``If-Range`` still names the current representation."""

    value = if_range.strip()
    if '"' in value:
        return etag is not None and strong_match(value, etag)
    date = parse_http_date(value)
    if date is None or modified is None:
        return False
    return modified <= date


def evaluate_range(
    headers: Mapping[str, str],
    size: int,
    *,
    etag: str | None = None,
    modified: int | None = None,
) -> RangeResult:
    """Decide between the full body, one partial interval, or ``416``.

    ``etag`` and ``modified`` are the validators the response advertises; pass
    ``None`` for a validator that is disabled.
    """

    header = headers.get("range")
    if not header:
        return FULL
    if_range = headers.get("if-range")
    if if_range and not if_range_matches(if_range, etag=etag, modified=modified):
        return FULL
    intervals = parse_range(header, size)
    if intervals is None:
        return FULL
    if not intervals:
        return UNSATISFIABLE
    merged = coalesce(intervals)
    if len(merged) != 1:
        return FULL
    return RangeResult(kind=RangeKind.PARTIAL, interval=merged[0])


__all__ = [
    "ByteRange",
    "RangeKind",
    "RangeResult",
    "coalesce",
    "evaluate_range",
    "if_range_matches",
    "parse_range",
]
