"""Validators, caching headers and conditional request evaluation."""

from __future__ import annotations

from enum import Enum
from typing import Mapping

from .config import StaticConfig
from .filesystem import FileStat
from .http import http_date, parse_http_date, parse_token_list


class Condition(str, Enum):
    """Outcome of evaluating the ``If-*`` request headers."""

    SEND = "send"
    NOT_MODIFIED = "not_modified"
    PRECONDITION_FAILED = "precondition_failed"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


def compute_etag(stat: FileStat) -> str:
    """Return a strong validator derived from size and modification time."""

    return f'"{stat.size:x}-{stat.mtime_ms:x}"'


def last_modified(stat: FileStat) -> str:
    return http_date(stat.mtime)


def cache_control(config: StaticConfig) -> str:
    return config.cache_control_header


def _opaque(tag: str) -> str:
    return tag[2:] if tag.startswith("W/") else tag


def strong_match(candidate: str, etag: str) -> bool:
    return not candidate.startswith("W/") and not etag.startswith("W/") and candidate == etag


def weak_match(candidate: str, etag: str) -> bool:
    return _opaque(candidate) == _opaque(etag)


def _header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def evaluate_conditions(
    headers: Mapping[str, str],
    stat: FileStat,
    etag: str | None,
) -> Condition:
    """Decide between sending, ``304`` and ``412`` for lower-cased ``headers``.

    ``If-Match`` is checked first, then ``If-None-Match``, ``If-Modified-Since``
    (only without ``If-None-Match``) and ``If-Unmodified-Since`` (only without
    ``If-Match``). Dates compare at second precision; unparseable dates are
    ignored.
    """

    modified = int(stat.mtime)
    if_match = _header(headers, "if-match")
    if if_match is not None:
        if etag is None:
            return Condition.PRECONDITION_FAILED
        if if_match != "*" and not any(strong_match(tag, etag) for tag in parse_token_list(if_match)):
            return Condition.PRECONDITION_FAILED

    if_none_match = _header(headers, "if-none-match")
    if if_none_match is not None:
        if if_none_match == "*":
            return Condition.NOT_MODIFIED
        if etag is not None and any(weak_match(tag, etag) for tag in parse_token_list(if_none_match)):
            return Condition.NOT_MODIFIED
    else:
        since = parse_http_date(_header(headers, "if-modified-since"))
        if since is not None and modified <= since:
            return Condition.NOT_MODIFIED

    if if_match is None:
        unmodified_since = parse_http_date(_header(headers, "if-unmodified-since"))
        if unmodified_since is not None and modified > unmodified_since:
            return Condition.PRECONDITION_FAILED
    return Condition.SEND


__all__ = [
    "Condition",
    "cache_control",
    "compute_etag",
    "evaluate_conditions",
    "last_modified",
    "strong_match",
    "weak_match",
]
