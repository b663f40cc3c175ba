"""Middleware configuration objects."""

from __future__ import annotations

import math
import os
import re
from enum import Enum
from typing import Any, Iterable, Mapping

import msgspec
from msgspec import Struct

MAX_MAX_AGE = 60 * 60 * 24 * 365

_DURATION_PATTERN = re.compile(r"^\s*(-?\d+(?:\.\d+)?|-?\.\d+)\s*([a-z]*)\s*$", re.IGNORECASE)

_DURATION_UNITS: dict[str, float] = {
    "": 1.0,
    "ms": 0.001,
    "msec": 0.001,
    "msecs": 0.001,
    "millisecond": 0.001,
    "milliseconds": 0.001,
    "s": 1.0,
    "sec": 1.0,
    "secs": 1.0,
    "second": 1.0,
    "seconds": 1.0,
    "m": 60.0,
    "min": 60.0,
    "mins": 60.0,
    "minute": 60.0,
    "minutes": 60.0,
    "h": 3600.0,
    "hr": 3600.0,
    "hrs": 3600.0,
    "hour": 3600.0,
    "hours": 3600.0,
    "d": 86400.0,
    "day": 86400.0,
    "days": 86400.0,
    "w": 604800.0,
    "week": 604800.0,
    "weeks": 604800.0,
    "y": 31557600.0,
    "yr": 31557600.0,
    "yrs": 31557600.0,
    "year": 31557600.0,
    "years": 31557600.0,
}


class DotfilesPolicy(str, Enum):
    """How path segments starting with ``.`` are treated."""

    ALLOW = "allow"
    DENY = "deny"
    IGNORE = "ignore"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


def parse_duration(value: str) -> float:
    """Parse ``"30d"``, ``"1h"``, ``"500ms"`` or ``"2 days"`` into seconds."""

    match = _DURATION_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    factor = _DURATION_UNITS.get(unit.lower())
    if factor is None:
        raise ValueError(f"Unknown duration unit {unit!r} in {value!r}")
    return float(amount) * factor


def normalize_max_age(value: int | float | str | None) -> int:
    """Return ``value`` as whole seconds clamped to ``[0, 365 days]``."""

    if value is None or value is False:
        return 0
    if isinstance(value, str):
        seconds = parse_duration(value)
    elif isinstance(value, (int, float)):
        seconds = float(value)
    else:
        raise TypeError("max_age must be a number of seconds or a duration string")
    if math.isnan(seconds):
        return 0
    return int(min(max(0.0, seconds), float(MAX_MAX_AGE)))


def _normalize_names(value: str | Iterable[str] | bool | None, *, option: str) -> tuple[str, ...]:
    if value is None or value is False:
        return ()
    if value is True:
        raise TypeError(f"{option} must be a string, a sequence of strings or False")
    if isinstance(value, str):
        return (value,) if value else ()
    names = tuple(value)
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{option} entries must be strings")
    return tuple(name for name in names if name)


def normalize_index(value: str | Iterable[str] | bool | None) -> tuple[str, ...]:
    names = _normalize_names(value, option="index")
    for name in names:
        if os.path.isabs(name) or name.startswith("/"):
            raise ValueError("index names must be relative")
    return names


def normalize_extensions(value: str | Iterable[str] | bool | None) -> tuple[str, ...]:
    return tuple(name.lstrip(".") for name in _normalize_names(value, option="extensions") if name.lstrip("."))


def normalize_content_types(
    value: Mapping[str, str] | Iterable[tuple[str, str]] | None,
) -> tuple[tuple[str, str], ...]:
    """Return suffix overrides keyed by lower-cased suffixes with a leading dot."""

    if not value:
        return ()
    items = value.items() if isinstance(value, Mapping) else value
    overrides: dict[str, str] = {}
    for suffix, content_type in items:
        key = suffix.lower()
        overrides[key if key.startswith(".") else f".{key}"] = content_type
    return tuple(sorted(overrides.items()))


class StaticConfig(Struct, frozen=True):
    """Typed, immutable configuration shared by every request of a middleware."""

    root: str
    index: tuple[str, ...] = ("index.html",)
    extensions: tuple[str, ...] = ()
    dotfiles: DotfilesPolicy = DotfilesPolicy.IGNORE
    fallthrough: bool = True
    redirect: bool = True
    cache_control: bool = True
    max_age: int = 0
    immutable: bool = False
    last_modified: bool = True
    etag: bool = True
    accept_ranges: bool = True
    serve_gzip: bool = False
    content_types: tuple[tuple[str, str], ...] = ()
    chunk_size: int = 64 * 1024

    def __post_init__(self) -> None:
        if not self.root:
            raise ValueError("root path required")
        if self.max_age < 0 or self.max_age > MAX_MAX_AGE:
            raise ValueError("max_age must be between 0 and 365 days")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

    @property
    def cache_control_header(self) -> str:
        value = f"public, max-age={self.max_age}"
        if self.immutable and self.max_age > 0:
            value += ", immutable"
        return value

    @classmethod
    def from_options(
        cls,
        root: str | os.PathLike[str],
        *,
        index: str | Iterable[str] | bool | None = "index.html",
        extensions: str | Iterable[str] | bool | None = False,
        dotfiles: DotfilesPolicy | str = DotfilesPolicy.IGNORE,
        fallthrough: bool = True,
        redirect: bool = True,
        cache_control: bool = True,
        max_age: int | float | str | None = 0,
        immutable: bool = False,
        last_modified: bool = True,
        etag: bool = True,
        accept_ranges: bool = True,
        serve_gzip: bool = False,
        content_types: Mapping[str, str] | None = None,
        chunk_size: int = 64 * 1024,
    ) -> "StaticConfig":
        """Normalize loosely shaped options into a :class:`StaticConfig`."""

        if not root:
            raise TypeError("root path required")
        if not isinstance(root, (str, os.PathLike)):
            raise TypeError("root path must be a string")
        try:
            policy = DotfilesPolicy(dotfiles)
        except ValueError as exc:
            raise ValueError('dotfiles must be "allow", "deny" or "ignore"') from exc
        return cls(
            root=os.path.abspath(os.fspath(root)),
            index=normalize_index(index),
            extensions=normalize_extensions(extensions),
            dotfiles=policy,
            fallthrough=bool(fallthrough),
            redirect=bool(redirect),
            cache_control=bool(cache_control),
            max_age=normalize_max_age(max_age),
            immutable=bool(immutable),
            last_modified=bool(last_modified),
            etag=bool(etag),
            accept_ranges=bool(accept_ranges),
            serve_gzip=bool(serve_gzip),
            content_types=normalize_content_types(content_types),
            chunk_size=chunk_size,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StaticConfig":
        """Build a config from a plain mapping (for example parsed from a settings file)."""

        payload = dict(data)
        if payload.get("root"):
            payload["root"] = os.path.abspath(os.fspath(payload["root"]))
        if "max_age" in payload:
            payload["max_age"] = normalize_max_age(payload["max_age"])
        if "index" in payload:
            payload["index"] = normalize_index(payload["index"])
        if "extensions" in payload:
            payload["extensions"] = normalize_extensions(payload["extensions"])
        if "content_types" in payload:
            payload["content_types"] = normalize_content_types(payload["content_types"])
        return msgspec.convert(payload, type=cls)


__all__ = [
    "MAX_MAX_AGE",
    "DotfilesPolicy",
    "StaticConfig",
    "normalize_content_types",
    "normalize_extensions",
    "normalize_index",
    "normalize_max_age",
    "parse_duration",
]
