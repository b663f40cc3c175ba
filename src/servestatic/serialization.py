"""JSON encoding of error payloads."""

from __future__ import annotations

from typing import Any

import msgspec


class ErrorDetail(msgspec.Struct, frozen=True):
    status: int
    reason: str
    name: str
    detail: Any = None


class ErrorEnvelope(msgspec.Struct, frozen=True):
    """Body of every JSON error response: ``{"error": {...}}``."""

    error: ErrorDetail


_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder()
_envelope_decoder = msgspec.json.Decoder(ErrorEnvelope)


def json_encode(value: Any) -> bytes:
    return _encoder.encode(value)


def json_decode(data: bytes | str) -> Any:
    """Deserialize JSON ``data`` into plain Python values."""

    return _decoder.decode(data)


def decode_error(data: bytes | str) -> ErrorEnvelope:
    """Decode and validate a JSON error body."""

    return _envelope_decoder.decode(data)


__all__ = ["ErrorDetail", "ErrorEnvelope", "decode_error", "json_decode", "json_encode"]
