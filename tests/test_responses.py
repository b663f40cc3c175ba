from __future__ import annotations

import errno

import pytest

from servestatic.exceptions import (
    BadRequestError,
    HTTPError,
    InternalIOError,
    MethodNotAllowedError,
    NotFoundError,
    RangeNotSatisfiableError,
    from_os_error,
)
from servestatic.responses import (
    HARDENED_HEADERS,
    Response,
    apply_default_security_headers,
    exception_to_response,
    redirect_response,
)
from servestatic.serialization import decode_error, json_decode


def test_exception_to_response_renders_json() -> None:
    response = exception_to_response(NotFoundError("ENOENT"))
    assert response.status == 404
    assert response.header("content-type") == "application/json"
    assert response.header("content-length") == str(len(response.body))
    assert json_decode(response.body) == {
        "error": {"status": 404, "reason": "Not Found", "name": "NotFoundError", "detail": "ENOENT"}
    }
    for name, value in HARDENED_HEADERS:
        assert response.header(name) == value


def test_exception_to_response_without_body() -> None:
    response = exception_to_response(MethodNotAllowedError(), include_body=False)
    assert response.status == 405
    assert response.body == b""
    assert response.header("content-length") == "0"
    assert response.header("content-type") is None
    assert response.header("allow") == "GET, HEAD"


def test_range_error_carries_content_range() -> None:
    response = exception_to_response(RangeNotSatisfiableError(9), include_body=False)
    assert response.status == 416
    assert response.header("content-range") == "bytes */9"


def test_security_headers_do_not_override() -> None:
    response = Response(headers=(("Content-Security-Policy", "default-src 'self'"),))
    hardened = apply_default_security_headers(response)
    assert hardened.header("content-security-policy") == "default-src 'self'"
    assert hardened.header("x-content-type-options") == "nosniff"
    assert apply_default_security_headers(hardened) is hardened


def test_redirect_response() -> None:
    response = redirect_response('/a"b/')
    assert response.status == 301
    assert response.header("location") == '/a"b/'
    assert b'href="/a&quot;b/"' in response.body
    assert response.header("content-length") == str(len(response.body))
    assert redirect_response("/x/", status=303).status == 303


@pytest.mark.asyncio
async def test_read_returns_buffered_body() -> None:
    assert await Response(body=b"hello").read() == b"hello"


def test_from_os_error() -> None:
    missing = from_os_error(FileNotFoundError(2, "No such file"))
    denied = from_os_error(PermissionError(13, "Permission denied"))
    too_long = from_os_error(OSError(errno.ENAMETOOLONG, "File name too long"))
    assert isinstance(missing, NotFoundError) and missing.detail == "ENOENT"
    assert isinstance(denied, InternalIOError) and denied.detail == "EACCES"
    assert isinstance(too_long, NotFoundError) and too_long.detail == "ENAMETOOLONG"


def test_error_hierarchy() -> None:
    error = BadRequestError()
    assert isinstance(error, HTTPError)
    assert error.status == 400
    assert error.detail == "bad_request"
    assert error.headers == ()


def test_error_body_decodes_into_envelope() -> None:
    envelope = decode_error(exception_to_response(RangeNotSatisfiableError(9)).body)
    assert envelope.error.status == 416
    assert envelope.error.name == "RangeNotSatisfiableError"
    assert envelope.error.detail == "range_not_satisfiable"
