from __future__ import annotations

from servestatic.requests import Request


def test_request_normalizes_method_and_headers() -> None:
    request = Request(method="get", path="/a", headers={"If-None-Match": '"x"'})
    assert request.method == "GET"
    assert request.header("if-none-match") == '"x"'
    assert request.header("IF-NONE-MATCH") == '"x"'
    assert request.header("range") is None
    assert request.original_path == "/a"
    assert request.query_string == ""


def test_mounted_strips_prefix_and_keeps_original_path() -> None:
    request = Request(method="GET", path="/static/users", query_string="a=1")
    mounted = request.mounted("/static/")
    assert mounted.path == "/users"
    assert mounted.original_path == "/static/users"
    assert mounted.query_string == "a=1"
    assert request.mounted("/static").path == "/users"


def test_mounted_mount_point_becomes_root() -> None:
    assert Request(method="GET", path="/static").mounted("/static").path == "/"
    assert Request(method="GET", path="/static/").mounted("/static").path == "/"


def test_mounted_ignores_unrelated_paths() -> None:
    assert Request(method="GET", path="/statics/a").mounted("/static").path == "/statics/a"
    assert Request(method="GET", path="/a").mounted("").path == "/a"
