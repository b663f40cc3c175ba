from __future__ import annotations

import msgspec
import pytest

from servestatic.candidates import (
    CandidateSelector,
    DirectoryTarget,
    FileTarget,
    NotFoundDirectoryPolicy,
    NotFoundTarget,
    RedirectDirectoryPolicy,
    directory_policy,
    redirect_location,
)
from servestatic.config import StaticConfig
from servestatic.exceptions import InternalIOError, NotFoundError
from servestatic.paths import resolve_path
from servestatic.requests import Request
from tests.support import FakeFileSystem

ROOT = "/srv/www"


def _filesystem() -> FakeFileSystem:
    return FakeFileSystem(
        {
            "/srv/www/todo.txt": b"- groceries",
            "/srv/www/todo.html": b"<li>groceries</li>",
            "/srv/www/users/index.html": b"<p>users</p>",
            "/srv/www/docs/default.htm": b"docs",
        }
    )


def _selector(fs: FakeFileSystem | None = None, **options) -> tuple[CandidateSelector, StaticConfig]:
    config = StaticConfig.from_options(ROOT, **options)
    return CandidateSelector(config, fs or _filesystem()), config


@pytest.mark.asyncio
async def test_select_literal_file() -> None:
    selector, config = _selector()
    target = await selector.select(resolve_path(config, "/todo.txt"))
    assert isinstance(target, FileTarget)
    assert target.path == "/srv/www/todo.txt"
    assert target.stat.size == 11


@pytest.mark.asyncio
async def test_select_file_with_trailing_slash_is_not_found() -> None:
    selector, config = _selector()
    target = await selector.select(resolve_path(config, "/todo.txt/"))
    assert target == NotFoundTarget("ENOTDIR")


@pytest.mark.asyncio
async def test_select_extension_fallback_in_order() -> None:
    selector, config = _selector(extensions=["html", "txt"])
    target = await selector.select(resolve_path(config, "/todo"))
    assert isinstance(target, FileTarget)
    assert target.path == "/srv/www/todo.html"


@pytest.mark.asyncio
async def test_select_extensions_skip_root_and_trailing_slash() -> None:
    fs = _filesystem()
    selector, config = _selector(fs, extensions=["txt"])
    await selector.select(resolve_path(config, "/todo/"))
    await selector.select(resolve_path(config, ""))
    assert fs.stats == ["/srv/www/todo", "/srv/www"]
    assert isinstance(await selector.select(resolve_path(config, "")), DirectoryTarget)


@pytest.mark.asyncio
async def test_select_directory_and_missing() -> None:
    selector, config = _selector()
    assert await selector.select(resolve_path(config, "/users")) == DirectoryTarget("/srv/www/users")
    assert await selector.select(resolve_path(config, "/nope")) == NotFoundTarget("ENOENT")


@pytest.mark.asyncio
async def test_select_propagates_unexpected_errors() -> None:
    fs = _filesystem()
    fs.stat_errors["/srv/www/todo.txt"] = PermissionError(13, "Permission denied")
    selector, config = _selector(fs)
    with pytest.raises(InternalIOError) as excinfo:
        await selector.select(resolve_path(config, "/todo.txt"))
    assert excinfo.value.detail == "EACCES"


@pytest.mark.asyncio
async def test_select_index_tries_names_in_order() -> None:
    selector, config = _selector(index=["index.htm", "default.htm", "index.html"])
    users = await selector.select_index(resolve_path(config, "/users/"))
    docs = await selector.select_index(resolve_path(config, "/docs/"))
    missing = await selector.select_index(resolve_path(config, "/"))
    assert isinstance(users, FileTarget) and users.path == "/srv/www/users/index.html"
    assert isinstance(docs, FileTarget) and docs.path == "/srv/www/docs/default.htm"
    assert missing == NotFoundTarget("ENOENT")


@pytest.mark.asyncio
async def test_select_index_skips_names_outside_root() -> None:
    selector, config = _selector(index=["../todo.txt"])
    assert await selector.select_index(resolve_path(config, "/")) == NotFoundTarget("ENOENT")


def test_targets_are_tagged_structs() -> None:
    encoded = msgspec.json.encode(NotFoundTarget("ENOTDIR"))
    assert msgspec.json.decode(encoded) == {"type": "not_found", "reason": "ENOTDIR"}


def test_redirect_location() -> None:
    assert redirect_location("/users") == "/users/"
    assert redirect_location("//users") == "/users/"
    assert redirect_location("/users", "name=john") == "/users/?name=john"
    assert redirect_location("/snow ☃") == "/snow%20%E2%98%83/"


def test_directory_policies() -> None:
    config = StaticConfig.from_options(ROOT)
    request = Request(method="GET", path="/users", query_string="a=1")
    response = RedirectDirectoryPolicy().handle(request, resolve_path(config, "/users"))
    assert response.status == 301
    assert response.header("location") == "/users/?a=1"
    with pytest.raises(NotFoundError):
        RedirectDirectoryPolicy().handle(request, resolve_path(config, "/users/"))
    with pytest.raises(NotFoundError):
        NotFoundDirectoryPolicy().handle(request, resolve_path(config, "/users"))
    assert isinstance(directory_policy(True), RedirectDirectoryPolicy)
    assert isinstance(directory_policy(False), NotFoundDirectoryPolicy)
