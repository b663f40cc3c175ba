from __future__ import annotations

import gzip

import pytest

from servestatic.config import StaticConfig
from servestatic.paths import resolve_path
from servestatic.precompressed import GzipIndex, accepts_gzip, parse_accept_encoding
from tests.support import make_client


def test_parse_accept_encoding_keeps_highest_quality() -> None:
    parsed = parse_accept_encoding("gzip;q=0.5, br, GZIP;q=0.8, identity;q=bogus, ;")
    assert parsed == {"gzip": 0.8, "br": 1.0, "identity": 0.0}


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, False),
        ("", False),
        ("gzip", True),
        ("deflate, gzip;q=0.1", True),
        ("gzip;q=0", False),
        ("*", True),
        ("*;q=0", False),
        ("gzip;q=0, *", False),
        ("br", False),
    ],
)
def test_accepts_gzip(header, expected: bool) -> None:
    assert accepts_gzip(header) is expected


def test_index_scans_tree(tmp_path) -> None:
    (tmp_path / "app.js").write_text("x", encoding="utf-8")
    (tmp_path / "app.js.gz").write_bytes(b"gz")
    nested = tmp_path / "css"
    nested.mkdir()
    (nested / "site.css.gz").write_bytes(b"gz")
    index = GzipIndex.scan(str(tmp_path))
    assert len(index) == 2
    assert str(tmp_path / "app.js.gz") in index
    assert str(nested / "site.css.gz") in index


def test_index_lookup_requires_an_extension(tmp_path) -> None:
    (tmp_path / "app.js.gz").write_bytes(b"gz")
    (tmp_path / "README.gz").write_bytes(b"gz")
    config = StaticConfig.from_options(tmp_path)
    index = GzipIndex.scan(config.root)
    assert index.lookup(resolve_path(config, "/app.js")) == str(tmp_path / "app.js.gz")
    assert index.lookup(resolve_path(config, "/README")) is None
    assert index.lookup(resolve_path(config, "/app.js/")) is None
    assert index.lookup(resolve_path(config, "/missing.js")) is None


@pytest.fixture
def compressed_site(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    (root / "app.js").write_text("console.log('plain')", encoding="utf-8")
    (root / "app.js.gz").write_bytes(gzip.compress(b"console.log('gzip')"))
    (root / "only.txt").write_text("only plain", encoding="utf-8")
    return root


@pytest.mark.asyncio
async def test_serves_gzip_variant_when_accepted(compressed_site) -> None:
    async with make_client(compressed_site, serve_gzip=True) as client:
        response = await client.get("/app.js", headers={"Accept-Encoding": "gzip, deflate"})
    assert response.status == 200
    assert gzip.decompress(response.body) == b"console.log('gzip')"
    assert response.header("content-encoding") == "gzip"
    assert response.header("vary") == "Accept-Encoding"
    assert "javascript" in (response.header("content-type") or "")


@pytest.mark.asyncio
async def test_serves_identity_without_gzip_support(compressed_site) -> None:
    async with make_client(compressed_site, serve_gzip=True) as client:
        plain = await client.get("/app.js")
        refused = await client.get("/app.js", headers={"Accept-Encoding": "gzip;q=0"})
        no_variant = await client.get("/only.txt", headers={"Accept-Encoding": "gzip"})
    assert plain.body == b"console.log('plain')"
    assert "content-encoding" not in dict(plain.headers)
    assert refused.body == b"console.log('plain')"
    assert no_variant.body == b"only plain"


@pytest.mark.asyncio
async def test_gzip_disabled_by_default(compressed_site) -> None:
    async with make_client(compressed_site) as client:
        response = await client.get("/app.js", headers={"Accept-Encoding": "gzip"})
    assert response.body == b"console.log('plain')"
