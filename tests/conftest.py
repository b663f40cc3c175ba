from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def fixtures(tmp_path: Path) -> Path:
    root = tmp_path / "fixtures"
    root.mkdir()
    (root / "todo.txt").write_text("- groceries", encoding="utf-8")
    (root / "todo.html").write_text("<li>groceries</li>", encoding="utf-8")
    (root / "nums.txt").write_text("123456789", encoding="utf-8")
    (root / "empty.txt").write_bytes(b"")
    (root / ".hidden").write_text("I am hidden", encoding="utf-8")
    (root / "foo bar").write_text("baz", encoding="utf-8")
    users = root / "users"
    users.mkdir()
    (users / "index.html").write_text("<p>tobi, loki, jane</p>", encoding="utf-8")
    (users / "tobi.txt").write_text("ferret", encoding="utf-8")
    pets = root / "pets"
    pets.mkdir()
    (pets / "rex.txt").write_text("dog", encoding="utf-8")
    (root / "snow ☃").mkdir()
    (tmp_path / "secret.txt").write_text("outside", encoding="utf-8")
    return root
