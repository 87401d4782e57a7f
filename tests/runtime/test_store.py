"""Tests for the JSON-backed layout store."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gallery_image.errors import InputError
from gallery_image.runtime.store import JsonLayoutStore


def test_find_by_id_and_legacy_id(tmp_path: Path) -> None:
    path = tmp_path / "layouts.json"
    path.write_text(json.dumps([
        {"id": "a", "name": "first"},
        {"_id": "b", "name": "second"},
    ]))
    store = JsonLayoutStore(path)

    first = store.find_layout_by_id("a")
    second = store.find_layout_by_id("b")
    assert first is not None
    assert second is not None
    assert first["name"] == "first"
    assert second["name"] == "second"
    assert store.find_layout_by_id("c") is None


def test_store_is_read_once(tmp_path: Path) -> None:
    path = tmp_path / "layouts.json"
    path.write_text(json.dumps([{"id": "a", "name": "first"}]))
    store = JsonLayoutStore(path)
    store.find_layout_by_id("a")

    path.unlink()
    assert store.find_layout_by_id("a") is not None


def test_missing_store(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        JsonLayoutStore(tmp_path / "none.json").find_layout_by_id("a")


def test_store_must_hold_list(tmp_path: Path) -> None:
    path = tmp_path / "layouts.json"
    path.write_text(json.dumps({"id": "a"}))
    with pytest.raises(InputError, match="JSON list"):
        JsonLayoutStore(path).find_layout_by_id("a")
