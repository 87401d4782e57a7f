"""Tests for runtime.output helpers."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import cast

import pytest

from gallery_image.errors import InputError
from gallery_image.runtime import output as runtime_output

# Concrete flavour class: Path itself is only subclassable on 3.12+.
RealPath = type(Path())


def test_setup_output_directory_creates_path(tmp_path: Path) -> None:
    target = tmp_path / "new_dir"
    result = runtime_output.setup_output_directory(str(target))
    assert result == target
    assert target.exists()


def test_setup_output_directory_fallback(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    class FailingPath(RealPath):
        def mkdir(  # type: ignore[override]
            self,
            mode: int = 0o777,
            parents: bool = False,  # noqa: FBT001, FBT002
            exist_ok: bool = False,  # noqa: FBT001, FBT002
        ) -> None:
            if "restricted" in str(self):
                raise PermissionError("Mock failure")
            return super().mkdir(mode=mode, parents=parents, exist_ok=exist_ok)

    monkeypatch.chdir(tmp_path)
    result = runtime_output.setup_output_directory(
        "restricted",
        path_factory=cast(Callable[[str], Path], FailingPath),
    )
    assert result.name == "gallery_image_output"
    assert result.exists()


def test_require_output_dir() -> None:
    assert runtime_output.require_output_dir("out", "save") == Path("out")
    with pytest.raises(InputError, match="write tiles"):
        runtime_output.require_output_dir(None, "write tiles")


def test_save_file_creates_directory(
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO)
    target = tmp_path / "brand_new"

    path = runtime_output.save_file("a.bin", b"\x00\x01", str(target))

    assert Path(path) == (target / "a.bin").resolve()
    assert Path(path).read_bytes() == b"\x00\x01"
    assert "Saved file to" in caplog.text


def test_save_json_uses_given_logger(tmp_path: Path) -> None:
    records: list[str] = []

    class Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record.getMessage())

    log = logging.getLogger("gallery_image.output_test")
    log.addHandler(Collect())
    log.setLevel(logging.INFO)

    path = runtime_output.save_json(
        "doc.json",
        {"label": "caf\u00e9"},
        str(tmp_path),
        log=log,
    )
    assert json.loads(Path(path).read_text(encoding="utf-8")) == {
        "label": "caf\u00e9",
    }
    assert records == [f"Saved file to {tmp_path / 'doc.json'}"]
