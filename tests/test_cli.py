"""
Tests for CLI parsing and execution.

Modules tested:
- build_arg_parser()
- _merge_config()
- main()

Runs the CLI end to end against small on-disk art pools; composite
encoding is skipped unless libvips is available.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import tomlkit

import gallery_image.cli as gi_cli
from gallery_image import iiif, sampling
from gallery_image.art import ArtItem
from gallery_image.logging_utils import logger

Pool = Callable[[int], list[ArtItem]]


@pytest.fixture(autouse=True)
def restore_logger_level() -> Iterator[None]:
    """The CLI sets the shared logger level; put it back after each test."""
    level = logger.level
    yield
    logger.setLevel(level)


@pytest.fixture
def art_file(make_pool: Pool, tmp_path: Path) -> Path:
    """A JSON pool of five on-disk art objects."""
    path = tmp_path / "pool.json"
    path.write_text(json.dumps([
        art.to_flat_object() for art in make_pool(5)
    ]))
    return path


def test_parser_defaults() -> None:
    args = gi_cli.build_arg_parser().parse_args([])
    assert args.art is None
    assert args.rows is None
    assert not args.from_iiif
    assert not hasattr(args, "output_type")
    assert not hasattr(args, "seed")


def test_merge_config_overrides_file(tmp_path: Path) -> None:
    config = tmp_path / "config.toml"
    config.write_text(tomlkit.dumps({
        "layout": {"thumbnail_width": 100, "seed": 1},
        "output": {"output_dir": "from-file", "output_type": "dzi"},
    }))
    args = gi_cli.build_arg_parser().parse_args([
        "--config", str(config),
        "--seed", "8",
        "--output-type", "iiif",
        "--ratio", "2.0",
    ])

    cfg = gi_cli._merge_config(args)  # noqa: SLF001
    assert cfg.layout.thumbnail_width == 100
    assert cfg.layout.seed == 8
    assert cfg.layout.ratio == 2.0
    assert cfg.output.output_dir == "from-file"
    assert cfg.output.output_type == "iiif"


def test_merge_config_without_file() -> None:
    args = gi_cli.build_arg_parser().parse_args(["--thumbnail-width", "64"])
    cfg = gi_cli._merge_config(args)  # noqa: SLF001
    assert cfg.layout.thumbnail_width == 64


def test_main_requires_input(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR)
    assert gi_cli.main(["--skip-image"]) == gi_cli.EXIT_INPUT_ERROR
    assert "Provide --art" in caplog.text


def test_main_missing_art_file(tmp_path: Path) -> None:
    code = gi_cli.main([
        "--art", str(tmp_path / "missing.json"),
        "--output", str(tmp_path / "out"),
        "--skip-image",
    ])
    assert code == gi_cli.EXIT_INPUT_ERROR


def test_main_layout_id_needs_store(tmp_path: Path) -> None:
    code = gi_cli.main([
        "--layout-id", "L1",
        "--output", str(tmp_path / "out"),
        "--skip-image",
    ])
    assert code == gi_cli.EXIT_INPUT_ERROR


def test_main_writes_manifest(art_file: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    code = gi_cli.main([
        "--art", str(art_file),
        "--name", "wall",
        "--seed", "5",
        "--output", str(out),
        "--iiif", "Manifest",
        "--skip-image",
    ])

    assert code == gi_cli.EXIT_OK
    assert sampling.placement_seed() == 5
    manifest = json.loads((out / "wall-manifest.json").read_text())
    assert manifest["type"] == "Manifest"
    assert len(manifest["items"]) == 5


def test_main_rows_and_cols_too_small(art_file: Path, tmp_path: Path) -> None:
    out = tmp_path / "out"
    code = gi_cli.main([
        "--art", str(art_file),
        "--rows", "2",
        "--cols", "2",
        "--output", str(out),
        "--skip-image",
    ])
    assert code == gi_cli.EXIT_INPUT_ERROR


def test_main_rejects_ratio_with_rows_and_cols(
    art_file: Path,
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.ERROR)
    code = gi_cli.main([
        "--art", str(art_file),
        "--rows", "2",
        "--cols", "3",
        "--ratio", "1.5",
        "--output", str(tmp_path / "out"),
        "--skip-image",
    ])
    assert code == gi_cli.EXIT_INPUT_ERROR
    assert "ratio" in caplog.text


def test_main_rows_and_cols_ignore_config_ratio(
    art_file: Path,
    tmp_path: Path,
) -> None:
    config = tmp_path / "config.toml"
    config.write_text(tomlkit.dumps({"layout": {"ratio": 2.0}}))
    out = tmp_path / "out"
    code = gi_cli.main([
        "--config", str(config),
        "--art", str(art_file),
        "--name", "wall",
        "--rows", "2",
        "--cols", "3",
        "--output", str(out),
        "--iiif", "Manifest",
        "--skip-image",
    ])
    assert code == gi_cli.EXIT_OK
    manifest = json.loads((out / "wall-manifest.json").read_text())
    assert len(manifest["items"]) == 5


def test_main_logs_through_job_logger(
    art_file: Path,
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO)
    code = gi_cli.main([
        "--art", str(art_file),
        "--output", str(tmp_path / "out"),
        "--skip-image",
    ])
    assert code == gi_cli.EXIT_OK
    built = [r for r in caplog.records if r.getMessage().startswith("Built")]
    assert [r.name for r in built] == ["gallery_image.cli"]


def test_main_from_store(make_pool: Pool, tmp_path: Path) -> None:
    pool = make_pool(2)
    record = {
        "_id": "L1",
        "name": "stored",
        "array": [[art.to_flat_object() for art in pool]],
    }
    store = tmp_path / "layouts.json"
    store.write_text(json.dumps([record]))
    out = tmp_path / "out"

    code = gi_cli.main([
        "--store", str(store),
        "--layout-id", "L1",
        "--output", str(out),
        "--iiif", "Collection",
        "--skip-image",
    ])
    assert code == gi_cli.EXIT_OK
    collection = json.loads((out / "stored-collection.json").read_text())
    assert collection["id"] == "L1-contents"
    assert [m["id"] for m in collection["items"]] == ["art-0", "art-1"]


def test_main_unknown_layout_id(tmp_path: Path) -> None:
    store = tmp_path / "layouts.json"
    store.write_text("[]")
    code = gi_cli.main([
        "--store", str(store),
        "--layout-id", "missing",
        "--output", str(tmp_path / "out"),
        "--skip-image",
    ])
    assert code == gi_cli.EXIT_INPUT_ERROR


def test_main_detects_iiif_document(make_pool: Pool, tmp_path: Path) -> None:
    pool = make_pool(3)
    canvases = [
        asyncio.run(art.to_iiif_canvas(f"https://ex.org/{art.id}/canvas"))
        for art in pool
    ]
    doc = tmp_path / "manifest.json"
    doc.write_text(json.dumps(iiif.build_manifest("m", "Imported", canvases)))
    out = tmp_path / "out"

    code = gi_cli.main([
        "--art", str(doc),
        "--output", str(out),
        "--iiif", "Manifest",
        "--skip-image",
    ])
    assert code == gi_cli.EXIT_OK
    manifest = json.loads((out / "Imported-manifest.json").read_text())
    assert len(manifest["items"]) == 3


@pytest.mark.slow
def test_main_generates_composite(
    vips: Any,  # noqa: ARG001
    art_file: Path,
    tmp_path: Path,
) -> None:
    out = tmp_path / "out"
    code = gi_cli.main([
        "--art", str(art_file),
        "--name", "wall",
        "--thumbnail-width", "16",
        "--output", str(out),
        "--output-type", "tif",
    ])
    assert code == gi_cli.EXIT_OK
    assert (out / "wall-stitch.tif").is_file()
    record = json.loads((out / "wall-layout.json").read_text())
    assert record["thumbnailWidth"] == 16


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        gi_cli.main(["--version"])
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.startswith("gallery-image ")
