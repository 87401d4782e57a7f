"""
Test configuration and shared fixtures for gallery_image.

Provides small on-disk and in-memory images, art pools, and a factory
for httpx clients backed by a mock transport.

Note:
    This file is automatically loaded by pytest and should not be
    renamed.

"""
from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from PIL import Image

from gallery_image import sampling
from gallery_image.art import ArtItem
from gallery_image.constants import COLOR_MODE_RGB
from gallery_image.logging_utils import logger

COLORS = ["red", "green", "blue", "yellow", "purple", "orange", "white"]


def image_bytes(
    size: tuple[int, int] = (64, 48),
    color: str = "red",
    fmt: str = "PNG",
) -> bytes:
    """Encode a solid-color image in memory."""
    out = io.BytesIO()
    Image.new(COLOR_MODE_RGB, size, color=color).save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def make_image_bytes() -> Callable[..., bytes]:
    """Factory for in-memory solid-color images."""
    return image_bytes


@pytest.fixture
def png_bytes() -> bytes:
    """A 64x48 red PNG held in memory."""
    return image_bytes()


@pytest.fixture
def make_image_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing solid-color images under tmp_path/images."""
    images = tmp_path / "images"
    images.mkdir(exist_ok=True)

    def _make(
        name: str = "art.png",
        size: tuple[int, int] = (64, 48),
        color: str = "red",
    ) -> Path:
        path = images / name
        fmt = "JPEG" if path.suffix.lower() in (".jpg", ".jpeg") else "PNG"
        path.write_bytes(image_bytes(size, color, fmt))
        return path

    return _make


@pytest.fixture
def image_file(make_image_file: Callable[..., Path]) -> Path:
    """A 64x48 red PNG on disk."""
    return make_image_file()


@pytest.fixture
def make_pool(
    make_image_file: Callable[..., Path],
) -> Callable[[int], list[ArtItem]]:
    """Factory for pools of on-disk art items with distinct colors."""

    def _make(count: int) -> list[ArtItem]:
        return [
            ArtItem(
                str(make_image_file(
                    f"art-{i}.png",
                    color=COLORS[i % len(COLORS)],
                )),
                id=f"art-{i}",
                metadata={"title": f"Art {i}", "creator": "Anon"},
            )
            for i in range(count)
        ]

    return _make


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Provide a reusable temporary directory for output files."""
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def mock_client() -> Callable[..., httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def _build(
        handler: Callable[[httpx.Request], httpx.Response],
    ) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _build


@pytest.fixture
def vips() -> Any:
    """Skip tests that need libvips when it cannot be loaded."""
    return pytest.importorskip("pyvips")


@pytest.fixture(autouse=True)
def reset_placement_rng() -> None:
    """Give every test a freshly seeded placement Generator."""
    sampling.seed_placement(1234)


@pytest.fixture(autouse=True)
def enable_logger_propagation(monkeypatch: pytest.MonkeyPatch) -> None:
    """Enable propagation for the package logger to allow caplog to work."""
    monkeypatch.setattr(logger, "propagate", True)
