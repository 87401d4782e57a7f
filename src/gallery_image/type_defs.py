"""
Defines shared type aliases and option records for gallery-image.

Centralizes reusable type hints and the per-call option dataclasses.
Every options record carries its own logger handle so concurrently
running jobs never share mutable logging state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from gallery_image.config_defaults import DEFAULT_FETCH_TIMEOUT
from gallery_image.logging_utils import logger

OutputType = Literal["tif", "tiff", "iiif", "dzi"]
TileLayout = Literal["iiif", "dzi"]
IiifKind = Literal["Manifest", "Collection"]
ExcludeField = Literal["thumbnails", "metadata"]

OUTPUT_TYPES: tuple[OutputType, ...] = ("tif", "tiff", "iiif", "dzi")
IIIF_KINDS: tuple[IiifKind, ...] = ("Manifest", "Collection")


@dataclass(slots=True)
class ImageDimensions:
    """Pixel size of an image and its optional EXIF orientation."""

    width: int
    height: int
    orientation: int | None = None


@dataclass(slots=True)
class ArtBlock:
    """One loaded cell thumbnail and its offset on the composite."""

    input: bytes
    top: int
    left: int
    row: int = 0
    col: int = 0


@dataclass(slots=True)
class BaseOptions:
    """Options shared by every operation that may write to disk."""

    save_file: bool = False
    output_dir: str | None = None
    timeout: float = DEFAULT_FETCH_TIMEOUT
    log: logging.Logger = field(default=logger)


@dataclass(slots=True)
class ThumbnailOptions(BaseOptions):
    """Options for thumbnail generation."""


@dataclass(slots=True)
class ImageOptions(BaseOptions):
    """Options for pyramidal or tiled image generation."""

    output_type: OutputType | None = None
    service_id: str | None = None


@dataclass(slots=True)
class IiifOptions(BaseOptions):
    """
    Options for IIIF projection.

    ``save_file`` lets in-memory buffers be written to ``output_dir`` so
    they get stable ids; ``save_json`` writes the resulting document.
    """

    exclude: tuple[ExcludeField, ...] = ()
    save_json: bool = False
