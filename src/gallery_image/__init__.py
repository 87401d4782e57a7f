"""Art grid layouts, composite images, and IIIF metadata."""

from __future__ import annotations

from .art import ArtItem
from .compositor import GridComposite, SkippedCell, assemble
from .errors import (
    GalleryImageError,
    InputError,
    LayoutNotFoundError,
    ResourceUnavailable,
    SerializationError,
    StateConflict,
)
from .layout import GridLayout, make_random_pattern
from .resource import ImageResource
from .type_defs import (
    IiifOptions,
    ImageDimensions,
    ImageOptions,
    ThumbnailOptions,
)

__all__ = [
    "ArtItem",
    "GalleryImageError",
    "GridComposite",
    "GridLayout",
    "IiifOptions",
    "ImageDimensions",
    "ImageOptions",
    "ImageResource",
    "InputError",
    "LayoutNotFoundError",
    "ResourceUnavailable",
    "SerializationError",
    "SkippedCell",
    "StateConflict",
    "ThumbnailOptions",
    "assemble",
    "make_random_pattern",
]
