"""
Pixel codec operations used by resources and the compositor.

Resizing, header probing, and compositing use Pillow. Pyramidal TIFF
and tile-directory encoding use libvips through pyvips, which is only
imported when one of those encoders is called.
"""
from __future__ import annotations

import io
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from gallery_image.constants import (
    COLOR_BACKGROUND,
    COLOR_MODE_RGB,
    COLOR_MODE_RGBA,
    COMPOSITE_FORMAT,
    EXIF_ORIENTATION_TAG,
    MAX_TILE_SIZE,
    THUMBNAIL_FORMAT,
    TILE_ALIGNMENT,
)
from gallery_image.errors import InputError
from gallery_image.type_defs import ImageDimensions

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence

    from gallery_image.type_defs import ArtBlock, TileLayout

_RGBA = tuple[int, int, int, int]


def _open(data: bytes) -> Image.Image:
    """Open an in-memory image, mapping decode failures to InputError."""
    try:
        return Image.open(io.BytesIO(data))
    except UnidentifiedImageError as e:
        msg = f"Buffer is not a decodable image: {e!s}"
        raise InputError(msg) from e
    except Image.DecompressionBombError as e:
        msg = f"Image is too large to decode: {e!s}"
        raise InputError(msg) from e


def minimum_tile_size(edge: int) -> int:
    """
    Return a tile edge for a pyramidal image of the given width/height.

    The edge is aligned down to a multiple of 16 and then halved until it
    is no larger than 256, e.g. 1000 -> 992 -> 496 -> 248. Images smaller
    than one alignment step use their own edge.
    """
    if edge <= 0:
        msg = f"Tile edge must be positive, got {edge}"
        raise InputError(msg)
    tile = edge - (edge % TILE_ALIGNMENT)
    if tile == 0:
        return edge
    while tile > MAX_TILE_SIZE:
        tile //= 2
    return tile


def probe_dimensions(data: bytes) -> ImageDimensions:
    """Read width, height and EXIF orientation from an image header."""
    with _open(data) as img:
        orientation = img.getexif().get(EXIF_ORIENTATION_TAG)
        return ImageDimensions(
            width=img.width,
            height=img.height,
            orientation=orientation,
        )


def resize(data: bytes, width: int) -> bytes:
    """
    Resize an image to ``width`` keeping aspect and encode it as JPEG.

    EXIF metadata is carried over so orientation survives the resize.
    """
    if width <= 0:
        msg = f"Thumbnail width must be positive, got {width}"
        raise InputError(msg)
    with _open(data) as img:
        scale = width / img.width
        height = max(1, round(img.height * scale))
        exif = img.getexif()
        resized = img.convert(COLOR_MODE_RGB).resize(
            (width, height),
            Image.Resampling.LANCZOS,
        )
    out = io.BytesIO()
    resized.save(out, format=THUMBNAIL_FORMAT, exif=exif)
    return out.getvalue()


def composite(
    size: tuple[int, int],
    blocks: Sequence[ArtBlock],
    *,
    background: _RGBA = COLOR_BACKGROUND,
) -> bytes:
    """
    Paint every block at its offset onto a solid canvas.

    Returns the canvas encoded as an uncompressed TIFF so it can be fed
    losslessly to the pyramid and tile encoders.
    """
    canvas = Image.new(COLOR_MODE_RGBA, size, background)
    for block in blocks:
        with _open(block.input) as tile:
            canvas.paste(
                tile.convert(COLOR_MODE_RGBA),
                (block.left, block.top),
            )
    out = io.BytesIO()
    canvas.save(out, format=COMPOSITE_FORMAT)
    return out.getvalue()


def encode_tiled_pyramid(
    data: bytes,
    tile_width: int,
    tile_height: int,
) -> bytes:
    """Encode ``data`` as a tiled, pyramidal TIFF."""
    import pyvips  # noqa: PLC0415

    image = pyvips.Image.new_from_buffer(data, "")
    return image.tiffsave_buffer(
        tile=True,
        pyramid=True,
        tile_width=tile_width,
        tile_height=tile_height,
    )


def encode_tile_directory(
    data: bytes,
    layout_kind: TileLayout,
    out_dir: Path,
    *,
    base_id: str | None = None,
) -> Path:
    """
    Write ``data`` as a directory of zoomable tiles and return it.

    ``iiif`` writes an IIIF Image API 3 layout whose ``info.json`` points
    at ``base_id``; ``dzi`` writes a Deep Zoom ``.dzi`` descriptor plus
    its ``_files`` tree inside ``out_dir``. Any previous output at
    ``out_dir`` is replaced.
    """
    import pyvips  # noqa: PLC0415

    if out_dir.exists():
        shutil.rmtree(out_dir)

    image = pyvips.Image.new_from_buffer(data, "")
    if layout_kind == "iiif":
        out_dir.parent.mkdir(parents=True, exist_ok=True)
        image.dzsave(
            str(out_dir),
            layout="iiif3",
            id=(base_id or str(out_dir)).rstrip("/"),
        )
    elif layout_kind == "dzi":
        out_dir.mkdir(parents=True)
        image.dzsave(str(out_dir / out_dir.name), layout="dz")
    else:
        msg = f"Unknown tile layout: {layout_kind}"
        raise InputError(msg)
    return out_dir
