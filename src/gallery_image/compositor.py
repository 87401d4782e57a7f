"""
Assemble a grid layout into one composite image.

Every cell's thumbnail is loaded concurrently and joined with
``asyncio.gather`` before compositing, so a cell's position on the
canvas depends only on its row and column. Loading is best effort: a
cell that fails is logged, recorded in ``GridComposite.skipped``, and
left as a gap on the canvas.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gallery_image import codec
from gallery_image.art import ArtItem
from gallery_image.constants import COMPOSITE_NAME_SUFFIX
from gallery_image.errors import GalleryImageError, ResourceUnavailable
from gallery_image.resource import ImageResource
from gallery_image.type_defs import (
    ArtBlock,
    ImageDimensions,
    ImageOptions,
    ThumbnailOptions,
)

if TYPE_CHECKING:  # pragma: no cover
    from gallery_image.layout import GridLayout


@dataclass(slots=True)
class SkippedCell:
    """A cell left out of the composite and the reason why."""

    row: int
    col: int
    source_name: str
    reason: str


@dataclass(slots=True)
class GridComposite:
    """
    Result of assembling a layout.

    ``image`` is an art item that owns the composite resource, so the
    composite can be serialized or projected to IIIF like any other art.
    """

    layout: GridLayout
    buffer: bytes
    size: tuple[int, int]
    cell_size: tuple[int, int]
    blocks: list[ArtBlock] = field(default_factory=list)
    skipped: list[SkippedCell] = field(default_factory=list)
    image: ArtItem | None = None


def composite_name(layout: GridLayout) -> str:
    """Base name used for a layout's composite outputs."""
    return f"{layout.name}{COMPOSITE_NAME_SUFFIX}"


async def _cell_size(
    layout: GridLayout,
    options: ThumbnailOptions,
) -> tuple[int, int]:
    """
    Probe one representative cell thumbnail for the cell size.

    Thumbnails of one width are assumed to share a height across the
    grid; cells are tried in row-major order until one can be probed.
    """
    width = layout.thumbnail_width
    for y, x, art in layout.cells():
        try:
            await art.load_or_create_thumbnail(width, options)
            thumbnail = art.get_thumbnail(width)
            dims = await thumbnail.get_dimensions()
        except (GalleryImageError, OSError) as e:
            options.log.warning(
                "Could not probe cell (%d, %d) %s: %s",
                y,
                x,
                art.source_name,
                e,
            )
            continue
        return dims.width, dims.height
    msg = f"No cell of layout {layout.name} could be loaded."
    raise ResourceUnavailable(msg)


async def _load_cell(  # noqa: PLR0913
    art: ArtItem,
    row: int,
    col: int,
    cell_size: tuple[int, int],
    width: int,
    options: ThumbnailOptions,
) -> ArtBlock | SkippedCell:
    """Load one cell thumbnail, converting failures into a skip record."""
    cell_w, cell_h = cell_size
    try:
        data = await art.load_or_create_thumbnail(width, options)
    except (GalleryImageError, OSError) as e:
        options.log.exception(
            "Skipping cell (%d, %d) %s",
            row,
            col,
            art.source_name,
        )
        return SkippedCell(row, col, art.source_name, str(e))

    options.log.debug("Cell (%d, %d) %s fetched", row, col, art.source_name)
    return ArtBlock(
        input=data,
        top=row * cell_h,
        left=col * cell_w,
        row=row,
        col=col,
    )


async def load_blocks(
    layout: GridLayout,
    cell_size: tuple[int, int],
    options: ThumbnailOptions,
) -> tuple[list[ArtBlock], list[SkippedCell]]:
    """
    Load every cell concurrently and join the results in row-major order.

    Returns the loaded blocks and the skipped cells.
    """
    outcomes = await asyncio.gather(*(
        _load_cell(art, y, x, cell_size, layout.thumbnail_width, options)
        for y, x, art in layout.cells()
    ))
    blocks = [o for o in outcomes if isinstance(o, ArtBlock)]
    skipped = [o for o in outcomes if isinstance(o, SkippedCell)]
    return blocks, skipped


async def assemble(
    layout: GridLayout,
    options: ImageOptions | None = None,
) -> GridComposite:
    """
    Composite every cell thumbnail of ``layout`` into one image.

    When ``options.output_type`` is set, the composite is also encoded as
    a pyramidal TIFF or tile directory named ``<layout name>-stitch``.

    Raises:
        ResourceUnavailable: If no cell at all can be loaded

    """
    options = options or ImageOptions()
    log = options.log
    thumbnail_options = ThumbnailOptions(
        save_file=False,
        timeout=options.timeout,
        log=log,
    )

    total = len(layout)
    log.info("Beginning stitched image generation of %d cells...", total)

    cell_size = await _cell_size(layout, thumbnail_options)
    blocks, skipped = await load_blocks(layout, cell_size, thumbnail_options)

    if skipped:
        log.warning(
            "%d of %d cells were skipped: %s",
            len(skipped),
            total,
            ", ".join(f"({s.row}, {s.col})" for s in skipped),
        )
    log.info("Loaded %d images. Stitching...", len(blocks))

    cell_w, cell_h = cell_size
    size = (cell_w * layout.num_cols, cell_h * layout.num_rows)
    buffer = codec.composite(size, blocks)

    name = composite_name(layout)
    result = GridComposite(
        layout=layout,
        buffer=buffer,
        size=size,
        cell_size=cell_size,
        blocks=blocks,
        skipped=skipped,
    )

    if options.output_type:
        canvas = ImageResource(
            name=name,
            buffer=buffer,
            dimensions=ImageDimensions(*size),
        )
        image = await canvas.generate_image(options)
        result.image = ArtItem(
            image,
            metadata={"title": name},
            dimensions=image.dimensions,
        )
        log.info("Pattern fully stitched into %s.", image.id)
    return result
