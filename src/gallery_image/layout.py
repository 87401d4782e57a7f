"""
Grid layouts of art items.

A layout is an ordered, row-major 2-D arrangement of ``ArtItem`` with one
nominal thumbnail width shared by every cell. It is built either from a
prepared 2-D array or by placing a flat pool of items at random.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from gallery_image import iiif
from gallery_image import sampling
from gallery_image.art import ArtItem
from gallery_image.config_defaults import (
    DEFAULT_RATIO,
    DEFAULT_THUMBNAIL_WIDTH,
)
from gallery_image.constants import LAYOUT_JSON_SUFFIX
from gallery_image.errors import InputError, LayoutNotFoundError, StateConflict
from gallery_image.logging_utils import logger
from gallery_image.runtime.fetch import fetch_json
from gallery_image.runtime.output import save_json
from gallery_image.schemas import parse_layout_object
from gallery_image.type_defs import IiifOptions

if TYPE_CHECKING:  # pragma: no cover
    import logging
    from collections.abc import Mapping, Sequence

    import numpy as np

    from gallery_image.compositor import GridComposite
    from gallery_image.runtime.store import LayoutStore
    from gallery_image.type_defs import IiifKind, ImageOptions

ArtLike = ArtItem | dict[str, Any]


def _to_art(item: ArtLike) -> ArtItem:
    return item if isinstance(item, ArtItem) else ArtItem.from_input(item)


def grid_shape(total: int, ratio: float) -> tuple[int, int]:
    """
    Return ``(rows, cols)`` for ``total`` items at a width/height ratio.

    Starts from the ideal ratio and then trims up to two columns and one
    row while every item still fits, so little of the grid is wasted.
    """
    if total <= 0:
        msg = "Cannot size a grid for an empty pool."
        raise InputError(msg)
    if ratio <= 0:
        msg = f"Ratio must be positive, got {ratio}"
        raise InputError(msg)

    height = math.ceil(math.sqrt(total / ratio))
    width = math.ceil(height * ratio)

    if width > 2 and (width - 2) * height >= total:  # noqa: PLR2004
        width -= 2
    if width > 1 and (width - 1) * height >= total:
        width -= 1
    if height > 1 and width * (height - 1) >= total:
        height -= 1
    return height, width


def make_random_pattern(  # noqa: PLR0913
    pool: Sequence[ArtItem],
    *,
    num_rows: int | None = None,
    num_cols: int | None = None,
    ratio: float = DEFAULT_RATIO,
    rng: np.random.Generator | None = None,
    log: logging.Logger = logger,
) -> list[list[ArtItem]]:
    """
    Place every pool item once, at random, in row-major order.

    Indices are drawn uniformly and redrawn on collision, so no item is
    used twice. Filling stops when the pool is exhausted: the last row
    may be short and no empty rows are produced.
    """
    total = len(pool)
    if total == 0:
        msg = "No art provided for random pattern generation."
        raise InputError(msg)

    if num_rows and num_cols:
        height, width = num_rows, num_cols
        if height * width < total:
            msg = (
                f"{total} items do not fit in a {height}x{width} layout."
            )
            raise InputError(msg)
    else:
        height, width = grid_shape(total, ratio)

    log.info("Creating random pattern of %d items...", total)

    indices = sampling.draw_unique_indices(total, rng)
    pattern: list[list[ArtItem]] = []
    placed = 0
    for _ in range(height):
        if placed >= total:
            break
        row = [pool[i] for _, i in zip(range(width), indices, strict=False)]
        placed += len(row)
        pattern.append(row)

    log.info("Width: %d, height: %d", len(pattern[0]), len(pattern))
    return pattern


def _check_shape(array: Sequence[Sequence[ArtItem]]) -> None:
    """Every row but the last must be full; no row may be empty."""
    if not array or not array[0]:
        msg = "Layout array must contain at least one art item."
        raise InputError(msg)
    num_cols = len(array[0])
    for index, row in enumerate(array):
        last = index == len(array) - 1
        if not row or len(row) > num_cols or (
                not last and len(row) != num_cols):
            msg = (
                f"Layout array is jagged: row {index} has {len(row)} "
                f"cells, expected {num_cols}."
            )
            raise InputError(msg)


class GridLayout:
    """
    Rectangular arrangement of art items.

    Attributes:
        id: Optional identifier from the caller or a store
        name: Layout name, also the base name of generated outputs
        array: Rows of art items
        thumbnail_width: Cell thumbnail width used when compositing
        image: Composite image art item, once generated

    """

    def __init__(
        self,
        name: str,
        array: Sequence[Sequence[ArtLike]],
        *,
        id: str | None = None,  # noqa: A002
        thumbnail_width: int = DEFAULT_THUMBNAIL_WIDTH,
        image: ArtItem | None = None,
    ) -> None:
        if not name:
            msg = "No layout name provided."
            raise InputError(msg)
        if not isinstance(thumbnail_width, int) or thumbnail_width <= 0:
            msg = f"Thumbnail width must be positive, got {thumbnail_width!r}"
            raise InputError(msg)

        self.id = id
        self.name = name
        self.thumbnail_width = thumbnail_width
        self.array = [[_to_art(item) for item in row] for row in array]
        _check_shape(self.array)
        self.image = image

    @property
    def num_rows(self) -> int:
        """Number of rows, equal to ``len(array)``."""
        return len(self.array)

    @property
    def num_cols(self) -> int:
        """Number of columns, equal to ``len(array[0])``."""
        return len(self.array[0])

    def __iter__(self):
        """Iterate over art items in row-major order."""
        for row in self.array:
            yield from row

    def __len__(self) -> int:
        return sum(len(row) for row in self.array)

    def cells(self):
        """Yield ``(row, col, art)`` in row-major order."""
        for y, row in enumerate(self.array):
            for x, art in enumerate(row):
                yield y, x, art

    def __repr__(self) -> str:
        return (
            f"GridLayout(name={self.name!r}, "
            f"{self.num_rows}x{self.num_cols})"
        )

    # Construction

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        name: str,
        *,
        array: Sequence[Sequence[ArtLike]] | None = None,
        pool: Sequence[ArtLike] | None = None,
        num_rows: int | None = None,
        num_cols: int | None = None,
        ratio: float | None = None,
        thumbnail_width: int = DEFAULT_THUMBNAIL_WIDTH,
        id: str | None = None,  # noqa: A002
        rng: np.random.Generator | None = None,
        log: logging.Logger = logger,
    ) -> GridLayout:
        """
        Build a layout from a prepared array or a random pool.

        Raises:
            InputError: If neither or conflicting options are supplied

        """
        if array is not None:
            if num_rows or num_cols:
                msg = (
                    "Cannot set width or height of layout when a pattern "
                    "is provided."
                )
                raise InputError(msg)
            if ratio:
                msg = (
                    "Cannot set aspect ratio of layout when a pattern is "
                    "provided."
                )
                raise InputError(msg)
            return cls(name, array, id=id, thumbnail_width=thumbnail_width)

        if pool is None:
            msg = "No art passed for random pattern generation."
            raise InputError(msg)
        return cls.from_pool(
            name,
            pool,
            num_rows=num_rows,
            num_cols=num_cols,
            ratio=ratio,
            thumbnail_width=thumbnail_width,
            id=id,
            rng=rng,
            log=log,
        )

    @classmethod
    def from_pool(  # noqa: PLR0913
        cls,
        name: str,
        pool: Sequence[ArtLike],
        *,
        num_rows: int | None = None,
        num_cols: int | None = None,
        ratio: float | None = None,
        thumbnail_width: int = DEFAULT_THUMBNAIL_WIDTH,
        id: str | None = None,  # noqa: A002
        rng: np.random.Generator | None = None,
        log: logging.Logger = logger,
    ) -> GridLayout:
        """Place a flat pool of art at random."""
        if (num_rows or num_cols) and ratio:
            msg = "Cannot pass both num_rows/num_cols and ratio."
            raise InputError(msg)
        if bool(num_rows) != bool(num_cols):
            msg = "num_rows and num_cols must be given together."
            raise InputError(msg)

        art = [_to_art(item) for item in pool]
        pattern = make_random_pattern(
            art,
            num_rows=num_rows,
            num_cols=num_cols,
            ratio=ratio or DEFAULT_RATIO,
            rng=rng,
            log=log,
        )
        return cls(name, pattern, id=id, thumbnail_width=thumbnail_width)

    @classmethod
    def from_flat_object(cls, data: Mapping[str, Any]) -> GridLayout:
        """Rebuild a layout from its flat record."""
        record = parse_layout_object(dict(data))
        layout = cls(
            record.name,
            record.array,
            id=record.id,
            thumbnail_width=record.thumbnail_width,
            image=ArtItem.from_input(record.image) if record.image else None,
        )
        if record.num_rows is not None and record.num_rows != layout.num_rows:
            msg = (
                f"numRows is {record.num_rows} but the array has "
                f"{layout.num_rows} rows."
            )
            raise InputError(msg)
        if record.num_cols is not None and record.num_cols != layout.num_cols:
            msg = (
                f"numCols is {record.num_cols} but the array has "
                f"{layout.num_cols} columns."
            )
            raise InputError(msg)
        return layout

    @classmethod
    def from_store(cls, store: LayoutStore, layout_id: str) -> GridLayout:
        """Load a previously saved layout by id."""
        if not layout_id:
            msg = "No layout ID provided."
            raise InputError(msg)
        record = store.find_layout_by_id(layout_id)
        if record is None:
            msg = f"No existing layout found with id '{layout_id}'."
            raise LayoutNotFoundError(msg)
        return cls.from_flat_object(record)

    @classmethod
    async def from_iiif(
        cls,
        source: Mapping[str, Any] | str,
        *,
        name: str | None = None,
        options: IiifOptions | None = None,
        rng: np.random.Generator | None = None,
    ) -> GridLayout:
        """
        Build a random layout from every Canvas in a Manifest or Collection.

        ``source`` may be the parsed JSON or a path/URL to fetch. The cell
        thumbnail width comes from the first item with cached dimensions,
        or from probing the first item's source.
        """
        options = options or IiifOptions()
        if isinstance(source, str):
            document = await fetch_json(source, timeout=options.timeout)
        else:
            document = dict(source)

        if iiif.iiif_type(document) not in ("Manifest", "Collection"):
            msg = (
                "Invalid IIIF object passed. Please provide a Collection "
                "or Manifest."
            )
            raise InputError(msg)

        pool = [
            ArtItem.from_iiif(obj) for obj in iiif.iter_art_objects(document)
        ]
        if not pool:
            msg = f"IIIF {iiif.iiif_type(document)} contains no Canvas."
            raise InputError(msg)

        thumbnail_width = next(
            (art.dimensions.width for art in pool if art.dimensions),
            None,
        )
        if thumbnail_width is None:
            thumbnail_width = (await pool[0].get_dimensions()).width

        layout_name = name or iiif.label_text(document.get("label"))
        return cls.from_pool(
            layout_name or "iiif-layout",
            pool,
            thumbnail_width=thumbnail_width,
            rng=rng,
            log=options.log,
        )

    # Serialization

    def to_flat_object(
        self,
        *,
        skip_unsaved_thumbnails: bool = False,
    ) -> dict[str, Any]:
        """Return the flat record, mapping every cell through its item."""
        flat: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "thumbnailWidth": self.thumbnail_width,
            "numRows": self.num_rows,
            "numCols": self.num_cols,
            "array": [
                [
                    art.to_flat_object(
                        skip_unsaved_thumbnails=skip_unsaved_thumbnails,
                    )
                    for art in row
                ]
                for row in self.array
            ],
        }
        if self.image is not None:
            flat["image"] = self.image.to_flat_object(
                skip_unsaved_thumbnails=skip_unsaved_thumbnails,
            )
        return flat

    def _base_id(self) -> str:
        return self.id or self.name

    def art_iiif_id(self, art: ArtItem, row: int, col: int) -> str:
        """IIIF id for one cell, falling back to its grid position."""
        return art.id or f"{self._base_id()}/art/{row}/{col}"

    async def array_to_iiif(
        self,
        kind: IiifKind,
        options: IiifOptions | None = None,
    ) -> dict[str, Any]:
        """
        Project the whole grid as one Manifest or one Collection.

        ``Manifest`` turns every cell into a Canvas; ``Collection`` turns
        every cell into its own Manifest. Items follow row-major order.
        """
        options = options or IiifOptions()
        if kind not in ("Manifest", "Collection"):
            msg = f"Invalid IIIF type passed: {kind!r}"
            raise InputError(msg)

        cell_options = replace(options, save_json=False)
        items = []
        for y, x, art in self.cells():
            art_id = self.art_iiif_id(art, y, x)
            if kind == "Manifest":
                items.append(
                    await art.to_iiif_canvas(f"{art_id}/canvas", cell_options),
                )
            else:
                items.append(await art.to_iiif_manifest(art_id, cell_options))

        container_id = f"{self._base_id()}-contents"
        if kind == "Manifest":
            result = iiif.build_manifest(container_id, self.name, items)
        else:
            result = iiif.build_collection(container_id, self.name, items)

        if options.save_json:
            save_json(
                f"{self.name}-{kind.lower()}.json",
                result,
                options.output_dir,
                log=options.log,
            )
        return result

    # Image generation

    async def generate_image(
        self,
        options: ImageOptions,
        *,
        overwrite: bool = False,
    ) -> GridComposite:
        """
        Assemble the composite image for this layout.

        With ``options.save_file`` the layout record is saved alongside
        as ``<name>-layout.json``; in-memory cell thumbnails are left out
        of that record.

        Raises:
            StateConflict: If an image exists and ``overwrite`` is False

        """
        from gallery_image.compositor import assemble  # noqa: PLC0415

        if self.image is not None and not overwrite:
            msg = (
                "Image already exists. Pass `overwrite=True` to replace "
                "the existing image."
            )
            raise StateConflict(msg)
        if not options.output_type:
            msg = "Must specify an output file type."
            raise InputError(msg)

        options.log.info("Generating layout image for %s...", self.name)
        result = await assemble(self, options)
        self.image = result.image

        if options.save_file:
            save_json(
                f"{self.name}{LAYOUT_JSON_SUFFIX}",
                self.to_flat_object(skip_unsaved_thumbnails=True),
                options.output_dir,
                log=options.log,
            )
            options.log.info("Saved %s as a layout.", self.name)
        return result

