"""Lazily loaded, memoized image resources and their derivations."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from gallery_image import codec, iiif
from gallery_image.config_defaults import DEFAULT_FETCH_TIMEOUT
from gallery_image.constants import (
    BUFFER_ID_SUFFIX,
    PYRAMID_EXTENSION,
    THUMBNAIL_EXTENSION,
)
from gallery_image.errors import InputError
from gallery_image.runtime.fetch import fetch_bytes, resolve_location
from gallery_image.runtime.output import require_output_dir, save_file
from gallery_image.type_defs import (
    ImageDimensions,
    ImageOptions,
    ThumbnailOptions,
)

if TYPE_CHECKING:  # pragma: no cover
    import httpx

    from gallery_image.type_defs import IiifOptions, TileLayout


def buffer_id(name: str) -> str:
    """Return the placeholder id for a resource that only lives in memory."""
    return f"{name}{BUFFER_ID_SUFFIX}"


def thumbnail_file_name(name: str, width: int) -> str:
    """Deterministic file name for a thumbnail of ``name``."""
    return f"{name}-{width}px.{THUMBNAIL_EXTENSION}"


class ImageResource:
    """
    Handle to one image, loaded on first use and then kept in memory.

    A resource is identified by a path or URL, or by a ``-buffer``
    placeholder when it only exists as bytes. The buffer is written at
    most once; later loads return the cached bytes.

    Attributes:
        id: Canonical location, or the in-memory placeholder
        name: Display name of the owning art item, used to name outputs
        buffer: Loaded bytes, if any
        dimensions: Probed dimensions, if any

    """

    def __init__(
        self,
        id: str | Path | None = None,  # noqa: A002
        *,
        name: str,
        buffer: bytes | None = None,
        dimensions: ImageDimensions | None = None,
    ) -> None:
        if not name:
            msg = "Image resource requires a name."
            raise InputError(msg)
        if id is None and buffer is None:
            msg = f"Image resource '{name}' needs a location or a buffer."
            raise InputError(msg)

        self.name = name
        if id is None:
            self._id = buffer_id(name)
        elif str(id).endswith(BUFFER_ID_SUFFIX):
            self._id = str(id)
        else:
            self._id = resolve_location(id)
        self.buffer = buffer
        self.dimensions = dimensions

    @property
    def id(self) -> str:
        """Canonical location of this resource."""
        return self._id

    @property
    def in_memory(self) -> bool:
        """True when the resource has no resolvable location."""
        return self._id.endswith(BUFFER_ID_SUFFIX)

    def __repr__(self) -> str:
        loaded = "loaded" if self.buffer is not None else "unloaded"
        return f"ImageResource({self._id!r}, {loaded})"

    async def load_resource(
        self,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> bytes:
        """
        Return the resource bytes, fetching them on first call.

        Raises:
            InputError: If the resource only existed in memory and has no
                buffer to return
            ResourceUnavailable: If the fetch fails or times out

        """
        if self.buffer is not None:
            return self.buffer
        if self.in_memory:
            msg = f"Resource {self._id} has no buffer and no location."
            raise InputError(msg)

        self.buffer = await fetch_bytes(
            self._id,
            timeout=timeout or DEFAULT_FETCH_TIMEOUT,
            client=client,
        )
        return self.buffer

    async def get_dimensions(self) -> ImageDimensions:
        """Probe width, height and orientation, memoizing the result."""
        if self.dimensions is None:
            data = await self.load_resource()
            self.dimensions = codec.probe_dimensions(data)
        return self.dimensions

    async def generate_thumbnail(
        self,
        width: int,
        options: ThumbnailOptions | None = None,
    ) -> ImageResource:
        """
        Create a JPEG thumbnail of this resource as a new resource.

        When ``options.save_file`` is set, the thumbnail is written to
        ``options.output_dir`` as ``<name>-<width>px.jpeg`` and that path
        becomes its id; otherwise it stays in memory.
        """
        if not isinstance(width, int) or width <= 0:
            msg = f"A positive thumbnail width is required, got {width!r}."
            raise InputError(msg)
        options = options or ThumbnailOptions()

        source = await self.load_resource(timeout=options.timeout)
        thumbnail = codec.resize(source, width)
        options.log.debug("Created %dpx thumbnail for %s", width, self.name)

        image_name = thumbnail_file_name(self.name, width)
        if options.save_file:
            thumbnail_id = save_file(
                image_name,
                thumbnail,
                options.output_dir,
                log=options.log,
            )
        else:
            thumbnail_id = buffer_id(image_name)

        return ImageResource(thumbnail_id, name=self.name, buffer=thumbnail)

    async def generate_image(self, options: ImageOptions) -> ImageResource:
        """
        Re-encode this resource as a zoomable image.

        ``tif``/``tiff`` produce a single pyramidal TIFF; ``iiif`` and
        ``dzi`` write a tile directory named after the resource and
        therefore require ``save_file``.
        """
        if not options.output_type:
            msg = "Output type is required for image generation."
            raise InputError(msg)

        if options.output_type in ("tif", "tiff"):
            image = await self._tiff_with_pyramids(options)
        elif options.output_type in ("iiif", "dzi"):
            image = await self._tile_directory(options.output_type, options)
        else:
            msg = f"Unknown output type: {options.output_type}"
            raise InputError(msg)

        if options.save_file:
            options.log.info(
                "Image transformed successfully. File(s) saved to %s.",
                options.output_dir,
            )
        else:
            options.log.info("Image transformed successfully.")
        return image

    async def _tiff_with_pyramids(
        self,
        options: ImageOptions,
    ) -> ImageResource:
        data = await self.load_resource(timeout=options.timeout)
        dims = await self.get_dimensions()
        tiff = codec.encode_tiled_pyramid(
            data,
            codec.minimum_tile_size(dims.width),
            codec.minimum_tile_size(dims.height),
        )

        image_name = f"{self.name}.{PYRAMID_EXTENSION}"
        if options.save_file:
            tiff_id = save_file(
                image_name,
                tiff,
                options.output_dir,
                log=options.log,
            )
        else:
            tiff_id = buffer_id(image_name)
        return ImageResource(
            tiff_id,
            name=self.name,
            buffer=tiff,
            dimensions=ImageDimensions(dims.width, dims.height),
        )

    async def _tile_directory(
        self,
        layout_kind: TileLayout,
        options: ImageOptions,
    ) -> ImageResource:
        if not options.save_file:
            msg = (
                f"Setting output to `{layout_kind}` requires files saved "
                "to disk. Set `save_file=True`."
            )
            raise InputError(msg)
        out_root = require_output_dir(
            options.output_dir,
            f"write {layout_kind} tiles",
        )
        data = await self.load_resource(timeout=options.timeout)
        dims = await self.get_dimensions()
        out_dir = codec.encode_tile_directory(
            data,
            layout_kind,
            out_root / self.name,
            base_id=options.service_id,
        )
        options.log.info("Wrote %s tiles to %s", layout_kind, out_dir)

        if layout_kind == "iiif":
            location = options.service_id or str(out_dir)
        else:
            location = str(out_dir / f"{self.name}.dzi")
        return ImageResource(
            location,
            name=self.name,
            dimensions=ImageDimensions(dims.width, dims.height),
        )

    def persist(self, output_dir: str | None, options: IiifOptions) -> str:
        """
        Save an in-memory buffer to ``output_dir`` and adopt the new path.

        Returns the resource id, unchanged when it was already on disk.
        """
        if not self.in_memory:
            return self._id
        if self.buffer is None:
            msg = f"Resource {self._id} has no buffer to save."
            raise InputError(msg)
        file_name = self._id[: -len(BUFFER_ID_SUFFIX)]
        self._id = save_file(
            file_name,
            self.buffer,
            output_dir,
            log=options.log,
        )
        return self._id

    async def to_iiif_content_resource(
        self,
        options: IiifOptions,
    ) -> dict[str, object]:
        """
        Describe this resource as an IIIF Image content resource.

        In-memory resources are saved first when ``options.save_file`` and
        ``options.output_dir`` allow it; otherwise they cannot be given a
        stable id and an ``InputError`` is raised.
        """
        dims = await self.get_dimensions()
        if self.in_memory:
            if not options.save_file or not options.output_dir:
                msg = (
                    f"Resource {self._id} is only stored in memory. Provide "
                    "an output directory to save the buffer to disk."
                )
                raise InputError(msg)
            self.persist(options.output_dir, options)
        return iiif.content_resource(self._id, dims.width, dims.height)
