"""Art items: one source image, its thumbnails, and its metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from gallery_image import iiif
from gallery_image.errors import InputError, SerializationError, StateConflict
from gallery_image.resource import (
    ImageResource,
    buffer_id,
    thumbnail_file_name,
)
from gallery_image.runtime.fetch import file_name
from gallery_image.runtime.output import save_json
from gallery_image.schemas import (
    ArtRecord,
    SourceValue,
    parse_art_input,
)
from gallery_image.type_defs import IiifOptions, ThumbnailOptions

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Mapping

    from gallery_image.schemas import ArtInputKind
    from gallery_image.type_defs import ImageDimensions

_CANVAS_SUFFIX = "-canvas.json"
_MANIFEST_SUFFIX = "-manifest.json"


def _resource(
    value: SourceValue | ImageResource,
    name: str,
    width: int | None = None,
) -> ImageResource:
    if isinstance(value, ImageResource):
        return value
    if isinstance(value, bytes | bytearray):
        placeholder = (
            buffer_id(thumbnail_file_name(name, width)) if width else None
        )
        return ImageResource(placeholder, name=name, buffer=bytes(value))
    return ImageResource(value, name=name)


class ArtItem:
    """
    One piece of art: a source image plus derived thumbnails.

    ``source`` may be a path, URL, raw bytes, or a ready ImageResource.
    A byte source has no inferable name, so ``metadata["title"]`` is
    required in that case and becomes the item's ``source_name``.

    Attributes:
        id: Optional identifier assigned by the caller or a store
        source: Full-resolution image
        source_name: Display name derived from the source or title
        thumbnails: Thumbnail resources keyed by pixel width
        metadata: Descriptive fields in insertion order
        dimensions: Full-resolution dimensions, once probed

    """

    def __init__(  # noqa: PLR0913
        self,
        source: SourceValue | ImageResource,
        *,
        id: str | None = None,  # noqa: A002
        thumbnails: Mapping[int, SourceValue | ImageResource] | None = None,
        metadata: Mapping[str, Any] | None = None,
        dimensions: ImageDimensions | None = None,
    ) -> None:
        if source is None or source in ("", b""):
            msg = "Art requires a source image."
            raise InputError(msg)

        self.id = id
        self.metadata: dict[str, Any] = dict(metadata or {})
        self.source_name = self._derive_source_name(source)
        self.source = _resource(source, self.source_name)
        if dimensions is not None and self.source.dimensions is None:
            self.source.dimensions = dimensions
        self.dimensions = dimensions

        self.thumbnails: dict[int, ImageResource] = {}
        for width, value in (thumbnails or {}).items():
            self._check_width(width)
            self.thumbnails[width] = _resource(value, self.source_name, width)

    def _derive_source_name(self, source: SourceValue | ImageResource) -> str:
        if isinstance(source, ImageResource):
            if not source.in_memory:
                return file_name(source.id)
            title = self.metadata.get("title") or source.name
        elif isinstance(source, bytes | bytearray):
            title = self.metadata.get("title")
        else:
            return file_name(str(source))
        if not title:
            msg = "Art built from a buffer requires metadata.title."
            raise InputError(msg)
        return str(title)

    @staticmethod
    def _check_width(width: object) -> None:
        if not isinstance(width, int) or isinstance(width, bool) or width <= 0:
            msg = f"Thumbnail widths must be positive integers, got {width!r}"
            raise InputError(msg)

    def __repr__(self) -> str:
        return f"ArtItem(id={self.id!r}, source_name={self.source_name!r})"

    # Construction from the supported input shapes

    @classmethod
    def from_record(cls, record: ArtRecord) -> ArtItem:
        """Build an item from a normalized record."""
        return cls(
            record.source,
            id=record.id,
            thumbnails=record.thumbnails,
            metadata=record.metadata,
            dimensions=record.dimensions,
        )

    @classmethod
    def from_input(
        cls,
        data: Mapping[str, Any],
        kind: ArtInputKind | None = None,
    ) -> ArtItem:
        """Build an item from a current, legacy, or IIIF mapping."""
        return cls.from_record(parse_art_input(dict(data), kind).normalize())

    @classmethod
    def from_flat_object(cls, data: Mapping[str, Any]) -> ArtItem:
        """Build an item from the current or legacy flat shape."""
        return cls.from_input(data)

    @classmethod
    def from_iiif(cls, data: Mapping[str, Any]) -> ArtItem:
        """Build an item from an IIIF Canvas or Manifest."""
        return cls.from_input(data, kind="iiif")

    # Thumbnails

    def thumbnail_exists(self, width: int) -> bool:
        """Return True when a thumbnail of ``width`` is present."""
        return width in self.thumbnails

    def get_thumbnail(self, width: int) -> ImageResource | None:
        """Return the thumbnail resource of ``width``, if any."""
        return self.thumbnails.get(width)

    async def create_thumbnail(
        self,
        width: int,
        options: ThumbnailOptions | None = None,
    ) -> ImageResource:
        """
        Generate and register a thumbnail of ``width``.

        Raises:
            InputError: If ``width`` is not a positive integer
            StateConflict: If a thumbnail of that width already exists

        """
        self._check_width(width)
        if self.thumbnail_exists(width):
            msg = (
                f"Thumbnail of width {width} already exists for "
                f"{self.source_name}."
            )
            raise StateConflict(msg)

        thumbnail = await self.source.generate_thumbnail(width, options)
        self.thumbnails[width] = thumbnail
        return thumbnail

    async def load_or_create_thumbnail(
        self,
        width: int,
        options: ThumbnailOptions | None = None,
    ) -> bytes:
        """Return thumbnail bytes, creating an unsaved thumbnail if needed."""
        thumbnail = self.get_thumbnail(width)
        if thumbnail is None:
            create_options = ThumbnailOptions(save_file=False)
            if options is not None:
                create_options.timeout = options.timeout
                create_options.log = options.log
            thumbnail = await self.create_thumbnail(width, create_options)
        timeout = options.timeout if options is not None else None
        return await thumbnail.load_resource(timeout=timeout)

    async def get_dimensions(self) -> ImageDimensions:
        """Probe the full-resolution source and cache its dimensions."""
        if self.dimensions is None:
            self.dimensions = await self.source.get_dimensions()
        return self.dimensions

    # Serialization

    def to_flat_object(
        self,
        *,
        skip_unsaved_thumbnails: bool = False,
    ) -> dict[str, Any]:
        """
        Return the current flat shape of this item.

        Raises:
            SerializationError: If the source, or a thumbnail while
                ``skip_unsaved_thumbnails`` is False, only exists in
                memory

        """
        if self.source.in_memory:
            msg = (
                f"Cannot serialize {self.source_name}: source is an unsaved "
                "buffer. Save it to disk first."
            )
            raise SerializationError(msg)

        thumbnails: dict[str, str] = {}
        for width, resource in self.thumbnails.items():
            if resource.in_memory:
                if skip_unsaved_thumbnails:
                    continue
                msg = (
                    f"Cannot serialize {self.source_name}: {width}px "
                    "thumbnail is an unsaved buffer. Save it to disk first."
                )
                raise SerializationError(msg)
            thumbnails[str(width)] = resource.id

        flat: dict[str, Any] = {
            "id": self.id,
            "source": self.source.id,
            "thumbnails": thumbnails,
            "metadata": dict(self.metadata),
        }
        if self.dimensions is not None:
            flat["dimensions"] = {
                "width": self.dimensions.width,
                "height": self.dimensions.height,
                "orientation": self.dimensions.orientation,
            }
        return flat

    # IIIF projection

    async def _iiif_parts(
        self,
        options: IiifOptions,
    ) -> tuple[dict, list[dict] | None, list[dict] | None]:
        await self.get_dimensions()
        body = await self.source.to_iiif_content_resource(options)

        thumbnails = None
        if "thumbnails" not in options.exclude:
            thumbnails = [
                await resource.to_iiif_content_resource(options)
                for _, resource in sorted(
                    self.thumbnails.items(),
                    reverse=True,
                )
            ]

        metadata = None
        if "metadata" not in options.exclude:
            metadata = iiif.metadata_to_iiif(self.metadata)
        return body, thumbnails, metadata

    def _label(self) -> str:
        return str(self.metadata.get("title") or self.source_name)

    async def to_iiif_canvas(
        self,
        canvas_id: str,
        options: IiifOptions | None = None,
    ) -> dict[str, Any]:
        """Project this item onto an IIIF Canvas."""
        options = options or IiifOptions()
        body, thumbnails, metadata = await self._iiif_parts(options)
        canvas = iiif.build_canvas(
            canvas_id,
            body,
            label=self._label(),
            thumbnails=thumbnails,
            metadata=metadata,
        )
        if options.save_json:
            save_json(
                f"{self.source_name}{_CANVAS_SUFFIX}",
                canvas,
                options.output_dir,
                log=options.log,
            )
        return canvas

    async def to_iiif_manifest(
        self,
        manifest_id: str,
        options: IiifOptions | None = None,
    ) -> dict[str, Any]:
        """Project this item onto a single-Canvas IIIF Manifest."""
        options = options or IiifOptions()
        body, thumbnails, metadata = await self._iiif_parts(options)
        canvas = iiif.build_canvas(
            f"{manifest_id}/canvas",
            body,
            label=self._label(),
        )
        manifest = iiif.build_manifest(
            manifest_id,
            self._label(),
            [canvas],
            thumbnails=thumbnails,
            metadata=metadata,
        )
        if options.save_json:
            save_json(
                f"{self.source_name}{_MANIFEST_SUFFIX}",
                manifest,
                options.output_dir,
                log=options.log,
            )
        return manifest
