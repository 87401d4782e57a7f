"""
Flat JSON shapes accepted and produced by gallery-image.

Art items arrive in one of three shapes: the current flat object, a
legacy flat object with differently named fields, or an IIIF Canvas /
Manifest. ``parse_art_input`` resolves the shape once at the boundary
into a tagged ``ArtInput`` whose ``normalize`` method yields the single
canonical ``ArtRecord`` used everywhere else.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
)

from gallery_image import iiif
from gallery_image.config_defaults import DEFAULT_THUMBNAIL_WIDTH
from gallery_image.errors import InputError
from gallery_image.type_defs import ImageDimensions

ArtInputKind = Literal["current", "legacy", "iiif"]
SourceValue = str | bytes

_LEGACY_THUMBNAIL_RE = re.compile(r"^s-(\d+)px$")
_CANVAS_ID_SUFFIX = "/canvas"


class DimensionsModel(BaseModel):
    """Cached pixel dimensions."""

    width: int = Field(ge=1)
    height: int = Field(ge=1)
    orientation: int | None = None


class ArtObject(BaseModel):
    """Current flat art shape."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    source: SourceValue
    thumbnails: dict[int, SourceValue] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    dimensions: DimensionsModel | None = None


class LegacyArtObject(BaseModel):
    """
    Legacy flat art shape.

    ``tiles`` pointed at a deprecated zoomable-image record and is
    accepted only so older documents validate; it is dropped.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(None, validation_alias=AliasChoices("_id", "id"))
    orig: str
    tiles: Any = None
    thumbnails: dict[str, str] = Field(default_factory=dict)
    creator: str | None = None
    title: str | None = None
    details: str | None = None
    date: str | dt.date | None = None
    location: str | None = None


class LayoutObject(BaseModel):
    """Flat layout shape, with legacy size keys accepted on read."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | None = Field(None, validation_alias=AliasChoices("id", "_id"))
    name: str = Field(min_length=1)
    thumbnail_width: int = Field(
        DEFAULT_THUMBNAIL_WIDTH,
        ge=1,
        validation_alias=AliasChoices(
            "thumbnailWidth",
            "thumbnailSize",
            "noteImageSize",
            "thumbnail_width",
        ),
    )
    num_rows: int | None = Field(
        None,
        validation_alias=AliasChoices("numRows", "num_rows"),
    )
    num_cols: int | None = Field(
        None,
        validation_alias=AliasChoices("numCols", "num_cols"),
    )
    array: list[list[dict[str, Any]]] = Field(min_length=1)
    image: dict[str, Any] | None = None


@dataclass(slots=True)
class ArtRecord:
    """Canonical, shape-independent description of one art item."""

    source: SourceValue
    id: str | None = None
    thumbnails: dict[int, SourceValue] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    dimensions: ImageDimensions | None = None


def _validate(model: type[BaseModel], data: Any) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        msg = f"Malformed {model.__name__}: {e}"
        raise InputError(msg) from e


def _legacy_width(key: str) -> int:
    match = _LEGACY_THUMBNAIL_RE.match(key)
    if match:
        return int(match.group(1))
    if key.isdigit():
        return int(key)
    msg = f"Unrecognized legacy thumbnail key: '{key}'"
    raise InputError(msg)


def _check_widths(widths: dict[int, SourceValue]) -> dict[int, SourceValue]:
    for width in widths:
        if width <= 0:
            msg = f"Thumbnail widths must be positive, got {width}"
            raise InputError(msg)
    return widths


def _from_current(obj: ArtObject) -> ArtRecord:
    dims = obj.dimensions
    return ArtRecord(
        id=obj.id,
        source=obj.source,
        thumbnails=_check_widths(dict(obj.thumbnails)),
        metadata=dict(obj.metadata),
        dimensions=ImageDimensions(**dims.model_dump()) if dims else None,
    )


def _from_legacy(obj: LegacyArtObject) -> ArtRecord:
    metadata: dict[str, Any] = {}
    for key in ("creator", "title", "details", "date", "location"):
        value = getattr(obj, key)
        if isinstance(value, dt.date):
            value = value.isoformat()
        if value is not None:
            metadata[key] = value
    thumbnails: dict[int, SourceValue] = {
        _legacy_width(key): value for key, value in obj.thumbnails.items()
    }
    return ArtRecord(
        id=obj.id,
        source=obj.orig,
        thumbnails=_check_widths(thumbnails),
        metadata=metadata,
    )


def _from_iiif(obj: dict[str, Any]) -> ArtRecord:
    kind = iiif.iiif_type(obj)
    if kind == "Manifest":
        items = obj.get("items") or []
        if not items:
            msg = f"Manifest {obj.get('id')} contains no Canvas"
            raise InputError(msg)
        canvas = items[0]
        art_id = obj.get("id")
    else:
        canvas = obj
        art_id = obj.get("id")
        if art_id and art_id.endswith(_CANVAS_ID_SUFFIX):
            art_id = art_id[: -len(_CANVAS_ID_SUFFIX)]

    body = iiif.canvas_body(canvas)
    thumbnails: dict[int, SourceValue] = {}
    for resource in canvas.get("thumbnail") or obj.get("thumbnail") or []:
        width = resource.get("width")
        if not isinstance(width, int) or not resource.get("id"):
            msg = "IIIF thumbnails must carry an id and an integer width"
            raise InputError(msg)
        thumbnails[width] = resource["id"]

    metadata = iiif.metadata_from_iiif(
        canvas.get("metadata") or obj.get("metadata") or [],
    )
    label = iiif.label_text(canvas.get("label") or obj.get("label"))
    if label and "title" not in metadata:
        metadata["title"] = label

    width = body.get("width") or canvas.get("width")
    height = body.get("height") or canvas.get("height")
    dims = ImageDimensions(width, height) if width and height else None

    return ArtRecord(
        id=art_id,
        source=body["id"],
        thumbnails=_check_widths(thumbnails),
        metadata=metadata,
        dimensions=dims,
    )


@dataclass(slots=True)
class ArtInput:
    """An art payload tagged with the shape it arrived in."""

    kind: ArtInputKind
    payload: Any

    def normalize(self) -> ArtRecord:
        """Convert the tagged payload into the canonical record."""
        if self.kind == "current":
            return _from_current(_validate(ArtObject, self.payload))
        if self.kind == "legacy":
            return _from_legacy(_validate(LegacyArtObject, self.payload))
        return _from_iiif(self.payload)


def detect_art_kind(data: dict[str, Any]) -> ArtInputKind:
    """Work out which input shape ``data`` uses."""
    if iiif.iiif_type(data) in ("Canvas", "Manifest"):
        return "iiif"
    if "orig" in data:
        return "legacy"
    if "source" in data:
        return "current"
    msg = (
        "Unrecognized art object: expected a 'source' (current), "
        "'orig' (legacy), or an IIIF Canvas/Manifest."
    )
    raise InputError(msg)


def parse_art_input(
    data: Any,
    kind: ArtInputKind | None = None,
) -> ArtInput:
    """Tag ``data`` with its shape, detecting it unless ``kind`` is given."""
    if not isinstance(data, dict):
        msg = f"Art input must be a mapping, got {type(data).__name__}"
        raise InputError(msg)
    return ArtInput(kind=kind or detect_art_kind(data), payload=data)


def parse_layout_object(data: Any) -> LayoutObject:
    """Validate a flat layout record."""
    return _validate(LayoutObject, data)
