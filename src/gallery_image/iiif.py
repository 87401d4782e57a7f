"""
IIIF Presentation 3 mapping functions.

Pure functions with no state: they turn already-resolved values (ids,
dimensions, metadata records) into Canvas / Manifest / Collection JSON
and read the same structures back. Anything that needs I/O, such as
probing dimensions or saving buffers, happens in the entity classes
before these helpers are called.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import urlparse

from gallery_image.constants import (
    IIIF_CONTEXT,
    IIIF_LANGUAGE,
    IIIF_MOTIVATION,
    MIME_ALIASES,
)
from gallery_image.errors import InputError

__all__ = [
    "build_canvas",
    "build_collection",
    "build_manifest",
    "canvas_body",
    "content_resource",
    "iiif_type",
    "iter_canvases",
    "label_text",
    "language_map",
    "metadata_from_iiif",
    "metadata_to_iiif",
    "mime_type_for",
]

IiifObject = dict[str, Any]


def language_map(value: object) -> dict[str, list[str]]:
    """Wrap a value in a single-language IIIF string map."""
    return {IIIF_LANGUAGE: [str(value)]}


def label_text(label: object) -> str | None:
    """
    Return the first string of an IIIF label.

    Accepts plain strings and language maps, preferring English.
    """
    if label is None:
        return None
    if isinstance(label, str):
        return label
    if isinstance(label, Mapping):
        values = label.get(IIIF_LANGUAGE) or next(iter(label.values()), None)
        if values:
            return str(values[0])
    return None


def mime_type_for(resource_id: str) -> str:
    """Derive an ``image/*`` MIME type from the id's file extension."""
    path = urlparse(resource_id).path or resource_id
    suffix = PurePosixPath(path).suffix.lower().lstrip(".")
    if not suffix:
        msg = f"'{resource_id}' is not a valid path to an image resource."
        raise InputError(msg)
    return f"image/{MIME_ALIASES.get(suffix, suffix)}"


def content_resource(
    resource_id: str,
    width: int,
    height: int,
    *,
    mime_type: str | None = None,
) -> IiifObject:
    """Build one Image content resource."""
    return {
        "id": resource_id,
        "type": "Image",
        "format": mime_type or mime_type_for(resource_id),
        "width": width,
        "height": height,
    }


def metadata_to_iiif(metadata: Mapping[str, object]) -> list[IiifObject]:
    """Map a flat record to label/value pairs, labels capitalized."""
    entries = []
    for key, value in metadata.items():
        if value is None or value == "":
            continue
        label = key[:1].upper() + key[1:]
        entries.append({
            "label": language_map(label),
            "value": language_map(value),
        })
    return entries


def metadata_from_iiif(entries: Sequence[Mapping[str, Any]]) -> dict[str, str]:
    """Inverse of :func:`metadata_to_iiif`."""
    record: dict[str, str] = {}
    for entry in entries:
        label = label_text(entry.get("label"))
        value = label_text(entry.get("value"))
        if not label:
            continue
        record[label[:1].lower() + label[1:]] = value or ""
    return record


def build_canvas(  # noqa: PLR0913
    canvas_id: str,
    body: IiifObject,
    *,
    label: str | None = None,
    thumbnails: Sequence[IiifObject] | None = None,
    metadata: Sequence[IiifObject] | None = None,
) -> IiifObject:
    """
    Build a Canvas painted by a single Image annotation.

    ``thumbnails`` and ``metadata`` are omitted entirely when None, and
    thumbnails are ordered widest first.
    """
    page_id = f"{canvas_id}/page"
    canvas: IiifObject = {
        "id": canvas_id,
        "type": "Canvas",
    }
    if label:
        canvas["label"] = language_map(label)
    canvas["height"] = body["height"]
    canvas["width"] = body["width"]
    canvas["items"] = [
        {
            "id": page_id,
            "type": "AnnotationPage",
            "items": [
                {
                    "id": f"{page_id}/annotation",
                    "type": "Annotation",
                    "motivation": IIIF_MOTIVATION,
                    "body": body,
                    "target": canvas_id,
                },
            ],
        },
    ]
    if thumbnails is not None:
        canvas["thumbnail"] = sorted(
            thumbnails,
            key=lambda resource: resource.get("width", 0),
            reverse=True,
        )
    if metadata is not None:
        canvas["metadata"] = list(metadata)
    return canvas


def _container(
    kind: str,
    container_id: str,
    label: str,
    items: Sequence[IiifObject],
) -> IiifObject:
    return {
        "@context": IIIF_CONTEXT,
        "id": container_id,
        "type": kind,
        "label": language_map(label),
        "items": list(items),
    }


def build_manifest(
    manifest_id: str,
    label: str,
    canvases: Sequence[IiifObject],
    *,
    thumbnails: Sequence[IiifObject] | None = None,
    metadata: Sequence[IiifObject] | None = None,
) -> IiifObject:
    """Build a Manifest holding ``canvases`` in order."""
    manifest = _container("Manifest", manifest_id, label, canvases)
    if thumbnails is not None:
        manifest["thumbnail"] = sorted(
            thumbnails,
            key=lambda resource: resource.get("width", 0),
            reverse=True,
        )
    if metadata is not None:
        manifest["metadata"] = list(metadata)
    return manifest


def build_collection(
    collection_id: str,
    label: str,
    manifests: Sequence[IiifObject],
) -> IiifObject:
    """Build a Collection of embedded Manifests."""
    items = []
    for manifest in manifests:
        embedded = dict(manifest)
        embedded.pop("@context", None)
        items.append(embedded)
    return _container("Collection", collection_id, label, items)


def iiif_type(obj: Mapping[str, Any]) -> str | None:
    """Return the IIIF ``type`` (or v2 ``@type``) without a prefix."""
    kind = obj.get("type") or obj.get("@type")
    if not isinstance(kind, str):
        return None
    return kind.split(":")[-1]


def canvas_body(canvas: Mapping[str, Any]) -> IiifObject:
    """Return the body of the first painting annotation on a Canvas."""
    try:
        annotation = canvas["items"][0]["items"][0]
    except (KeyError, IndexError, TypeError) as e:
        msg = f"Canvas {canvas.get('id')} has no annotation body"
        raise InputError(msg) from e
    body = annotation.get("body")
    if isinstance(body, list):
        body = body[0] if body else None
    if not isinstance(body, Mapping) or not body.get("id"):
        msg = f"Canvas {canvas.get('id')} has no annotation body"
        raise InputError(msg)
    return dict(body)


def iter_canvases(obj: Mapping[str, Any]) -> Iterator[IiifObject]:
    """
    Yield every Canvas referenced by a Canvas, Manifest, or Collection.

    Collections are walked recursively in item order.
    """
    kind = iiif_type(obj)
    if kind == "Canvas":
        yield dict(obj)
    elif kind in ("Manifest", "Collection"):
        for item in obj.get("items", []):
            yield from iter_canvases(item)
    else:
        msg = (
            "Invalid IIIF object passed. "
            "Please provide a Collection, Manifest, or Canvas."
        )
        raise InputError(msg)


def iter_art_objects(obj: Mapping[str, Any]) -> Iterator[IiifObject]:
    """
    Yield the object each art item is read from, in item order.

    Inside a Collection a single-Canvas Manifest is yielded whole, so its
    Manifest-level thumbnails and metadata stay with the item. Every other
    container is walked down to its Canvases.
    """
    if iiif_type(obj) != "Collection":
        yield from iter_canvases(obj)
        return
    for item in obj.get("items", []):
        if iiif_type(item) == "Manifest" and len(item.get("items", [])) == 1:
            yield dict(item)
        else:
            yield from iter_art_objects(item)
