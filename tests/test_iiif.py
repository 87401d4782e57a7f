"""Tests for the IIIF Presentation 3 mapping functions."""
from __future__ import annotations

import pytest

from gallery_image import iiif
from gallery_image.constants import IIIF_CONTEXT
from gallery_image.errors import InputError


def _body(resource_id: str = "https://ex.org/a.jpg") -> dict:
    return iiif.content_resource(resource_id, 400, 300)


@pytest.mark.parametrize(
    ("resource_id", "expected"),
    [
        ("/data/a.jpg", "image/jpeg"),
        ("/data/a.JPEG", "image/jpeg"),
        ("/data/a.tif", "image/tiff"),
        ("https://ex.org/img/a.png?size=full", "image/png"),
    ],
)
def test_mime_type_for(resource_id: str, expected: str) -> None:
    assert iiif.mime_type_for(resource_id) == expected


def test_mime_type_for_requires_extension() -> None:
    with pytest.raises(InputError, match="not a valid path"):
        iiif.mime_type_for("https://ex.org/iiif/abc")


def test_content_resource_shape() -> None:
    assert _body() == {
        "id": "https://ex.org/a.jpg",
        "type": "Image",
        "format": "image/jpeg",
        "width": 400,
        "height": 300,
    }


def test_label_text_accepts_strings_and_maps() -> None:
    assert iiif.label_text("Plain") == "Plain"
    label = {"en": ["English"], "fr": ["Francais"]}
    assert iiif.label_text(label) == "English"
    assert iiif.label_text({"none": ["Untagged"]}) == "Untagged"
    assert iiif.label_text(None) is None


def test_metadata_round_trip_skips_empty_values() -> None:
    entries = iiif.metadata_to_iiif(
        {"title": "Night", "creator": "", "date": None, "location": "Hall"},
    )
    assert entries == [
        {"label": {"en": ["Title"]}, "value": {"en": ["Night"]}},
        {"label": {"en": ["Location"]}, "value": {"en": ["Hall"]}},
    ]
    assert iiif.metadata_from_iiif(entries) == {
        "title": "Night",
        "location": "Hall",
    }


def test_build_canvas_structure() -> None:
    canvas = iiif.build_canvas("https://ex.org/c1", _body(), label="One")

    assert canvas["type"] == "Canvas"
    assert (canvas["width"], canvas["height"]) == (400, 300)
    assert canvas["label"] == {"en": ["One"]}
    page = canvas["items"][0]
    assert page["type"] == "AnnotationPage"
    assert page["id"] == "https://ex.org/c1/page"
    annotation = page["items"][0]
    assert annotation["motivation"] == "painting"
    assert annotation["target"] == "https://ex.org/c1"
    assert annotation["body"]["id"] == "https://ex.org/a.jpg"
    assert "thumbnail" not in canvas
    assert "metadata" not in canvas


def test_build_canvas_orders_thumbnails_widest_first() -> None:
    small = iiif.content_resource("/t/a-100px.jpeg", 100, 75)
    large = iiif.content_resource("/t/a-300px.jpeg", 300, 225)
    canvas = iiif.build_canvas("c", _body(), thumbnails=[small, large])
    assert [t["width"] for t in canvas["thumbnail"]] == [300, 100]


def test_build_collection_strips_embedded_context() -> None:
    manifest = iiif.build_manifest("m1", "M", [])
    collection = iiif.build_collection("col", "Col", [manifest])

    assert collection["@context"] == IIIF_CONTEXT
    assert collection["type"] == "Collection"
    assert "@context" not in collection["items"][0]
    assert "@context" in manifest


def test_iter_canvases_walks_collections_in_order() -> None:
    c1 = iiif.build_canvas("c1", _body("/a.jpg"))
    c2 = iiif.build_canvas("c2", _body("/b.jpg"))
    c3 = iiif.build_canvas("c3", _body("/c.jpg"))
    collection = iiif.build_collection(
        "col",
        "Col",
        [
            iiif.build_manifest("m1", "M1", [c1, c2]),
            iiif.build_manifest("m2", "M2", [c3]),
        ],
    )
    assert [c["id"] for c in iiif.iter_canvases(collection)] == [
        "c1",
        "c2",
        "c3",
    ]


def test_iter_art_objects_keeps_single_canvas_manifests() -> None:
    c1 = iiif.build_canvas("c1", _body("/a.jpg"))
    c2 = iiif.build_canvas("c2", _body("/b.jpg"))
    c3 = iiif.build_canvas("c3", _body("/c.jpg"))
    collection = iiif.build_collection(
        "col",
        "Col",
        [
            iiif.build_manifest("m1", "M1", [c1, c2]),
            iiif.build_manifest("m2", "M2", [c3]),
        ],
    )
    assert [o["id"] for o in iiif.iter_art_objects(collection)] == [
        "c1",
        "c2",
        "m2",
    ]
    manifest = iiif.build_manifest("m3", "M3", [c3])
    assert [o["id"] for o in iiif.iter_art_objects(manifest)] == ["c3"]


def test_iter_canvases_rejects_unknown_type() -> None:
    with pytest.raises(InputError, match="Invalid IIIF object"):
        list(iiif.iter_canvases({"type": "Range", "items": []}))


def test_canvas_body_requires_annotation() -> None:
    with pytest.raises(InputError, match="no annotation body"):
        iiif.canvas_body({"id": "c", "type": "Canvas", "items": []})


def test_iiif_type_strips_prefix() -> None:
    assert iiif.iiif_type({"@type": "sc:Manifest"}) == "Manifest"
    assert iiif.iiif_type({"type": "Canvas"}) == "Canvas"
    assert iiif.iiif_type({}) is None
