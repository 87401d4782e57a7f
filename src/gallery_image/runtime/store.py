"""Record lookup for previously saved layouts."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from gallery_image.errors import InputError


class LayoutStore(Protocol):
    """Anything that can look up a flat layout record by id."""

    def find_layout_by_id(self, layout_id: str) -> dict[str, Any] | None:
        """Return the stored layout record, or None when absent."""
        ...


class JsonLayoutStore:
    """
    Layout store backed by a JSON file holding a list of layout records.

    The file is read once, on first lookup.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._records: list[dict[str, Any]] | None = None

    def _load(self) -> list[dict[str, Any]]:
        if self._records is None:
            if not self.path.is_file():
                msg = f"Layout store not found: {self.path}"
                raise FileNotFoundError(msg)
            with self.path.open("r", encoding="utf-8") as f:
                records = json.load(f)
            if not isinstance(records, list):
                msg = f"Layout store {self.path} must contain a JSON list"
                raise InputError(msg)
            self._records = records
        return self._records

    def find_layout_by_id(self, layout_id: str) -> dict[str, Any] | None:
        """Return the record whose ``id`` (or legacy ``_id``) matches."""
        for record in self._load():
            if layout_id in (record.get("id"), record.get("_id")):
                return record
        return None
