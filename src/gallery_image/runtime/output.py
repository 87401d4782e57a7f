"""Helpers for managing output locations and persisted artifacts."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from gallery_image.errors import InputError
from gallery_image.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    import logging
    from collections.abc import Callable


def setup_output_directory(
    output_path: str,
    path_factory: Callable[[str], Path] = Path,
) -> Path:
    """
    Create the output directory if needed and return its path.

    Falls back to ``gallery_image_output`` on failure to create the
    desired directory to keep the run from aborting.
    """
    resolved_path = path_factory(output_path)
    try:
        resolved_path.mkdir(parents=True, exist_ok=True)
    except OSError:
        fallback_path = path_factory("gallery_image_output")
        fallback_path.mkdir(parents=True, exist_ok=True)
        logger.warning(
            "Could not create %s, using %s instead",
            resolved_path,
            fallback_path,
        )
        return fallback_path
    return resolved_path


def require_output_dir(output_dir: str | None, purpose: str) -> Path:
    """Return ``output_dir`` as a Path or fail when it is not configured."""
    if not output_dir:
        msg = f"An output directory is required to {purpose}."
        raise InputError(msg)
    return Path(output_dir)


def save_file(
    name: str,
    data: bytes | str,
    output_dir: str | None,
    *,
    log: logging.Logger = logger,
) -> str:
    """
    Write ``data`` to ``output_dir/name`` and return the written path.

    The directory is created when missing.
    """
    directory = require_output_dir(output_dir, f"save {name}")
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    if isinstance(data, str):
        path.write_text(data, encoding="utf-8")
    else:
        path.write_bytes(data)
    log.info("Saved file to %s", path)
    return str(path.resolve())


def save_json(
    name: str,
    payload: object,
    output_dir: str | None,
    *,
    log: logging.Logger = logger,
) -> str:
    """Serialize ``payload`` as indented JSON and save it."""
    return save_file(
        name,
        json.dumps(payload, indent=2, ensure_ascii=False),
        output_dir,
        log=log,
    )
