"""Resolve the gallery-image version reported by ``--version``."""

from __future__ import annotations

import tomllib
from importlib import metadata as importlib_metadata
from pathlib import Path

from gallery_image.logging_utils import logger

DISTRIBUTION = "gallery-image"
UNKNOWN_VERSION = "0.0.0"


def installed_version() -> str | None:
    """Version of the installed distribution, if it is installed."""
    try:
        return importlib_metadata.version(DISTRIBUTION)
    except importlib_metadata.PackageNotFoundError:
        return None


def pyproject_version(start: Path) -> str | None:
    """
    Read ``project.version`` from the nearest pyproject.toml above ``start``.

    Only the first pyproject.toml found is consulted.
    """
    for parent in start.resolve().parents:
        candidate = parent / "pyproject.toml"
        if not candidate.is_file():
            continue
        try:
            with candidate.open("rb") as handle:
                project = tomllib.load(handle).get("project", {})
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.warning("Error reading %s: %s", candidate, exc)
            return None
        version = project.get("version")
        if isinstance(version, str) and version.strip():
            return version.strip()
        return None
    return None


def resolve_project_version() -> str:
    """Installed version, then a source checkout's pyproject, then 0.0.0."""
    return (
        installed_version()
        or pyproject_version(Path(__file__))
        or UNKNOWN_VERSION
    )
