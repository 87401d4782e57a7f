"""
Configuration schema and loader for gallery-image.

Defines Pydantic models representing structured configuration sections
and a TOML-based config loader with validation support.
"""

from pathlib import Path
from typing import Literal

import tomlkit
from pydantic import BaseModel, Field

from gallery_image.config_defaults import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_OUTPUT_TYPE,
    DEFAULT_RATIO,
    DEFAULT_SAVE_FILE,
    DEFAULT_SEED,
    DEFAULT_THUMBNAIL_WIDTH,
)
from gallery_image.type_defs import IiifKind, OutputType


class LayoutConfig(BaseModel):
    """Control grid shape and cell size."""

    thumbnail_width: int = Field(DEFAULT_THUMBNAIL_WIDTH, ge=1)
    ratio: float = Field(DEFAULT_RATIO, gt=0)
    seed: int | None = Field(DEFAULT_SEED, ge=0)


class OutputConfig(BaseModel):
    """Configure where and how the composite is written."""

    output_dir: str = Field(DEFAULT_OUTPUT_DIR)
    output_type: OutputType = Field(DEFAULT_OUTPUT_TYPE)
    save_file: bool = DEFAULT_SAVE_FILE
    service_id: str | None = None
    iiif_kind: IiifKind | None = None


class FetchConfig(BaseModel):
    """Network settings for resource fetches."""

    timeout: float = Field(DEFAULT_FETCH_TIMEOUT, gt=0)


class LoggingConfig(BaseModel):
    """Logging verbosity."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        DEFAULT_LOG_LEVEL,
    )


class GalleryConfig(BaseModel):
    """
    Root configuration object combining all supported sections.

    Mirrors the structure of config.toml, grouping related parameters
    under logical categories.
    """

    layout: LayoutConfig = Field(
        default_factory=lambda: LayoutConfig.model_validate({}),
    )
    output: OutputConfig = Field(
        default_factory=lambda: OutputConfig.model_validate({}),
    )
    fetch: FetchConfig = Field(
        default_factory=lambda: FetchConfig.model_validate({}),
    )
    logging: LoggingConfig = Field(
        default_factory=lambda: LoggingConfig.model_validate({}),
    )


class ConfigLoader:
    """
    Loads and parses a TOML configuration file into a typed config object.

    Falls back to defaults for any missing subsections or fields.
    """

    @staticmethod
    def load(path: str) -> GalleryConfig:
        """
        Load a gallery configuration from a TOML file.

        Returns a validated GalleryConfig instance based on the file
        contents.
        """
        config_path = Path(path)
        if not config_path.is_file():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)

        with config_path.open("r", encoding="utf-8") as f:
            doc = tomlkit.load(f)

        return GalleryConfig.model_validate(doc.unwrap())
