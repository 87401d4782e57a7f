"""CLI argument parsing and main entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import gallery_image.config as gi_config
from gallery_image import sampling
from gallery_image.errors import GalleryImageError, InputError
from gallery_image.iiif import iiif_type
from gallery_image.layout import GridLayout
from gallery_image.logging_utils import job_logger, logger
from gallery_image.runtime.output import setup_output_directory
from gallery_image.runtime.store import JsonLayoutStore
from gallery_image.runtime.version import resolve_project_version
from gallery_image.type_defs import (
    IIIF_KINDS,
    OUTPUT_TYPES,
    IiifOptions,
    ImageOptions,
)

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence

EXIT_OK = 0
EXIT_INPUT_ERROR = 2


def build_arg_parser() -> argparse.ArgumentParser:
    """Construct the argument parser for the command-line interface."""
    p = argparse.ArgumentParser(
        prog="gallery-image",
        description="Arrange art into a grid and assemble a zoomable image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "gallery-image --art art.json --name wall\n"
            "gallery-image --art manifest.json --from-iiif --output-type dzi\n"
            "gallery-image --store layouts.json --layout-id abc123 "
            "--iiif Manifest\n"
        ),
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {resolve_project_version()}",
    )
    p.add_argument(
        "--config", type=str,
        help="Path to a TOML config file")

    source = p.add_argument_group("input")
    source.add_argument(
        "--art", type=str,
        help=(
            "JSON file holding a list of art objects (random placement), "
            "a 2-D array of art objects, or, with --from-iiif, an IIIF "
            "Manifest or Collection path/URL"
        ))
    source.add_argument(
        "--from-iiif", action="store_true",
        help="Treat --art as an IIIF Manifest or Collection")
    source.add_argument(
        "--store", type=str,
        help="JSON file of saved layout records")
    source.add_argument(
        "--layout-id", type=str,
        help="Id of a saved layout to load from --store")

    layout = p.add_argument_group("layout")
    layout.add_argument(
        "--name", type=str,
        help="Layout name (base name for outputs)")
    layout.add_argument(
        "--rows", type=int, default=None,
        help="Number of rows for random placement")
    layout.add_argument(
        "--cols", type=int, default=None,
        help="Number of columns for random placement")
    layout.add_argument(
        "--ratio", type=float, default=None,
        help="Width/height ratio for random placement")
    layout.add_argument(
        "--thumbnail-width", type=int, default=argparse.SUPPRESS,
        help="Cell thumbnail width in pixels")
    layout.add_argument(
        "--seed", type=int, default=argparse.SUPPRESS,
        help="Random seed for placement")

    output = p.add_argument_group("output")
    output.add_argument(
        "--output", type=str, default=argparse.SUPPRESS,
        help="Output directory")
    output.add_argument(
        "--output-type", choices=OUTPUT_TYPES, default=argparse.SUPPRESS,
        help="Composite encoding")
    output.add_argument(
        "--iiif", choices=IIIF_KINDS, default=argparse.SUPPRESS,
        help="Also write the layout as an IIIF Manifest or Collection")
    output.add_argument(
        "--skip-image", action="store_true",
        help="Do not assemble the composite image")
    output.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=argparse.SUPPRESS,
        help="Logging verbosity")
    return p


def _merge_config(
    args: argparse.Namespace,
) -> gi_config.GalleryConfig:
    """Load the config file (if any) and apply CLI overrides on top."""
    cfg = (
        gi_config.ConfigLoader.load(args.config)
        if args.config
        else gi_config.GalleryConfig()
    )
    overrides = {
        ("layout", "thumbnail_width"): "thumbnail_width",
        ("layout", "seed"): "seed",
        ("output", "output_dir"): "output",
        ("output", "output_type"): "output_type",
        ("output", "iiif_kind"): "iiif",
        ("logging", "level"): "log_level",
    }
    for (section, key), arg_name in overrides.items():
        if hasattr(args, arg_name):
            setattr(getattr(cfg, section), key, getattr(args, arg_name))
    if args.ratio is not None:
        cfg.layout.ratio = args.ratio
    return cfg


def _read_json(path: str) -> Any:
    file_path = Path(path)
    if not file_path.is_file():
        msg = f"Art file not found: {path}"
        raise InputError(msg)
    with file_path.open("r", encoding="utf-8") as f:
        return json.load(f)


async def _build_layout(
    args: argparse.Namespace,
    cfg: gi_config.GalleryConfig,
    iiif_options: IiifOptions,
) -> GridLayout:
    if args.layout_id:
        if not args.store:
            msg = "--layout-id requires --store"
            raise InputError(msg)
        store = JsonLayoutStore(args.store)
        return GridLayout.from_store(store, args.layout_id)

    if not args.art:
        msg = "Provide --art, or --store with --layout-id"
        raise InputError(msg)

    if args.from_iiif:
        return await GridLayout.from_iiif(
            args.art,
            name=args.name,
            options=iiif_options,
        )

    data = _read_json(args.art)
    if isinstance(data, dict) and iiif_type(data) in IIIF_KINDS:
        return await GridLayout.from_iiif(
            data,
            name=args.name,
            options=iiif_options,
        )
    if not isinstance(data, list) or not data:
        msg = "Art file must contain a non-empty JSON list"
        raise InputError(msg)

    name = args.name or Path(args.art).stem
    if all(isinstance(row, list) for row in data):
        return GridLayout.create(
            name,
            array=data,
            num_rows=args.rows,
            num_cols=args.cols,
            ratio=args.ratio,
            thumbnail_width=cfg.layout.thumbnail_width,
            log=iiif_options.log,
        )

    # Only the configured ratio gives way to --rows/--cols.
    ratio = args.ratio
    if ratio is None and not (args.rows or args.cols):
        ratio = cfg.layout.ratio
    return GridLayout.create(
        name,
        pool=data,
        num_rows=args.rows,
        num_cols=args.cols,
        ratio=ratio,
        thumbnail_width=cfg.layout.thumbnail_width,
        log=iiif_options.log,
    )


async def run(args: argparse.Namespace) -> int:
    """Execute one CLI invocation and return the exit code."""
    cfg = _merge_config(args)
    level = getattr(logging, cfg.logging.level)
    logger.setLevel(level)
    log = job_logger("cli", level)
    if cfg.layout.seed is not None:
        sampling.seed_placement(cfg.layout.seed)

    output_dir = setup_output_directory(cfg.output.output_dir)
    iiif_options = IiifOptions(
        save_file=cfg.output.save_file,
        output_dir=str(output_dir),
        timeout=cfg.fetch.timeout,
        save_json=cfg.output.save_file,
        log=log,
    )
    layout = await _build_layout(args, cfg, iiif_options)
    log.info("Built %r", layout)

    if not args.skip_image:
        result = await layout.generate_image(
            ImageOptions(
                save_file=cfg.output.save_file,
                output_dir=str(output_dir),
                timeout=cfg.fetch.timeout,
                output_type=cfg.output.output_type,
                service_id=cfg.output.service_id,
                log=log,
            ),
            overwrite=True,
        )
        log.info(
            "Composite %dx%d, %d cells skipped",
            result.size[0],
            result.size[1],
            len(result.skipped),
        )

    if cfg.output.iiif_kind:
        await layout.array_to_iiif(cfg.output.iiif_kind, iiif_options)
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run, and map package errors to exit codes."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        return asyncio.run(run(args))
    except (GalleryImageError, FileNotFoundError) as e:
        logger.error("%s", e)  # noqa: TRY400
        return EXIT_INPUT_ERROR


if __name__ == "__main__":
    sys.exit(main())
