"""Runtime collaborators: fetching, persistence, record lookup, version."""

from .fetch import fetch_bytes, fetch_json, file_name, is_url, resolve_location
from .output import (
    require_output_dir,
    save_file,
    save_json,
    setup_output_directory,
)
from .store import JsonLayoutStore, LayoutStore
from .version import resolve_project_version

__all__ = [
    "JsonLayoutStore",
    "LayoutStore",
    "fetch_bytes",
    "fetch_json",
    "file_name",
    "is_url",
    "require_output_dir",
    "resolve_location",
    "resolve_project_version",
    "save_file",
    "save_json",
    "setup_output_directory",
]
