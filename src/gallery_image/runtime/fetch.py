"""
Byte-fetch helpers for local paths and remote URLs.

Remote locations are fetched through an ``httpx.AsyncClient`` with a
per-request timeout; local paths are read from disk. Every failure is
surfaced as ``ResourceUnavailable`` for the single resource involved.
"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import httpx

from gallery_image.config_defaults import DEFAULT_FETCH_TIMEOUT
from gallery_image.errors import InputError, ResourceUnavailable

__all__ = [
    "fetch_bytes",
    "fetch_json",
    "file_name",
    "is_url",
    "resolve_location",
]

_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_url(location: str) -> bool:
    """Return True when ``location`` is an http(s) URL."""
    return bool(_HTTP_RE.match(location))


def resolve_location(location: str | Path) -> str:
    """
    Return the canonical form of a path or URL.

    URLs are kept as given; local paths are made absolute.
    """
    text = str(location)
    if not text:
        msg = "Resource location is empty"
        raise InputError(msg)
    if is_url(text):
        return text
    return str(Path(text).expanduser().resolve())


def file_name(location: str) -> str:
    """Return the file name without extension for a path or URL."""
    path = urlparse(location).path if is_url(location) else location
    return PurePosixPath(path.replace("\\", "/")).stem


async def _fetch_url(
    url: str,
    *,
    timeout: float,
    client: httpx.AsyncClient | None,
) -> bytes:
    try:
        if client is None:
            async with httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
            ) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url, timeout=timeout)
        response.raise_for_status()
    except httpx.TimeoutException as e:
        msg = f"Timed out after {timeout}s fetching '{url}'"
        raise ResourceUnavailable(msg) from e
    except httpx.HTTPError as e:
        msg = f"Error fetching '{url}': {e!s}"
        raise ResourceUnavailable(msg) from e
    return response.content


async def fetch_bytes(
    location: str,
    *,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    client: httpx.AsyncClient | None = None,
) -> bytes:
    """
    Fetch the bytes stored at a path or URL.

    Args:
        location: Local path or http(s) URL
        timeout: Seconds allowed for a remote fetch
        client: Optional shared client, mainly for connection reuse and
            test transports

    Returns:
        Raw bytes of the resource

    Raises:
        ResourceUnavailable: If the location cannot be read or fetched

    """
    if is_url(location):
        return await _fetch_url(location, timeout=timeout, client=client)
    try:
        return await asyncio.to_thread(Path(location).read_bytes)
    except FileNotFoundError as e:
        msg = f"Resource file not found: '{location}'"
        raise ResourceUnavailable(msg) from e
    except OSError as e:
        msg = f"Error reading resource '{location}': {e!s}"
        raise ResourceUnavailable(msg) from e


async def fetch_json(
    location: str,
    *,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    client: httpx.AsyncClient | None = None,
) -> dict:
    """Fetch a JSON document from a path or URL."""
    data = await fetch_bytes(location, timeout=timeout, client=client)
    try:
        return json.loads(data)
    except json.JSONDecodeError as e:
        msg = f"Resource '{location}' is not valid JSON: {e!s}"
        raise InputError(msg) from e
