"""
Exception taxonomy for gallery-image.

Every error raised by the package derives from ``GalleryImageError``
and also from the closest builtin, so callers can catch either.
"""

from __future__ import annotations


class GalleryImageError(Exception):
    """Base class for all gallery-image errors."""


class InputError(GalleryImageError, ValueError):
    """Missing, malformed, or conflicting input to a single operation."""


class LayoutNotFoundError(InputError):
    """No stored layout matches the requested identifier."""


class ResourceUnavailable(GalleryImageError, OSError):
    """A resource could not be fetched or read."""


class StateConflict(GalleryImageError, RuntimeError):
    """A non-idempotent operation was attempted twice."""


class SerializationError(GalleryImageError, ValueError):
    """An entity still holds in-memory buffers and cannot be flattened."""
