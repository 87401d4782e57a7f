"""Random draws used to place art in a grid."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterator

__all__ = [
    "draw_unique_indices",
    "placement_rng",
    "placement_seed",
    "seed_placement",
]


@dataclass(slots=True)
class _PlacementState:
    seed: int | None = None
    generator: np.random.Generator | None = None


_STATE = _PlacementState()


def seed_placement(seed: int) -> np.random.Generator:
    """Reseed the shared placement Generator so layouts are reproducible."""
    _STATE.seed = seed
    _STATE.generator = np.random.default_rng(seed)
    return _STATE.generator


def placement_rng() -> np.random.Generator:
    """Return the shared placement Generator, unseeded on first use."""
    if _STATE.generator is None:
        _STATE.generator = np.random.default_rng()
    return _STATE.generator


def placement_seed() -> int | None:
    """Last seed passed to ``seed_placement``, if any."""
    return _STATE.seed


def draw_unique_indices(
    total: int,
    rng: np.random.Generator | None = None,
) -> Iterator[int]:
    """
    Yield every index in ``range(total)`` once, in random order.

    Each index is drawn uniformly from the full range and redrawn while
    it collides with one already yielded.
    """
    if rng is None:
        rng = placement_rng()
    used: set[int] = set()
    while len(used) < total:
        index = int(rng.integers(total))
        while index in used:
            index = int(rng.integers(total))
        used.add(index)
        yield index
