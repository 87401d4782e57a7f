"""Tests for the placement random helpers."""
from __future__ import annotations

import numpy as np

from gallery_image import sampling


def test_seed_placement_is_reproducible() -> None:
    sampling.seed_placement(7)
    first = list(sampling.draw_unique_indices(20))
    sampling.seed_placement(7)
    second = list(sampling.draw_unique_indices(20))

    assert first == second
    assert sampling.placement_seed() == 7


def test_draw_unique_indices_is_a_permutation() -> None:
    drawn = list(sampling.draw_unique_indices(50, np.random.default_rng(3)))
    assert sorted(drawn) == list(range(50))


def test_draw_unique_indices_is_lazy() -> None:
    indices = sampling.draw_unique_indices(10, np.random.default_rng(0))
    head = [next(indices) for _ in range(3)]
    rest = list(indices)
    assert len(set(head + rest)) == 10


def test_placement_rng_is_cached() -> None:
    assert sampling.placement_rng() is sampling.placement_rng()
