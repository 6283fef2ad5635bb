"""Box-size datasets and orderings for packing experiments."""

from __future__ import annotations

from functools import cmp_to_key
from typing import Callable

import numpy as np

from freespace.core.geometry import Size, compare_short_side


def demo_sizes() -> list[Size]:
    """
    The reference load: twelve 510×290×210 cartons, then ten 480×230×190.

    Meant for the 1500×1500×800 demo container.
    """
    return [Size(510, 290, 210)] * 12 + [Size(480, 230, 190)] * 10


def generate_sizes(
    count: int = 50,
    seed: int | None = None,
    min_dim: int = 100,
    max_dim: int = 600,
) -> list[Size]:
    """
    Generate random box sizes for experimentation.

    Args:
        count: Number of sizes to generate
        seed: Random seed for reproducibility (default: None)
        min_dim: Smallest extent on any axis (inclusive)
        max_dim: Largest extent on any axis (inclusive)

    Returns:
        List of Size objects with integer extents in [min_dim, max_dim]
    """
    if min_dim <= 0 or max_dim < min_dim:
        raise ValueError(f"Need 0 < min_dim <= max_dim, got {min_dim}, {max_dim}")

    rng = np.random.default_rng(seed)
    dims = rng.integers(min_dim, max_dim, size=(count, 3), endpoint=True)
    return [Size(int(w), int(h), int(d)) for w, h, d in dims]


def as_given(sizes: list[Size]) -> list[Size]:
    """Return a copy in arrival order."""
    return list(sizes)


def volume_sorted(sizes: list[Size]) -> list[Size]:
    """
    Sort sizes by volume (largest first).

    Args:
        sizes: List of sizes

    Returns:
        Sizes sorted by volume descending
    """
    return sorted(sizes, key=lambda s: s.volume, reverse=True)


def short_side_sorted(sizes: list[Size]) -> list[Size]:
    """Sort by footprint (short side, long side), largest first."""
    return sorted(sizes, key=cmp_to_key(compare_short_side), reverse=True)


# Map of ordering strategy names to functions
ORDERING_STRATEGIES: dict[str, Callable[[list[Size]], list[Size]]] = {
    "as_given": as_given,
    "volume_sorted": volume_sorted,
    "short_side_sorted": short_side_sorted,
}


def get_ordering_strategy(name: str) -> Callable[[list[Size]], list[Size]]:
    """
    Get an ordering strategy function by name.

    Args:
        name: Strategy name (as_given, volume_sorted, short_side_sorted)

    Returns:
        Ordering function

    Raises:
        ValueError: If strategy name is not recognized
    """
    if name not in ORDERING_STRATEGIES:
        raise ValueError(
            f"Unknown ordering strategy: {name}. "
            f"Available: {list(ORDERING_STRATEGIES.keys())}"
        )
    return ORDERING_STRATEGIES[name]
