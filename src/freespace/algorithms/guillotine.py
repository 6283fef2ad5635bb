"""
Guillotine packer: free space kept as a disjoint partition.

Algorithm overview:
    The free list starts as one volume spanning the whole container.
    Every placement goes into the minimum corner of one free volume and
    the leftover of that volume is cut into at most three disjoint
    pieces:

        up     : the placed footprint, from the box top to the volume top
        bottom : the strip beyond the box along y, full depth
        right  : the strip beyond the box along x, full depth

    Whether ``bottom`` or ``right`` receives the shared corner of the
    L-shaped leftover is decided by a SplitHeuristic.  Free volumes plus
    placed boxes therefore always tile the container exactly.

Selection:
    The free list is sorted by (z, y, x) before every search so ties are
    broken by an explicit order.  A perfect fit wins instantly; otherwise
    each fitting (free volume, orientation) pair is scored by a
    FreeChoiceHeuristic and the lowest score wins, first one on ties.
    Boxes may swap width and height; depth never rotates.

Merging:
    ``merge_free_list`` is a single quadratic pass that joins pairs of
    adjacent free volumes sharing two full dimensions.  Chains of three
    may need another pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence

from freespace.algorithms.verification import NullVerifier, PlacementVerifier
from freespace.core.errors import require_positive
from freespace.core.geometry import Box, Size, guillotine_order_key

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Heuristics
# ─────────────────────────────────────────────────────────────────────────────

class FreeChoiceHeuristic(Enum):
    """How to rank the free volumes a box fits into (lower score wins)."""

    BEST_AREA_FIT = "BestAreaFit"
    """Smallest leftover volume."""

    BEST_SHORT_SIDE_FIT = "BestShortSideFit"
    """Smallest minimum per-axis leftover."""

    BEST_LONG_SIDE_FIT = "BestLongSideFit"
    """Smallest maximum per-axis leftover."""

    WORST_AREA_FIT = "WorstAreaFit"
    """Largest leftover volume."""

    WORST_SHORT_SIDE_FIT = "WorstShortSideFit"
    """Largest minimum per-axis leftover."""

    WORST_LONG_SIDE_FIT = "WorstLongSideFit"
    """Largest maximum per-axis leftover."""


class SplitHeuristic(Enum):
    """How to cut the L-shaped x–y leftover into two rectangles."""

    SHORTER_LEFTOVER_AXIS = "ShorterLeftoverAxis"
    LONGER_LEFTOVER_AXIS = "LongerLeftoverAxis"
    MINIMIZE_AREA = "MinimizeArea"
    """Make the single bigger leftover as large as possible."""
    MAXIMIZE_AREA = "MaximizeArea"
    """Make the two leftovers as even as possible."""
    SHORTER_AXIS = "ShorterAxis"
    LONGER_AXIS = "LongerAxis"


def score_by_heuristic(
    width: int, height: int, depth: int, free: Box, choice: FreeChoiceHeuristic,
) -> int:
    """Score placing an already-oriented box into *free*. Does not rotate."""
    if choice is FreeChoiceHeuristic.BEST_AREA_FIT:
        return free.volume - width * height * depth
    if choice is FreeChoiceHeuristic.WORST_AREA_FIT:
        return -(free.volume - width * height * depth)

    leftovers = (
        abs(free.width - width),
        abs(free.height - height),
        abs(free.depth - depth),
    )
    if choice is FreeChoiceHeuristic.BEST_SHORT_SIDE_FIT:
        return min(leftovers)
    if choice is FreeChoiceHeuristic.BEST_LONG_SIDE_FIT:
        return max(leftovers)
    if choice is FreeChoiceHeuristic.WORST_SHORT_SIDE_FIT:
        return -min(leftovers)
    if choice is FreeChoiceHeuristic.WORST_LONG_SIDE_FIT:
        return -max(leftovers)
    raise ValueError(f"Unknown free choice heuristic: {choice!r}")


def fits(size: Size, free: Box) -> bool:
    return size.width <= free.width and size.height <= free.height and size.depth <= free.depth


def fits_perfectly(size: Size, free: Box) -> bool:
    return size.width == free.width and size.height == free.height and size.depth == free.depth


def orientations(size: Size) -> list[Size]:
    """Upright first, then width/height flipped when that differs."""
    flipped = size.flipped()
    return [size] if flipped == size else [size, flipped]


# ─────────────────────────────────────────────────────────────────────────────
# Splitting and merging
# ─────────────────────────────────────────────────────────────────────────────

def split_horizontally(free: Box, placed: Box, method: SplitHeuristic) -> bool:
    """
    True when the ``bottom`` leftover should span the whole free width.

    ``w`` and ``h`` are the leftover lengths along x and y.
    """
    w = free.width - placed.width
    h = free.height - placed.height

    if method is SplitHeuristic.SHORTER_LEFTOVER_AXIS:
        return w <= h
    if method is SplitHeuristic.LONGER_LEFTOVER_AXIS:
        return w > h
    if method is SplitHeuristic.MINIMIZE_AREA:
        return placed.width * h > w * placed.height
    if method is SplitHeuristic.MAXIMIZE_AREA:
        return placed.width * h <= w * placed.height
    if method is SplitHeuristic.SHORTER_AXIS:
        return free.width <= free.height
    if method is SplitHeuristic.LONGER_AXIS:
        return free.width > free.height
    raise ValueError(f"Unknown split heuristic: {method!r}")


def split_free_box(free: Box, placed: Box, method: SplitHeuristic) -> list[Box]:
    """
    Cut *free* around *placed* (anchored at *free*'s origin).

    Returns the non-degenerate pieces in (up, bottom, right) order.
    """
    horizontal = split_horizontally(free, placed, method)

    up = Box(
        free.x, free.y, placed.z_max,
        placed.width, placed.height, free.depth - placed.depth,
    )
    bottom = Box(
        free.x, free.y + placed.height, free.z,
        free.width if horizontal else placed.width,
        free.height - placed.height,
        free.depth,
    )
    right = Box(
        free.x + placed.width, free.y, free.z,
        free.width - placed.width,
        placed.height if horizontal else free.height,
        free.depth,
    )
    return [piece for piece in (up, bottom, right) if not piece.is_degenerate]


def merge_pair(a: Box, b: Box) -> Optional[Box]:
    """Join two adjacent free volumes sharing two full dimensions, else None."""
    if a.width == b.width and a.x == b.x and a.z == b.z and a.depth == b.depth:
        if a.y == b.y_max:
            return Box(a.x, b.y, a.z, a.width, a.height + b.height, a.depth)
        if a.y_max == b.y:
            return Box(a.x, a.y, a.z, a.width, a.height + b.height, a.depth)
    elif a.height == b.height and a.y == b.y and a.z == b.z and a.depth == b.depth:
        if a.x == b.x_max:
            return Box(b.x, a.y, a.z, a.width + b.width, a.height, a.depth)
        if a.x_max == b.x:
            return Box(a.x, a.y, a.z, a.width + b.width, a.height, a.depth)
    elif a.width == b.width and a.height == b.height and a.x == b.x and a.y == b.y:
        if a.z == b.z_max:
            return Box(a.x, a.y, b.z, a.width, a.height, a.depth + b.depth)
        if a.z_max == b.z:
            return Box(a.x, a.y, a.z, a.width, a.height, a.depth + b.depth)
    return None


def _swap_remove(items: list, index: int):
    item = items[index]
    items[index] = items[-1]
    items.pop()
    return item


# ─────────────────────────────────────────────────────────────────────────────
# Packer
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class BatchResult:
    """Outcome of ``insert_batch``: placements in order, leftovers in input order."""

    placed: list[Box] = field(default_factory=list)
    unpacked: list[Size] = field(default_factory=list)

    @property
    def all_packed(self) -> bool:
        return not self.unpacked


class GuillotinePacker:
    """
    3D guillotine bin packer over a fixed container.

    Attributes:
        bin_width, bin_height, bin_depth: Container extents (0 before init).
        verifier: Correctness hook; NullVerifier unless injected.
    """

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        depth: int = 0,
        verifier: Optional[PlacementVerifier] = None,
    ) -> None:
        self.verifier: PlacementVerifier = verifier or NullVerifier()
        self.bin_width = 0
        self.bin_height = 0
        self.bin_depth = 0
        self._used: list[Box] = []
        self._free: list[Box] = []
        if width or height or depth:
            self.init(width, height, depth)

    def init(self, width: int, height: int, depth: int) -> None:
        """(Re)start with an empty container of the given size."""
        require_positive(width=width, height=height, depth=depth)
        self.bin_width = width
        self.bin_height = height
        self.bin_depth = depth
        self._used = []
        self._free = [Box(0, 0, 0, width, height, depth)]
        self.verifier.reset()

    # ── Read-only views ──────────────────────────────────────────────────

    @property
    def free_boxes(self) -> tuple[Box, ...]:
        return tuple(self._free)

    @property
    def used_boxes(self) -> tuple[Box, ...]:
        return tuple(self._used)

    @property
    def bin_volume(self) -> int:
        return self.bin_width * self.bin_height * self.bin_depth

    def occupancy(self) -> float:
        """Placed volume over container volume."""
        if self.bin_volume == 0:
            return 0.0
        return sum(b.volume for b in self._used) / self.bin_volume

    # ── Insertion ────────────────────────────────────────────────────────

    def insert(
        self,
        width: int,
        height: int,
        depth: int,
        merge: bool = True,
        choice: FreeChoiceHeuristic = FreeChoiceHeuristic.BEST_AREA_FIT,
        split: SplitHeuristic = SplitHeuristic.SHORTER_LEFTOVER_AXIS,
    ) -> Optional[Box]:
        """
        Place one box, possibly with width and height swapped.

        Returns:
            The placed Box, or None when no free volume can hold it
            (state is left untouched in that case).
        """
        require_positive(width=width, height=height, depth=depth)
        size = Size(width, height, depth)

        ordered = self._ordered_free_list()
        candidate = self._find_best(ordered, [size], choice)
        if candidate is None:
            logger.debug("No free volume fits %s", size.as_tuple())
            return None

        free_index, _, oriented = candidate
        self._free = ordered
        return self._commit(free_index, oriented, merge, split)

    def insert_batch(
        self,
        sizes: Iterable[Size],
        merge: bool = True,
        choice: FreeChoiceHeuristic = FreeChoiceHeuristic.BEST_AREA_FIT,
        split: SplitHeuristic = SplitHeuristic.SHORTER_LEFTOVER_AXIS,
    ) -> BatchResult:
        """
        Place as many of *sizes* as possible, choosing globally each round.

        Every round scores all remaining sizes against all free volumes and
        places the single best (free volume, size, orientation) triple.
        Stops when every size is placed or none of the rest fits; the
        leftovers are returned, not raised.
        """
        remaining = list(sizes)
        for s in remaining:
            require_positive(width=s.width, height=s.height, depth=s.depth)

        result = BatchResult()
        while remaining:
            ordered = self._ordered_free_list()
            candidate = self._find_best(ordered, remaining, choice)
            if candidate is None:
                break
            free_index, size_index, oriented = candidate
            self._free = ordered
            result.placed.append(self._commit(free_index, oriented, merge, split))
            remaining.pop(size_index)

        result.unpacked = remaining
        if remaining:
            logger.debug("%d sizes left unpacked", len(remaining))
        return result

    def merge_free_list(self) -> bool:
        """
        One pairwise merge pass over the free list.

        Returns:
            True if at least one pair was merged.
        """
        self.verifier.check_partition(self._free)

        free = self._free
        removed = [False] * len(free)
        merged_any = False
        for i in range(len(free)):
            if removed[i]:
                continue
            for j in range(i + 1, len(free)):
                if removed[j]:
                    continue
                merged = merge_pair(free[i], free[j])
                if merged is not None:
                    free[i] = merged
                    removed[j] = True
                    merged_any = True

        self._free = [box for box, gone in zip(free, removed) if not gone]
        self.verifier.check_partition(self._free)
        return merged_any

    # ── Internals ────────────────────────────────────────────────────────

    def _ordered_free_list(self) -> list[Box]:
        # Searched as a copy; adopted only when a placement commits
        return sorted(self._free, key=guillotine_order_key)

    @staticmethod
    def _find_best(
        free_list: Sequence[Box],
        sizes: Sequence[Size],
        choice: FreeChoiceHeuristic,
    ) -> Optional[tuple[int, int, Size]]:
        """
        Best (free index, size index, oriented size), or None if nothing fits.
        """
        best: Optional[tuple[int, int, Size]] = None
        best_score = None

        for i, free in enumerate(free_list):
            for j, size in enumerate(sizes):
                candidates = orientations(size)
                for oriented in candidates:
                    if fits_perfectly(oriented, free):
                        return i, j, oriented
                for oriented in candidates:
                    if not fits(oriented, free):
                        continue
                    score = score_by_heuristic(
                        oriented.width, oriented.height, oriented.depth, free, choice,
                    )
                    if best_score is None or score < best_score:
                        best = (i, j, oriented)
                        best_score = score
        return best

    def _commit(
        self, free_index: int, oriented: Size, merge: bool, split: SplitHeuristic,
    ) -> Box:
        free = _swap_remove(self._free, free_index)
        node = Box(free.x, free.y, free.z, oriented.width, oriented.height, oriented.depth)
        self._free.extend(split_free_box(free, node, split))

        if merge:
            self.merge_free_list()

        self._used.append(node)
        self.verifier.check_placement(node)

        if logger.isEnabledFor(logging.DEBUG):
            self._log_state(node)
        return node

    def _log_state(self, node: Box) -> None:
        logger.debug("placed: %s", node)
        for i, free in enumerate(self._free):
            logger.debug("free space:%d %s", i, free)

    def __repr__(self) -> str:
        return (
            f"GuillotinePacker(bin={self.bin_width}x{self.bin_height}x{self.bin_depth}, "
            f"boxes={len(self._used)}, free={len(self._free)}, "
            f"occupancy={self.occupancy():.1%})"
        )
