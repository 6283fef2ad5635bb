"""
Max-rects packer with support gating: free space kept as an overlapping cover.

Algorithm overview:
    Every free volume is maximal along at least one axis and may overlap
    other free volumes; the only guarantee is that none of them contains
    part of a placed box.  Each free volume also carries a support
    footprint: the part of its base resting on the floor or on the top
    face of a placed box.

Placement (bottom-left with support):
    1. Sort free volumes by (y, z, x): lowest, nearest the back, leftmost.
    2. For each one, try the box upright and then flipped (width/height),
       anchored at the support footprint's minimum corner.
    3. Accept the first candidate that
         - fits inside the free volume from that anchor,
         - has support width ≥ threshold·width and support height ≥
           threshold·height (threshold defaults to 0.8),
         - is not blocked: no placed box overlaps its footprint with a
           top above the candidate's bottom.

Splitting:
    Every free volume intersecting the new box is replaced by up to six
    pieces: four lateral strips (low/high y, low/high x) keeping the
    parent's support clipped to their footprint, the slab below the box
    keeping the parent's support, and the slab above the box supported
    by the box's top face.  Contained volumes are then pruned.

Occupancy here is a 2D footprint ratio: Σ(w·h) / (W·H).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from freespace.algorithms.verification import NullVerifier, PlacementVerifier
from freespace.core.errors import UnsupportedHeuristicError, require_positive
from freespace.core.geometry import (
    Box,
    FreeBox,
    Size,
    bottom_left_key,
    contained_in,
    disjoint,
    footprints_overlap,
)

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Module-level constants
# ─────────────────────────────────────────────────────────────────────────────

# Fraction of the box's width and of its height that must rest on support.
DEFAULT_SUPPORT_THRESHOLD: float = 0.8


class PlacementRule(Enum):
    """Placement rules of the max-rects family. Only BOTTOM_LEFT is implemented."""

    BEST_SHORT_SIDE_FIT = "BestShortSideFit"
    BEST_LONG_SIDE_FIT = "BestLongSideFit"
    BEST_AREA_FIT = "BestAreaFit"
    BOTTOM_LEFT = "BottomLeft"
    """Tetris-style placement gated by support and blocking."""
    CONTACT_POINT = "ContactPoint"


# ─────────────────────────────────────────────────────────────────────────────
# Geometry helpers
# ─────────────────────────────────────────────────────────────────────────────

def is_blocked(used: Box, candidate: Box) -> bool:
    """True if *used* is physically in the way of *candidate*."""
    return footprints_overlap(used, candidate) and candidate.z < used.z_max


def split_free_node(free: FreeBox, used: Box) -> Optional[list[FreeBox]]:
    """
    Pieces of *free* left after carving out *used*.

    Returns:
        None if the two do not intersect (nothing to split), otherwise
        the non-degenerate pieces.
    """
    if disjoint(free, used):
        return None

    pieces: list[FreeBox] = []

    # Strips along y
    if free.y < used.y < free.y_max:
        pieces.append(free.reshaped(height=used.y - free.y))
    if used.y_max < free.y_max:
        pieces.append(free.reshaped(y=used.y_max, height=free.y_max - used.y_max))

    # Strips along x
    if free.x < used.x < free.x_max:
        pieces.append(free.reshaped(width=used.x - free.x))
    if used.x_max < free.x_max:
        pieces.append(free.reshaped(x=used.x_max, width=free.x_max - used.x_max))

    # Slabs along z
    if free.z < used.z < free.z_max:
        pieces.append(free.reshaped(depth=used.z - free.z))
    if used.z_max < free.z_max:
        pieces.append(free.reshaped(
            z=used.z_max,
            depth=free.z_max - used.z_max,
            support=(used.x, used.x_max, used.y, used.y_max),
        ))

    return [p for p in pieces if not p.is_degenerate]


# ─────────────────────────────────────────────────────────────────────────────
# Packer
# ─────────────────────────────────────────────────────────────────────────────

class MaxRectsPacker:
    """
    Support-aware 3D max-rects packer.

    Attributes:
        bin_width, bin_height, bin_depth: Container extents (0 before init).
        allow_flip:        Whether width and height may be swapped.
        support_threshold: Minimum supported fraction per footprint axis.
        verifier:          Correctness hook; NullVerifier unless injected.
    """

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        depth: int = 0,
        allow_flip: bool = True,
        support_threshold: float = DEFAULT_SUPPORT_THRESHOLD,
        verifier: Optional[PlacementVerifier] = None,
    ) -> None:
        if not 0.0 < support_threshold <= 1.0:
            raise ValueError(
                f"support_threshold must be in (0, 1], got {support_threshold}"
            )
        self.support_threshold = support_threshold
        self.verifier: PlacementVerifier = verifier or NullVerifier()
        self.allow_flip = allow_flip
        self.bin_width = 0
        self.bin_height = 0
        self.bin_depth = 0
        self._used: list[Box] = []
        self._free: list[FreeBox] = []
        if width or height or depth:
            self.init(width, height, depth, allow_flip)

    def init(self, width: int, height: int, depth: int, allow_flip: bool = True) -> None:
        """(Re)start with an empty container fully supported by its floor."""
        require_positive(width=width, height=height, depth=depth)
        self.allow_flip = allow_flip
        self.bin_width = width
        self.bin_height = height
        self.bin_depth = depth
        self._used = []
        self._free = [FreeBox.floor(width, height, depth)]
        self.verifier.reset()

    # ── Read-only views ──────────────────────────────────────────────────

    @property
    def free_boxes(self) -> tuple[FreeBox, ...]:
        return tuple(self._free)

    @property
    def used_boxes(self) -> tuple[Box, ...]:
        return tuple(self._used)

    def occupancy(self) -> float:
        """Placed footprint area over container floor area (depth ignored)."""
        floor_area = self.bin_width * self.bin_height
        if floor_area == 0:
            return 0.0
        return sum(b.footprint_area for b in self._used) / floor_area

    # ── Insertion ────────────────────────────────────────────────────────

    def insert(
        self,
        width: int,
        height: int,
        depth: int,
        method: PlacementRule = PlacementRule.BOTTOM_LEFT,
    ) -> Optional[Box]:
        """
        Place one box using *method*.

        Returns:
            The placed Box, or None if no free volume yields a supported,
            unblocked position (state is left untouched in that case).

        Raises:
            UnsupportedHeuristicError: for any rule other than BOTTOM_LEFT.
        """
        require_positive(width=width, height=height, depth=depth)
        if method is not PlacementRule.BOTTOM_LEFT:
            raise UnsupportedHeuristicError(
                f"Placement rule {method.value} is not implemented; use BottomLeft"
            )

        ordered = self._ordered_free_list()
        node = self._find_position_bottom_left(ordered, Size(width, height, depth))
        if node is None:
            logger.debug("No supported position for %s", (width, height, depth))
            return None

        self._free = ordered
        self._place(node)
        return node

    def prune_free_list(self) -> None:
        """Drop every free volume contained in another one."""
        free = self._free
        removed = [False] * len(free)
        for i in range(len(free)):
            if removed[i]:
                continue
            for j in range(i + 1, len(free)):
                if removed[j]:
                    continue
                if contained_in(free[i], free[j]):
                    removed[i] = True
                    break
                if contained_in(free[j], free[i]):
                    removed[j] = True
        self._free = [box for box, gone in zip(free, removed) if not gone]

    # ── Internals ────────────────────────────────────────────────────────

    def _ordered_free_list(self) -> list[FreeBox]:
        # sorted is stable: equal keys keep their storage order
        return sorted(self._free, key=bottom_left_key)

    def _orientations(self, size: Size) -> list[Size]:
        flipped = size.flipped()
        if self.allow_flip and flipped != size:
            return [size, flipped]
        return [size]

    def _is_supported(self, free: FreeBox, oriented: Size) -> bool:
        th = self.support_threshold
        return (
            free.support_width >= oriented.width * th
            and free.support_height >= oriented.height * th
        )

    def _find_position_bottom_left(
        self, free_list: list[FreeBox], size: Size,
    ) -> Optional[Box]:
        for i, free in enumerate(free_list):
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("free space:%d %s", i, free)
            for oriented in self._orientations(size):
                node = Box(
                    free.support_x0, free.support_y0, free.z,
                    oriented.width, oriented.height, oriented.depth,
                )
                if not contained_in(node, free):
                    continue
                if not self._is_supported(free, oriented):
                    continue
                if any(is_blocked(used, node) for used in self._used):
                    continue
                return node
        return None

    def _place(self, node: Box) -> None:
        kept: list[FreeBox] = []
        produced: list[FreeBox] = []
        for free in self._free:
            pieces = split_free_node(free, node)
            if pieces is None:
                kept.append(free)
            else:
                produced.extend(pieces)
        self._free = kept + produced

        self.prune_free_list()
        self._used.append(node)
        self.verifier.check_placement(node)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("placed: %s", node)
            for i, free in enumerate(self._free):
                logger.debug("free space:%d %s", i, free)

    def __repr__(self) -> str:
        return (
            f"MaxRectsPacker(bin={self.bin_width}x{self.bin_height}x{self.bin_depth}, "
            f"boxes={len(self._used)}, free={len(self._free)}, "
            f"occupancy={self.occupancy():.1%})"
        )
