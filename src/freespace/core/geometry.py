"""
Geometry primitives shared by every packer.

All volumes are axis-aligned and anchored at their minimum corner.
The container axes are:
    x: width
    y: height (the "bottom-left" axis of the max-rects rule)
    z: depth  (the stacking axis; support is measured on the x–y plane)

Classes:
    Size    : unplaced box dimensions handed to a packer
    Box     : placed box or free volume
    FreeBox : free volume carrying a 2D support footprint

Predicates and orderings are plain functions so packers can use them
as sort keys and filters without instantiating anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


# ─────────────────────────────────────────────────────────────────────────────
# Value types
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Size:
    """Dimensions of a box waiting to be packed."""

    width: int
    height: int
    depth: int

    @property
    def volume(self) -> int:
        return self.width * self.height * self.depth

    def flipped(self) -> "Size":
        """Width/height swapped. Depth never rotates."""
        return Size(self.height, self.width, self.depth)

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.width, self.height, self.depth)


@dataclass(frozen=True)
class Box:
    """
    An axis-aligned volume inside the container.

    Used both for placed boxes and for guillotine free volumes.
    A box with any zero extent is degenerate and is ignored by every
    operation that would otherwise act on it.
    """

    x: int
    y: int
    z: int
    width: int
    height: int
    depth: int

    @property
    def x_max(self) -> int:
        return self.x + self.width

    @property
    def y_max(self) -> int:
        return self.y + self.height

    @property
    def z_max(self) -> int:
        return self.z + self.depth

    @property
    def volume(self) -> int:
        return self.width * self.height * self.depth

    @property
    def footprint_area(self) -> int:
        """Area of the x–y base."""
        return self.width * self.height

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0 or self.depth <= 0

    @property
    def size(self) -> Size:
        return Size(self.width, self.height, self.depth)

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": [self.x, self.y, self.z],
            "dims": [self.width, self.height, self.depth],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Box":
        x, y, z = d["position"]
        width, height, depth = d["dims"]
        return cls(x=x, y=y, z=z, width=width, height=height, depth=depth)

    def __str__(self) -> str:
        return (
            f"x:{self.x} y:{self.y} z:{self.z} "
            f"size:{self.width}X{self.height}X{self.depth}"
        )


@dataclass(frozen=True)
class FreeBox(Box):
    """
    A max-rects free volume with its support footprint.

    The support rectangle ``[support_x0, support_x1) × [support_y0,
    support_y1)`` is the part of the volume's base that rests on the
    container floor or on the top face of a placed box.  Coordinates
    are absolute and always lie inside the volume's own footprint.
    Build instances through :meth:`with_support` so the bounds are
    clipped; an empty intersection collapses to zero width instead of
    producing inverted bounds.
    """

    support_x0: int = 0
    support_x1: int = 0
    support_y0: int = 0
    support_y1: int = 0

    @classmethod
    def with_support(
        cls,
        x: int, y: int, z: int,
        width: int, height: int, depth: int,
        support_x0: int, support_x1: int,
        support_y0: int, support_y1: int,
    ) -> "FreeBox":
        sx0, sx1 = _clip_interval(support_x0, support_x1, x, x + width)
        sy0, sy1 = _clip_interval(support_y0, support_y1, y, y + height)
        return cls(x, y, z, width, height, depth, sx0, sx1, sy0, sy1)

    @classmethod
    def floor(cls, width: int, height: int, depth: int) -> "FreeBox":
        """The whole container, fully supported by the floor."""
        return cls(0, 0, 0, width, height, depth, 0, width, 0, height)

    @property
    def support_width(self) -> int:
        return self.support_x1 - self.support_x0

    @property
    def support_height(self) -> int:
        return self.support_y1 - self.support_y0

    def reshaped(
        self,
        x: int | None = None,
        y: int | None = None,
        z: int | None = None,
        width: int | None = None,
        height: int | None = None,
        depth: int | None = None,
        support: tuple[int, int, int, int] | None = None,
    ) -> "FreeBox":
        """
        Copy with some extents replaced.

        The support rectangle defaults to this volume's own and is
        re-clipped to the new footprint.
        """
        sx0, sx1, sy0, sy1 = support or (
            self.support_x0, self.support_x1, self.support_y0, self.support_y1,
        )
        return FreeBox.with_support(
            self.x if x is None else x,
            self.y if y is None else y,
            self.z if z is None else z,
            self.width if width is None else width,
            self.height if height is None else height,
            self.depth if depth is None else depth,
            sx0, sx1, sy0, sy1,
        )

    def __str__(self) -> str:
        return (
            f"{super().__str__()}  support: x {self.support_x0}~{self.support_x1}"
            f" y {self.support_y0}~{self.support_y1}"
        )


def _clip_interval(lo: int, hi: int, bound_lo: int, bound_hi: int) -> tuple[int, int]:
    lo = max(lo, bound_lo)
    hi = min(hi, bound_hi)
    if hi < lo:
        lo = min(lo, bound_hi)
        return lo, lo
    return lo, hi


# ─────────────────────────────────────────────────────────────────────────────
# Predicates
# ─────────────────────────────────────────────────────────────────────────────

def disjoint(a: Box, b: Box) -> bool:
    """True iff *a* and *b* share no interior point (separating-axis test)."""
    if a.is_degenerate or b.is_degenerate:
        return True
    return (
        a.x_max <= b.x or b.x_max <= a.x
        or a.y_max <= b.y or b.y_max <= a.y
        or a.z_max <= b.z or b.z_max <= a.z
    )


def contained_in(a: Box, b: Box) -> bool:
    """
    True iff *a* lies inside *b*.

    The x–y rectangle of *a* must be inside *b*'s, and *a*'s z-range
    must start at or above *b*'s floor and end at or below its top.
    """
    return (
        a.x >= b.x and a.y >= b.y
        and a.x_max <= b.x_max and a.y_max <= b.y_max
        and a.z >= b.z and a.z_max <= b.z_max
    )


def footprints_overlap(a: Box, b: Box) -> bool:
    """True iff the x–y footprints of *a* and *b* overlap with positive area."""
    return a.x < b.x_max and b.x < a.x_max and a.y < b.y_max and b.y < a.y_max


# ─────────────────────────────────────────────────────────────────────────────
# Orderings
# ─────────────────────────────────────────────────────────────────────────────

def compare_short_side(a: Box | Size, b: Box | Size) -> int:
    """
    Lexicographic compare on (footprint short side, footprint long side).

    Returns -1 if *a*'s shorter side is shorter than *b*'s, 1 the other
    way around, and falls back to the longer side on a tie.  Returns 0
    when both footprints are the same size.
    """
    a_short, a_long = sorted((a.width, a.height))
    b_short, b_long = sorted((b.width, b.height))
    if a_short != b_short:
        return -1 if a_short < b_short else 1
    if a_long != b_long:
        return -1 if a_long < b_long else 1
    return 0


def guillotine_order_key(box: Box) -> tuple[int, int, int]:
    """Deepest layer first: (z, y, x)."""
    return (box.z, box.y, box.x)


def bottom_left_key(box: Box) -> tuple[int, int, int]:
    """Lowest, then nearest the back, then leftmost: (y, z, x)."""
    return (box.y, box.z, box.x)
