"""Geometry value types and the error taxonomy."""

from .errors import (
    ConfigError,
    InvalidDimensionsError,
    InvariantViolationError,
    PackingError,
    UnsupportedHeuristicError,
)
from .geometry import (
    Box,
    FreeBox,
    Size,
    bottom_left_key,
    compare_short_side,
    contained_in,
    disjoint,
    footprints_overlap,
    guillotine_order_key,
)

__all__ = [
    # Geometry
    "Box",
    "FreeBox",
    "Size",
    "disjoint",
    "contained_in",
    "footprints_overlap",
    "compare_short_side",
    "guillotine_order_key",
    "bottom_left_key",
    # Errors
    "PackingError",
    "InvalidDimensionsError",
    "InvariantViolationError",
    "UnsupportedHeuristicError",
    "ConfigError",
]
