"""Free-space packers and their verification hooks."""

from .guillotine import (
    BatchResult,
    FreeChoiceHeuristic,
    GuillotinePacker,
    SplitHeuristic,
)
from .maxrects import DEFAULT_SUPPORT_THRESHOLD, MaxRectsPacker, PlacementRule
from .verification import (
    DisjointBoxCollection,
    DisjointnessVerifier,
    NullVerifier,
    PlacementVerifier,
)

__all__ = [
    # Guillotine
    "GuillotinePacker",
    "FreeChoiceHeuristic",
    "SplitHeuristic",
    "BatchResult",
    # Max-rects
    "MaxRectsPacker",
    "PlacementRule",
    "DEFAULT_SUPPORT_THRESHOLD",
    # Verification
    "DisjointBoxCollection",
    "PlacementVerifier",
    "NullVerifier",
    "DisjointnessVerifier",
]
