"""
freespace: free-space management for 3D container loading.

Public API:
    from freespace import GuillotinePacker, MaxRectsPacker
    from freespace import FreeChoiceHeuristic, SplitHeuristic, PlacementRule
    from freespace import Box, Size, DisjointnessVerifier
    from freespace.config import PackerSettings, load_settings, build_packer
"""

from .algorithms import (
    BatchResult,
    DisjointBoxCollection,
    DisjointnessVerifier,
    FreeChoiceHeuristic,
    GuillotinePacker,
    MaxRectsPacker,
    NullVerifier,
    PlacementRule,
    SplitHeuristic,
)
from .core import Box, FreeBox, Size

__version__ = "0.1.0"

__all__ = [
    "GuillotinePacker",
    "MaxRectsPacker",
    "FreeChoiceHeuristic",
    "SplitHeuristic",
    "PlacementRule",
    "BatchResult",
    "DisjointBoxCollection",
    "DisjointnessVerifier",
    "NullVerifier",
    "Box",
    "FreeBox",
    "Size",
]
