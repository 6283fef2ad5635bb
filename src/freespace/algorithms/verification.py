"""
Non-overlap verification: a correctness oracle for the packers.

The packers never consult this module when choosing a placement.  They
hand every committed placement to an injected verifier:

    NullVerifier         : production default, does nothing
    DisjointnessVerifier : keeps a DisjointBoxCollection of placed boxes
                            and raises InvariantViolationError on overlap

Usage:
    packer = GuillotinePacker(1500, 1500, 800, verifier=DisjointnessVerifier())
"""

from __future__ import annotations

from typing import Iterable

from freespace.core.errors import InvariantViolationError
from freespace.core.geometry import Box, disjoint


class DisjointBoxCollection:
    """A set of boxes kept pairwise non-overlapping at every insertion."""

    def __init__(self) -> None:
        self.boxes: list[Box] = []

    def add(self, box: Box) -> bool:
        """
        Insert *box* unless it overlaps a member.

        Returns:
            False (and leaves the collection unchanged) on overlap.
            Degenerate boxes are accepted without being stored.
        """
        if box.is_degenerate:
            return True
        if not self.is_disjoint(box):
            return False
        self.boxes.append(box)
        return True

    def is_disjoint(self, box: Box) -> bool:
        """True iff *box* overlaps no member."""
        if box.is_degenerate:
            return True
        return all(disjoint(member, box) for member in self.boxes)

    def clear(self) -> None:
        self.boxes.clear()

    def __len__(self) -> int:
        return len(self.boxes)


class PlacementVerifier:
    """
    Verification hook interface.

    Subclass and override the checks you care about; the base class is
    a no-op so packers can call every hook unconditionally.
    """

    def reset(self) -> None:
        """Called by ``init`` when a packer restarts with an empty container."""

    def check_placement(self, box: Box) -> None:
        """Called once per committed placement, after the free list is updated."""

    def check_partition(self, boxes: Iterable[Box]) -> None:
        """Called with a free list that must be pairwise disjoint."""


class NullVerifier(PlacementVerifier):
    """Skips every check."""


class DisjointnessVerifier(PlacementVerifier):
    """Full pairwise non-overlap checking, for tests and debugging."""

    def __init__(self) -> None:
        self.placed = DisjointBoxCollection()

    def reset(self) -> None:
        self.placed.clear()

    def check_placement(self, box: Box) -> None:
        if not self.placed.add(box):
            raise InvariantViolationError(
                f"Placed box ({box}) overlaps a previously placed box"
            )

    def check_partition(self, boxes: Iterable[Box]) -> None:
        partition = DisjointBoxCollection()
        for box in boxes:
            if not partition.add(box):
                raise InvariantViolationError(
                    f"Free volume ({box}) overlaps another free volume"
                )
