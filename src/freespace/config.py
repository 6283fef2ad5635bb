"""
Settings for building and driving a packer.

Classes:
    ContainerSettings: container extents (defaults: the 1500×1500×800 demo container)
    PackerSettings   : strategy choice, heuristics, support threshold, verification

Settings are validated with pydantic, so invalid configuration is
rejected here, before a packer is ever constructed.  YAML files map
one-to-one onto the fields; heuristic names use their public spelling:

    strategy: guillotine
    choice: WorstLongSideFit
    split: ShorterLeftoverAxis
    merge: true
    container:
      width: 1500
      height: 1500
      depth: 800
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError

from freespace.algorithms.guillotine import (
    FreeChoiceHeuristic,
    GuillotinePacker,
    SplitHeuristic,
)
from freespace.algorithms.maxrects import (
    DEFAULT_SUPPORT_THRESHOLD,
    MaxRectsPacker,
    PlacementRule,
)
from freespace.algorithms.verification import DisjointnessVerifier, NullVerifier
from freespace.core.errors import ConfigError


Packer = Union[GuillotinePacker, MaxRectsPacker]


# ─────────────────────────────────────────────────────────────────────────────
# Settings models
# ─────────────────────────────────────────────────────────────────────────────

class ContainerSettings(BaseModel):
    """Physical extents of the container (x = width, y = height, z = depth)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    width: PositiveInt = 1500
    height: PositiveInt = 1500
    depth: PositiveInt = 800

    @property
    def volume(self) -> int:
        return self.width * self.height * self.depth


class PackerSettings(BaseModel):
    """
    Everything needed to build a packer and call its ``insert``.

    Attributes:
        container:         Container extents.
        strategy:          "guillotine" or "maxrects".
        merge:             Guillotine only: run a merge pass after each placement.
        choice:            Guillotine free-volume scoring rule.
        split:             Guillotine leftover split rule.
        placement:         Max-rects placement rule (only BottomLeft works).
        allow_flip:        Max-rects only: allow width/height swap.
        support_threshold: Max-rects minimum supported fraction per axis.
        verify:            Inject the pairwise non-overlap verifier.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    container: ContainerSettings = Field(default_factory=ContainerSettings)
    strategy: Literal["guillotine", "maxrects"] = "guillotine"

    merge: bool = True
    choice: FreeChoiceHeuristic = FreeChoiceHeuristic.BEST_AREA_FIT
    split: SplitHeuristic = SplitHeuristic.SHORTER_LEFTOVER_AXIS

    placement: PlacementRule = PlacementRule.BOTTOM_LEFT
    allow_flip: bool = True
    support_threshold: float = Field(default=DEFAULT_SUPPORT_THRESHOLD, gt=0.0, le=1.0)

    verify: bool = False

    def insert_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for the configured packer's ``insert``."""
        if self.strategy == "guillotine":
            return {"merge": self.merge, "choice": self.choice, "split": self.split}
        return {"method": self.placement}

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# ─────────────────────────────────────────────────────────────────────────────
# Loading and building
# ─────────────────────────────────────────────────────────────────────────────

def settings_from_dict(data: dict[str, Any]) -> PackerSettings:
    """Validate a plain mapping into PackerSettings."""
    try:
        return PackerSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid packer settings: {exc}") from exc


def load_settings(path: Path | str) -> PackerSettings:
    """
    Read PackerSettings from a YAML file.

    An empty file yields the defaults.

    Raises:
        ConfigError: file missing, not a mapping, or failing validation.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return settings_from_dict(data)


def build_packer(settings: PackerSettings) -> Packer:
    """Construct an initialised packer for *settings*."""
    verifier = DisjointnessVerifier() if settings.verify else NullVerifier()
    c = settings.container
    if settings.strategy == "guillotine":
        return GuillotinePacker(c.width, c.height, c.depth, verifier=verifier)
    return MaxRectsPacker(
        c.width, c.height, c.depth,
        allow_flip=settings.allow_flip,
        support_threshold=settings.support_threshold,
        verifier=verifier,
    )
