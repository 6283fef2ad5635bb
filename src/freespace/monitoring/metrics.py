"""Metrics tracking and export for packing experiments.

A run is one dataset, in one ordering, packed into one fresh container.
An experiment is every run made under one PackerSettings.

What "occupancy" means depends on the strategy: the guillotine packer
reports placed volume over container volume, the max-rects packer the
placed footprint over the container floor.  Aggregates carry that basis
so reports from the two strategies are not compared blindly.
"""

from __future__ import annotations

import csv
import json
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import numpy as np

from freespace.core.geometry import Box


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


OCCUPANCY_BASIS = {
    "guillotine": "volume",
    "maxrects": "footprint",
}

CSV_FIELDS = [
    "run_id", "dataset_id", "ordering", "boxes_requested", "boxes_placed",
    "boxes_rejected", "occupancy_pct", "volume_used", "volume_total", "completed_at",
]


@dataclass
class RunMetrics:
    """Metrics for packing one dataset into one container.

    Attributes:
        run_id: Sequential identifier within the experiment.
        dataset_id: Dataset identifier this run belongs to.
        strategy: Packer strategy name ("guillotine" or "maxrects").
        ordering: Name of the ordering applied to the sizes.
        boxes_requested: Number of sizes handed to the packer.
        boxes_placed: Number of sizes actually placed.
        occupancy_pct: Packer occupancy as a percentage, on the strategy's basis.
        volume_used: Total placed volume.
        volume_total: Container volume.
        completed_at: Timestamp when the run finished.
    """

    run_id: int
    dataset_id: str
    strategy: str
    ordering: str
    boxes_requested: int
    boxes_placed: int
    occupancy_pct: float
    volume_used: int
    volume_total: int
    completed_at: datetime = field(default_factory=_utcnow)

    @property
    def boxes_rejected(self) -> int:
        return self.boxes_requested - self.boxes_placed

    @property
    def volume_fill_pct(self) -> float:
        """Placed volume over container volume, whatever the strategy."""
        if self.volume_total == 0:
            return 0.0
        return 100.0 * self.volume_used / self.volume_total

    def to_dict(self) -> dict[str, Any]:
        """Flat row with ISO timestamp, matching CSV_FIELDS.

        Example:
            >>> rm = RunMetrics(0, "demo", "guillotine", "as_given", 22, 20, 41.5, 1, 2)
            >>> rm.to_dict()["boxes_rejected"]
            2
        """
        return {
            "run_id": self.run_id,
            "dataset_id": self.dataset_id,
            "ordering": self.ordering,
            "boxes_requested": self.boxes_requested,
            "boxes_placed": self.boxes_placed,
            "boxes_rejected": self.boxes_rejected,
            "occupancy_pct": self.occupancy_pct,
            "volume_used": self.volume_used,
            "volume_total": self.volume_total,
            "completed_at": self.completed_at.isoformat(),
        }


@dataclass
class ExperimentMetrics:
    """All runs of one experiment, with occupancy statistics.

    Statistics are recomputed from ``runs`` on every ``add_run`` so they
    always describe exactly the recorded runs.
    """

    experiment_id: str
    strategy: str
    planned_runs: int = 0
    errors_count: int = 0
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None
    runs: list[RunMetrics] = field(default_factory=list)

    occupancy_mean: float = 0.0
    occupancy_median: float = 0.0
    occupancy_min: float = 0.0
    occupancy_max: float = 0.0

    @property
    def occupancy_basis(self) -> str:
        return OCCUPANCY_BASIS.get(self.strategy, "volume")

    @property
    def boxes_requested(self) -> int:
        return sum(r.boxes_requested for r in self.runs)

    @property
    def boxes_placed(self) -> int:
        return sum(r.boxes_placed for r in self.runs)

    @property
    def boxes_rejected(self) -> int:
        return self.boxes_requested - self.boxes_placed

    @property
    def runtime_seconds(self) -> float:
        end = self.completed_at or _utcnow()
        return (end - self.started_at).total_seconds()

    def add_run(self, run: RunMetrics) -> None:
        self.runs.append(run)
        occupancies = np.array([r.occupancy_pct for r in self.runs], dtype=np.float64)
        self.occupancy_mean = float(occupancies.mean())
        self.occupancy_median = float(np.median(occupancies))
        self.occupancy_min = float(occupancies.min())
        self.occupancy_max = float(occupancies.max())

    def record_error(self) -> None:
        self.errors_count += 1

    def mark_complete(self) -> None:
        self.completed_at = _utcnow()

    def occupancy_by_ordering(self) -> dict[str, float]:
        """Mean occupancy per ordering strategy, in first-seen order."""
        grouped: dict[str, list[float]] = defaultdict(list)
        for r in self.runs:
            grouped[r.ordering].append(r.occupancy_pct)
        return {name: float(np.mean(values)) for name, values in grouped.items()}

    def best_run(self) -> RunMetrics | None:
        """Highest-occupancy run; the earliest one on ties."""
        if not self.runs:
            return None
        return self.runs[int(np.argmax([r.occupancy_pct for r in self.runs]))]

    def to_dict(self, include_runs: bool = True) -> dict[str, Any]:
        d: dict[str, Any] = {
            "experiment_id": self.experiment_id,
            "strategy": self.strategy,
            "occupancy_basis": self.occupancy_basis,
            "planned_runs": self.planned_runs,
            "completed_runs": len(self.runs),
            "errors_count": self.errors_count,
            "boxes": {
                "requested": self.boxes_requested,
                "placed": self.boxes_placed,
                "rejected": self.boxes_rejected,
            },
            "occupancy_pct": {
                "mean": self.occupancy_mean,
                "median": self.occupancy_median,
                "min": self.occupancy_min,
                "max": self.occupancy_max,
                "by_ordering": self.occupancy_by_ordering(),
            },
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "runtime_seconds": self.runtime_seconds,
        }
        if include_runs:
            d["runs"] = [r.to_dict() for r in self.runs]
        return d


# ─────────────────────────────────────────────────────────────────────────────
# Export
# ─────────────────────────────────────────────────────────────────────────────

def export_to_json(metrics: ExperimentMetrics, output_path: Path | str, include_runs: bool = True) -> None:
    """Write the experiment report; per-run rows only when *include_runs*."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w") as f:
        json.dump(metrics.to_dict(include_runs=include_runs), f, indent=2)


def export_to_csv(metrics: ExperimentMetrics, output_path: Path | str) -> None:
    """One row per run (header only when there are no runs)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(r.to_dict() for r in metrics.runs)


def export_placements(boxes: Iterable[Box], output_path: Path | str) -> None:
    """Write placed boxes, in placement order, as position/dims records."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w") as f:
        json.dump([b.to_dict() for b in boxes], f, indent=2)


def load_placements(path: Path | str) -> list[Box]:
    """Read back a file written by :func:`export_placements`."""
    with Path(path).open("r") as f:
        return [Box.from_dict(record) for record in json.load(f)]


def format_summary(metrics: ExperimentMetrics) -> str:
    """Human-readable experiment report."""
    basis = metrics.occupancy_basis
    lines = [
        "=" * 60,
        f"Experiment: {metrics.experiment_id}",
        f"Strategy: {metrics.strategy} (occupancy by {basis})",
        "=" * 60,
        f"Runs: {len(metrics.runs)}/{metrics.planned_runs}   Errors: {metrics.errors_count}",
        f"Boxes placed: {metrics.boxes_placed}/{metrics.boxes_requested}"
        f"   rejected: {metrics.boxes_rejected}",
        "",
        f"Occupancy ({basis}):",
        f"  mean {metrics.occupancy_mean:.2f}%   median {metrics.occupancy_median:.2f}%",
        f"  min  {metrics.occupancy_min:.2f}%   max    {metrics.occupancy_max:.2f}%",
    ]

    by_ordering = metrics.occupancy_by_ordering()
    if by_ordering:
        lines.append("")
        lines.append("By ordering:")
        width = max(len(name) for name in by_ordering)
        for name, value in by_ordering.items():
            lines.append(f"  {name:<{width}}  {value:6.2f}%")

    best = metrics.best_run()
    if best is not None:
        lines.append("")
        lines.append(
            f"Best run: {best.dataset_id}/{best.ordering} "
            f"({best.boxes_placed}/{best.boxes_requested} placed, {best.occupancy_pct:.2f}%)"
        )

    status = metrics.completed_at.isoformat() if metrics.completed_at else "In Progress"
    lines += [
        "",
        f"Runtime: {metrics.runtime_seconds:.2f} seconds",
        f"Completed: {status}",
        "=" * 60,
    ]
    return "\n".join(lines)
