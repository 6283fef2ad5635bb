"""Experiment runner for free-space packing."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from freespace.config import PackerSettings, build_packer, load_settings
from freespace.core.errors import PackingError
from freespace.core.geometry import Box, Size
from freespace.monitoring.metrics import (
    ExperimentMetrics,
    RunMetrics,
    export_placements,
    export_to_csv,
    export_to_json,
    format_summary,
)
from freespace.runner.dataset import ORDERING_STRATEGIES, demo_sizes, generate_sizes

logger = logging.getLogger(__name__)


class ExperimentRunner:
    """
    Packs datasets under one PackerSettings and collects metrics.

    Every dataset is packed once per ordering strategy, each time into a
    fresh container.
    """

    def __init__(
        self,
        settings: Optional[PackerSettings] = None,
        results_dir: Path | str | None = "results",
        batch: bool = False,
    ):
        """
        Initialize experiment runner.

        Args:
            settings: Packer settings (default: PackerSettings())
            results_dir: Directory to save results, or None to skip saving
            batch: Use the guillotine packer's global batch insertion
        """
        self.settings = settings or PackerSettings()
        self.results_dir = Path(results_dir) if results_dir is not None else None
        if self.results_dir is not None:
            self.results_dir.mkdir(parents=True, exist_ok=True)
        self.batch = batch and self.settings.strategy == "guillotine"
        self._next_run_id = 0

    def run_sizes(
        self,
        sizes: Sequence[Size],
        dataset_id: str = "dataset",
        ordering: str = "as_given",
    ) -> tuple[RunMetrics, list[Box]]:
        """
        Pack *sizes* into one fresh container.

        Returns:
            The run's metrics and the placed boxes in placement order.
        """
        packer = build_packer(self.settings)

        if self.batch:
            result = packer.insert_batch(sizes, **self.settings.insert_kwargs())
            placed = result.placed
        else:
            placed = []
            kwargs = self.settings.insert_kwargs()
            for size in sizes:
                box = packer.insert(size.width, size.height, size.depth, **kwargs)
                if box is None:
                    logger.debug("%s: %s does not fit", dataset_id, size.as_tuple())
                    continue
                placed.append(box)

        run = RunMetrics(
            run_id=self._next_run_id,
            dataset_id=dataset_id,
            strategy=self.settings.strategy,
            ordering=ordering,
            boxes_requested=len(sizes),
            boxes_placed=len(placed),
            occupancy_pct=packer.occupancy() * 100,
            volume_used=sum(b.volume for b in placed),
            volume_total=self.settings.container.volume,
        )
        self._next_run_id += 1
        logger.info(
            "%s/%s: placed %d/%d, occupancy %.1f%%",
            dataset_id, ordering, run.boxes_placed, run.boxes_requested, run.occupancy_pct,
        )
        return run, placed

    def run_experiment(
        self,
        num_datasets: int = 5,
        sizes_per_dataset: int = 50,
        demo: bool = False,
    ) -> ExperimentMetrics:
        """
        Run every dataset under every ordering strategy.

        Args:
            num_datasets: Number of random datasets (ignored with demo=True)
            sizes_per_dataset: Sizes per random dataset
            demo: Pack the reference demo load instead of random datasets

        Returns:
            ExperimentMetrics with aggregated results
        """
        experiment_id = f"exp_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        datasets = (
            [("demo", demo_sizes())]
            if demo
            else [
                (f"dataset_{i:03d}", generate_sizes(count=sizes_per_dataset, seed=i))
                for i in range(num_datasets)
            ]
        )
        metrics = ExperimentMetrics(
            experiment_id=experiment_id,
            strategy=self.settings.strategy,
            planned_runs=len(datasets) * len(ORDERING_STRATEGIES),
        )

        for dataset_id, sizes in datasets:
            for ordering_name, ordering_fn in ORDERING_STRATEGIES.items():
                try:
                    run, _ = self.run_sizes(ordering_fn(sizes), dataset_id, ordering_name)
                except PackingError:
                    logger.exception("%s/%s failed", dataset_id, ordering_name)
                    metrics.record_error()
                    continue
                metrics.add_run(run)

        metrics.mark_complete()
        self._save_results(metrics)
        return metrics

    def _save_results(self, metrics: ExperimentMetrics) -> None:
        if self.results_dir is None:
            return
        json_path = self.results_dir / f"{metrics.experiment_id}.json"
        csv_path = self.results_dir / f"{metrics.experiment_id}_runs.csv"
        export_to_json(metrics, json_path)
        export_to_csv(metrics, csv_path)
        logger.info("Saved results to %s and %s", json_path, csv_path)

    def save_placements(self, placed: Sequence[Box], name: str) -> Path | None:
        """Write *placed* to ``<results_dir>/<name>_placements.json``."""
        if self.results_dir is None:
            return None
        path = self.results_dir / f"{name}_placements.json"
        export_placements(placed, path)
        logger.info("Saved %d placements to %s", len(placed), path)
        return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run free-space packing experiments")
    parser.add_argument("--config", type=Path, default=None,
                        help="YAML settings file (default: built-in defaults)")
    parser.add_argument("--strategy", choices=["guillotine", "maxrects"], default=None,
                        help="Override the configured strategy")
    parser.add_argument("--datasets", type=int, default=5,
                        help="Number of random datasets (default: 5)")
    parser.add_argument("--sizes", type=int, default=50,
                        help="Sizes per random dataset (default: 50)")
    parser.add_argument("--demo", action="store_true",
                        help="Pack the reference demo load, print and save every placement")
    parser.add_argument("--batch", action="store_true",
                        help="Guillotine only: choose globally across all sizes")
    parser.add_argument("--results-dir", type=Path, default=Path("results"),
                        help="Where to write JSON/CSV results (default: results)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings(args.config) if args.config else PackerSettings()
    if args.strategy:
        settings = settings.model_copy(update={"strategy": args.strategy})

    runner = ExperimentRunner(settings, results_dir=args.results_dir, batch=args.batch)

    if args.demo:
        _, placed = runner.run_sizes(demo_sizes(), dataset_id="demo")
        runner.save_placements(placed, "demo")
        for box in placed:
            print(
                f"x:{box.x}\ty:{box.y}\tz:{box.z}\twidth:{box.width}"
                f"\theight:{box.height}\tdepth:{box.depth}"
            )

    metrics = runner.run_experiment(
        num_datasets=args.datasets,
        sizes_per_dataset=args.sizes,
        demo=args.demo,
    )
    print(format_summary(metrics))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
