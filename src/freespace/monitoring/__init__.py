"""Monitoring module for freespace.

Provides metrics tracking and export for packing experiments.
"""

from .metrics import (
    OCCUPANCY_BASIS,
    ExperimentMetrics,
    RunMetrics,
    export_placements,
    export_to_csv,
    export_to_json,
    format_summary,
    load_placements,
)

__all__ = [
    "OCCUPANCY_BASIS",
    "ExperimentMetrics",
    "RunMetrics",
    "export_placements",
    "export_to_csv",
    "export_to_json",
    "format_summary",
    "load_placements",
]
