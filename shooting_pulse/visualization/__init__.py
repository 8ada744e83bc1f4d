"""
Shooting Pulse - Visualization

Chart and map builders for the shooting aggregates.
"""

from shooting_pulse.visualization.charts import (
    build_heatmap,
    coordinate_pairs,
    plot_borough_counts,
    plot_hourly_counts,
    plot_yearly_counts,
    save_figure,
    save_map,
)

__all__ = [
    "build_heatmap",
    "coordinate_pairs",
    "plot_borough_counts",
    "plot_hourly_counts",
    "plot_yearly_counts",
    "save_figure",
    "save_map",
]
