"""
Shooting Pulse - Charts and Maps

Thin rendering wrappers over the aggregate tables:
    - Yearly and hourly incident line charts (matplotlib/seaborn)
    - Borough bar chart (matplotlib/seaborn)
    - Incident density heatmap (folium HeatMap)

Every builder returns None for a missing or empty input instead of failing.
"""

from __future__ import annotations

import logging
from pathlib import Path

import folium
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from folium.plugins import HeatMap
from matplotlib.figure import Figure

from shooting_pulse.shared.config import Settings, get_config

logger = logging.getLogger(__name__)


def _figure(config: Settings | None) -> tuple[Figure, plt.Axes]:
    settings = (config or get_config()).visualization
    return plt.subplots(figsize=(settings.figure_width, settings.figure_height))


def _is_empty(table: pd.DataFrame | None) -> bool:
    return table is None or table.empty


def plot_yearly_counts(table: pd.DataFrame | None, config: Settings | None = None) -> Figure | None:
    """Line chart of incidents per year."""
    if _is_empty(table):
        logger.info("No yearly counts to plot")
        return None

    fig, ax = _figure(config)
    sns.lineplot(data=table, x="year", y="count", marker="o", ax=ax)
    ax.set_title("Shooting Incidents by Year")
    ax.set_xlabel("Year")
    ax.set_ylabel("Incidents")
    ax.set_xticks(table["year"].tolist())
    ax.tick_params(axis="x", rotation=45)
    fig.tight_layout()
    return fig


def plot_hourly_counts(table: pd.DataFrame | None, config: Settings | None = None) -> Figure | None:
    """Line chart of incidents per hour of day."""
    if _is_empty(table):
        logger.info("No hourly counts to plot")
        return None

    fig, ax = _figure(config)
    sns.lineplot(data=table, x="hour", y="count", marker="o", ax=ax)
    ax.set_title("Shooting Incidents by Hour of Day")
    ax.set_xlabel("Hour")
    ax.set_ylabel("Incidents")
    ax.set_xticks(range(24))
    fig.tight_layout()
    return fig


def plot_borough_counts(table: pd.DataFrame | None, config: Settings | None = None) -> Figure | None:
    """Bar chart of incidents per borough in table order."""
    if _is_empty(table):
        logger.info("No borough counts to plot")
        return None

    fig, ax = _figure(config)
    sns.barplot(
        data=table,
        x="BORO",
        y="count",
        order=table["BORO"].astype(str).tolist(),
        color=sns.color_palette()[0],
        ax=ax,
    )
    ax.set_title("Shooting Incidents by Borough")
    ax.set_xlabel("Borough")
    ax.set_ylabel("Incidents")
    fig.tight_layout()
    return fig


def coordinate_pairs(df: pd.DataFrame) -> list[tuple[float, float]]:
    """(latitude, longitude) pairs for every row with both coordinates."""
    if df.empty or not {"Latitude", "Longitude"}.issubset(df.columns):
        return []
    coords = df[["Latitude", "Longitude"]].dropna()
    return list(zip(coords["Latitude"].astype(float), coords["Longitude"].astype(float)))


def build_heatmap(pairs: list[tuple[float, float]] | None) -> folium.Map | None:
    """Leaflet map with a density heat layer over the incident coordinates."""
    if not pairs:
        logger.info("No coordinates to map")
        return None

    lats = [lat for lat, _ in pairs]
    lons = [lon for _, lon in pairs]
    center = [sum(lats) / len(lats), sum(lons) / len(lons)]

    m = folium.Map(location=center, zoom_start=11)
    HeatMap([[lat, lon] for lat, lon in pairs], radius=8, blur=12).add_to(m)
    return m


def save_figure(fig: Figure | None, path: str | Path) -> Path | None:
    """Write a figure to disk and close it. None is a no-op."""
    if fig is None:
        return None
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved chart to {path}")
    return path


def save_map(m: folium.Map | None, path: str | Path) -> Path | None:
    """Write a folium map to an HTML file. None is a no-op."""
    if m is None:
        return None
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    m.save(str(path))
    logger.info(f"Saved map to {path}")
    return path
