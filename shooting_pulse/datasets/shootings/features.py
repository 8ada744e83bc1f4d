"""
Shooting Pulse - Shooting Aggregates

Derives the descriptive summary tables from the cleaned shooting table.

Aggregates:
    - Incidents per year
    - Incidents per hour of day (observed hours only)
    - Incidents per borough
    - Murders per year
    - Incidents per value of any categorical field

All aggregates are raw counts over a read-only input.

Usage:
    from shooting_pulse.datasets.shootings.features import ShootingFeatureBuilder

    builder = ShootingFeatureBuilder()
    result = builder.run(processed_df, execution_date="2024-01-15")
    long_df = builder.get_data()
    tables = builder.get_aggregates()
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from shooting_pulse.datasets.base import BaseFeatureBuilder, FeatureDefinition
from shooting_pulse.datasets.shootings.preprocess import DEMOGRAPHIC_COLUMNS
from shooting_pulse.shared.config import Settings

logger = logging.getLogger(__name__)


# =============================================================================
# Aggregations
# =============================================================================


def _count_by(keys: pd.Series, name: str) -> pd.DataFrame:
    """Count rows per key value, ascending by key."""
    counts = keys.value_counts(sort=False, dropna=True)
    counts = counts[counts > 0]
    table = pd.DataFrame({name: counts.index.to_numpy(), "count": counts.to_numpy()})
    table = table.sort_values(name, kind="mergesort").reset_index(drop=True)
    table["count"] = table["count"].astype("int64")
    return table


def count_by_year(df: pd.DataFrame) -> pd.DataFrame:
    """Incidents per calendar year of OCCUR_DATE, ascending by year."""
    if df.empty:
        return pd.DataFrame({"year": pd.Series(dtype="int64"), "count": pd.Series(dtype="int64")})
    table = _count_by(df["OCCUR_DATE"].dt.year, "year")
    table["year"] = table["year"].astype("int64")
    return table


def count_by_hour(df: pd.DataFrame) -> pd.DataFrame:
    """
    Incidents per hour of day, ascending by hour.

    Sparse: hours with no incidents are absent rather than zero-filled.
    """
    if df.empty:
        return pd.DataFrame({"hour": pd.Series(dtype="int64"), "count": pd.Series(dtype="int64")})
    hours = df["OCCUR_TIME"].map(lambda t: t.hour)
    table = _count_by(hours, "hour")
    table["hour"] = table["hour"].astype("int64")
    return table


def count_by_field(df: pd.DataFrame, field: str) -> pd.DataFrame:
    """
    Incidents per value of a categorical field.

    Sorted by count descending, ties broken by label ascending.
    """
    if df.empty:
        return pd.DataFrame({field: pd.Series(dtype="object"), "count": pd.Series(dtype="int64")})
    table = _count_by(df[field].astype("object"), field)
    table = table.sort_values(["count", field], ascending=[False, True], kind="mergesort")
    return table.reset_index(drop=True)


def count_by_borough(df: pd.DataFrame) -> pd.DataFrame:
    """Incidents per borough, most incidents first, ties by borough name."""
    return count_by_field(df, "BORO")


def murders_by_year(df: pd.DataFrame) -> pd.DataFrame:
    """Incidents, murders and murder rate per calendar year."""
    columns = ["year", "count", "murders", "murder_rate"]
    if df.empty:
        return pd.DataFrame(columns=columns)

    grouped = (
        df.assign(year=df["OCCUR_DATE"].dt.year)
        .groupby("year")["STATISTICAL_MURDER_FLAG"]
        .agg(count="size", murders="sum")
        .reset_index()
    )
    grouped["year"] = grouped["year"].astype("int64")
    grouped["murders"] = grouped["murders"].astype("int64")
    grouped["murder_rate"] = grouped["murders"] / grouped["count"]
    return grouped[columns]


# =============================================================================
# Feature Builder
# =============================================================================


class ShootingFeatureBuilder(BaseFeatureBuilder):
    """
    Feature builder for NYPD shooting data.

    Produces a long table of (dimension, value, count) rows stacking the
    yearly, hourly, borough and demographic counts, and keeps each table
    separately for charting.
    """

    DEMOGRAPHIC_FIELDS = DEMOGRAPHIC_COLUMNS

    def __init__(self, config: Settings | None = None):
        """Initialize shooting feature builder."""
        super().__init__(config)
        self._aggregates: dict[str, pd.DataFrame] = {}

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shootings"

    def get_entity_key(self) -> list[str]:
        """Return entity key of the long table."""
        return ["dimension", "value"]

    def get_feature_definitions(self) -> list[FeatureDefinition]:
        """Return feature definitions."""
        return [
            FeatureDefinition(
                name="dimension",
                description="Aggregate the row belongs to (year, hour, BORO, ...)",
                dtype="string",
                source_columns=[],
            ),
            FeatureDefinition(
                name="value",
                description="Group label within the dimension",
                dtype="string",
                source_columns=["OCCUR_DATE", "OCCUR_TIME", "BORO", *self.DEMOGRAPHIC_FIELDS],
            ),
            FeatureDefinition(
                name="count",
                description="Incidents in the group",
                dtype="int",
                source_columns=["INCIDENT_KEY"],
                aggregation="count",
                min_value=1,
            ),
        ]

    def build_features(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Build every aggregate and stack them into one long table.

        Args:
            df: Cleaned shooting DataFrame

        Returns:
            DataFrame with dimension, value and count columns
        """
        self._aggregates = {
            "year": count_by_year(df),
            "hour": count_by_hour(df),
            "BORO": count_by_borough(df),
            "murders_by_year": murders_by_year(df),
        }
        for field in self.DEMOGRAPHIC_FIELDS:
            if field in df.columns:
                self._aggregates[field] = count_by_field(df, field)

        frames = []
        for dimension, table in self._aggregates.items():
            if dimension == "murders_by_year" or table.empty:
                continue
            key = table.columns[0]
            frames.append(
                pd.DataFrame(
                    {
                        "dimension": dimension,
                        "value": table[key].astype(str),
                        "count": table["count"].astype("int64"),
                    }
                )
            )

        if not frames:
            return pd.DataFrame(columns=["dimension", "value", "count"])

        return pd.concat(frames, ignore_index=True)

    def get_aggregates(self) -> dict[str, pd.DataFrame]:
        """Get the individual aggregate tables from the last build."""
        return dict(self._aggregates)


# =============================================================================
# Convenience Functions
# =============================================================================


def build_shooting_features(
    df: pd.DataFrame,
    execution_date: str,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for building shooting aggregates.

    Returns the result dictionary.
    """
    builder = ShootingFeatureBuilder(config)
    result = builder.run(df, execution_date)
    return result.to_dict()
