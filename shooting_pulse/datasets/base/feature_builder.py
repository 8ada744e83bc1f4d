"""
Shooting Pulse - Base Feature Builder

Abstract base class for builders that turn a cleaned table into summary
tables. The base run() times the build, profiles each output column and
checks it against the builder's FeatureDefinition list; definition
violations are reported as warnings, never as failures.

Usage:
    class ShootingFeatureBuilder(BaseFeatureBuilder):
        def build_features(self, df: pd.DataFrame) -> pd.DataFrame:
            ...
        def get_feature_definitions(self) -> list[FeatureDefinition]:
            ...
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any

import pandas as pd

from shooting_pulse.shared.config import Settings, get_config

logger = logging.getLogger(__name__)


@dataclass
class FeatureDefinition:
    """Declared shape of one output column."""

    name: str
    description: str
    dtype: str
    source_columns: list[str]
    aggregation: str | None = None  # count, sum, mean, etc.
    nullable: bool = False
    min_value: float | None = None
    max_value: float | None = None


@dataclass
class FeatureBuildResult:
    """Outcome of one builder run."""

    dataset: str
    execution_date: str
    rows_input: int
    rows_output: int
    features_computed: int
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    feature_stats: dict[str, dict[str, Any]] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return asdict(self)


def column_stats(series: pd.Series) -> dict[str, Any]:
    """Null count plus min/max/sum for numeric columns, distinct count otherwise."""
    stats: dict[str, Any] = {"dtype": str(series.dtype), "null_count": int(series.isna().sum())}
    if pd.api.types.is_numeric_dtype(series):
        present = series.dropna()
        if not present.empty:
            stats.update(min=float(present.min()), max=float(present.max()), sum=float(present.sum()))
    else:
        stats["unique_count"] = int(series.nunique())
    return stats


def definition_violations(df: pd.DataFrame, definitions: list[FeatureDefinition]) -> list[str]:
    """Describe every way df departs from its column definitions."""
    problems = []
    for defn in definitions:
        if defn.name not in df.columns:
            continue
        values = df[defn.name]
        if not defn.nullable and values.isna().any():
            problems.append(f"Feature '{defn.name}' has nulls but is non-nullable")
        if not pd.api.types.is_numeric_dtype(values):
            continue
        if defn.min_value is not None and (values < defn.min_value).any():
            problems.append(f"Feature '{defn.name}' has values below {defn.min_value}")
        if defn.max_value is not None and (values > defn.max_value).any():
            problems.append(f"Feature '{defn.name}' has values above {defn.max_value}")
    return problems


class BaseFeatureBuilder(ABC):
    """
    Abstract base class for summary-table builders.

    Subclasses implement build_features, get_dataset_name,
    get_feature_definitions and get_entity_key.
    """

    def __init__(self, config: Settings | None = None):
        self.config = config or get_config()

    @abstractmethod
    def build_features(self, df: pd.DataFrame) -> pd.DataFrame:
        """Derive the output table from the cleaned table."""

    @abstractmethod
    def get_dataset_name(self) -> str:
        """Return the dataset name."""

    @abstractmethod
    def get_feature_definitions(self) -> list[FeatureDefinition]:
        """Return the definitions of every output column."""

    @abstractmethod
    def get_entity_key(self) -> str | list[str]:
        """Return the column(s) identifying one output row."""

    def run(self, df: pd.DataFrame, execution_date: str) -> FeatureBuildResult:
        """
        Build, profile and check the output table.

        Exceptions from build_features are logged and returned as a failed
        result; the input table is never modified.

        Args:
            df: Cleaned DataFrame
            execution_date: Execution date in YYYY-MM-DD format
        """
        started = time.time()
        dataset_name = self.get_dataset_name()

        logger.info(
            f"Starting feature building for {dataset_name}",
            extra={"dataset": dataset_name, "execution_date": execution_date, "rows_input": len(df)},
        )

        try:
            features_df = self.build_features(df)
            problems = definition_violations(features_df, self.get_feature_definitions())
            for problem in problems:
                logger.warning(problem, extra={"dataset": dataset_name})
        except Exception as e:
            logger.error(
                f"Feature building failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )
            return FeatureBuildResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=len(df),
                rows_output=0,
                features_computed=0,
                duration_seconds=time.time() - started,
                success=False,
                error_message=str(e),
            )

        result = FeatureBuildResult(
            dataset=dataset_name,
            execution_date=execution_date,
            rows_input=len(df),
            rows_output=len(features_df),
            features_computed=len(features_df.columns),
            duration_seconds=time.time() - started,
            feature_stats={col: column_stats(features_df[col]) for col in features_df.columns},
            warnings=problems,
        )
        self._data = features_df

        logger.info(
            f"Feature building complete for {dataset_name}: "
            f"{result.rows_output} rows, {result.features_computed} features",
            extra=result.to_dict(),
        )
        return result

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently built table."""
        return getattr(self, "_data", None)
