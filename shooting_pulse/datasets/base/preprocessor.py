"""
Shooting Pulse - Base Preprocessor

Abstract base class for dataset preprocessors. A preprocessor turns the raw
table into the analysis table, recording which steps ran and how many rows
each filter removed, then checks the output carries the required columns.

Transformations never modify the caller's DataFrame; every step returns a
new frame.

Usage:
    class ShootingPreprocessor(BasePreprocessor):
        def transform(self, df: pd.DataFrame) -> pd.DataFrame:
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
class PreprocessingResult:
    """Outcome of one preprocessing run."""

    dataset: str
    execution_date: str
    rows_input: int
    rows_output: int
    rows_dropped: int
    columns_input: int
    columns_output: int
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    transformations_applied: list[str] = field(default_factory=list)
    drop_reasons: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return asdict(self)


def convert_dtypes(df: pd.DataFrame, dtype_mappings: dict[str, str]) -> pd.DataFrame:
    """
    Return a copy of df with the mapped columns converted.

    Supported targets: "float", "int", "bool", "string", "category" or any
    dtype string pandas accepts. Columns missing from df are skipped.
    Numeric conversions coerce unparseable values to NaN.
    """
    df = df.copy()
    for col, dtype in dtype_mappings.items():
        if col not in df.columns:
            continue
        if dtype == "float":
            df[col] = pd.to_numeric(df[col], errors="coerce")
        elif dtype == "int":
            df[col] = pd.to_numeric(df[col], errors="coerce").astype("Int64")
        elif dtype == "bool":
            df[col] = df[col].astype(bool)
        else:
            df[col] = df[col].astype(dtype)
    return df


class BasePreprocessor(ABC):
    """
    Abstract base class for dataset preprocessing.

    Subclasses implement transform, get_dataset_name and
    get_required_columns, calling log_transformation and log_dropped_rows
    from transform as each step runs.
    """

    def __init__(self, config: Settings | None = None):
        self.config = config or get_config()
        self._transformations: list[str] = []
        self._drop_reasons: dict[str, int] = {}

    @abstractmethod
    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Turn the raw table into the analysis table."""

    @abstractmethod
    def get_dataset_name(self) -> str:
        """Return the dataset name."""

    @abstractmethod
    def get_required_columns(self) -> list[str]:
        """Columns that must be present after transform."""

    def run(self, df: pd.DataFrame, execution_date: str) -> PreprocessingResult:
        """
        Transform df and check the output columns.

        Failures are logged with their traceback and returned as a result
        with success=False; steps and drops recorded before the failure are
        kept on the result.

        Args:
            df: Raw DataFrame to preprocess
            execution_date: Execution date in YYYY-MM-DD format
        """
        started = time.time()
        dataset_name = self.get_dataset_name()
        rows_input, columns_input = df.shape
        self._transformations = []
        self._drop_reasons = {}

        logger.info(
            f"Starting preprocessing for {dataset_name}",
            extra={"dataset": dataset_name, "execution_date": execution_date, "rows_input": rows_input},
        )

        try:
            processed = self.transform(df)
            missing = sorted(set(self.get_required_columns()) - set(processed.columns))
            if missing:
                raise ValueError(f"Missing required columns: {missing}")
        except Exception as e:
            logger.error(
                f"Preprocessing failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )
            return PreprocessingResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=0,
                rows_dropped=rows_input,
                columns_input=columns_input,
                columns_output=0,
                duration_seconds=time.time() - started,
                success=False,
                error_message=str(e),
                transformations_applied=self._transformations,
                drop_reasons=self._drop_reasons,
            )

        result = PreprocessingResult(
            dataset=dataset_name,
            execution_date=execution_date,
            rows_input=rows_input,
            rows_output=len(processed),
            rows_dropped=rows_input - len(processed),
            columns_input=columns_input,
            columns_output=len(processed.columns),
            duration_seconds=time.time() - started,
            transformations_applied=self._transformations,
            drop_reasons=self._drop_reasons,
        )
        self._data = processed

        logger.info(
            f"Preprocessing complete for {dataset_name}: {rows_input} -> {result.rows_output} rows",
            extra=result.to_dict(),
        )
        return result

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently processed data."""
        return getattr(self, "_data", None)

    def log_transformation(self, name: str) -> None:
        """Record a step that ran."""
        self._transformations.append(name)

    def log_dropped_rows(self, reason: str, count: int) -> None:
        """Add to the drop count for reason; zero counts are not recorded."""
        if count > 0:
            self._drop_reasons[reason] = self._drop_reasons.get(reason, 0) + count
