"""
Shooting Pulse - Base Ingester

Abstract base class for dataset ingesters. An ingester pulls one full
snapshot of its source (URL or local file) into a DataFrame, checks that
the columns downstream stages rely on are present and reports the outcome
as an IngestionResult instead of raising.

Usage:
    class ShootingIngester(BaseIngester):
        def fetch_data(self, source: str | None = None) -> pd.DataFrame:
            ...
        def get_date_field(self) -> str:
            return "OCCUR_DATE"
        def get_primary_key(self) -> str:
            return "INCIDENT_KEY"
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
class IngestionResult:
    """Outcome of one fetch."""

    dataset: str
    execution_date: str
    rows_fetched: int
    source: str | None = None
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return asdict(self)


class BaseIngester(ABC):
    """
    Abstract base class for dataset ingestion.

    Subclasses implement fetch_data, get_date_field, get_primary_key and
    get_dataset_name; get_required_columns and get_source are optional.
    """

    def __init__(self, config: Settings | None = None):
        self.config = config or get_config()

    @abstractmethod
    def fetch_data(self, source: str | None = None) -> pd.DataFrame:
        """
        Read the whole source into a DataFrame.

        Args:
            source: URL or local path; the configured source when None
        """

    @abstractmethod
    def get_date_field(self) -> str:
        """Column holding the event date."""

    @abstractmethod
    def get_primary_key(self) -> str:
        """Column identifying each record."""

    @abstractmethod
    def get_dataset_name(self) -> str:
        """Dataset name (e.g., "shootings")."""

    def get_required_columns(self) -> list[str]:
        """Raw columns downstream stages depend on."""
        return []

    def get_source(self) -> str | None:
        """Default source location for this dataset."""
        return None

    def run(self, execution_date: str, source: str | None = None) -> IngestionResult:
        """
        Fetch and validate one snapshot.

        Network, parse and schema failures are logged with their traceback
        and returned as a result with success=False.

        Args:
            execution_date: Execution date in YYYY-MM-DD format
            source: Optional override for the source location
        """
        started = time.time()
        dataset_name = self.get_dataset_name()
        source = source or self.get_source()

        logger.info(
            f"Starting ingestion for {dataset_name}",
            extra={"dataset": dataset_name, "execution_date": execution_date, "source": source},
        )

        try:
            df = self.fetch_data(source=source)
            errors = self.schema_errors(df)
            if errors:
                raise ValueError(f"Schema validation failed: {'; '.join(errors)}")
        except Exception as e:
            logger.error(
                f"Ingestion failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )
            return IngestionResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_fetched=0,
                source=source,
                duration_seconds=time.time() - started,
                success=False,
                error_message=str(e),
            )

        result = IngestionResult(
            dataset=dataset_name,
            execution_date=execution_date,
            rows_fetched=len(df),
            source=source,
            duration_seconds=time.time() - started,
            metadata={
                "primary_key": self.get_primary_key(),
                "date_field": self.get_date_field(),
                "columns": list(df.columns),
            },
        )
        self._data = df

        logger.info(
            f"Ingestion complete for {dataset_name}: {len(df)} rows",
            extra=result.to_dict(),
        )
        return result

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently fetched data."""
        return getattr(self, "_data", None)

    def schema_errors(self, df: pd.DataFrame) -> list[str]:
        """List every structural problem with a fetched table."""
        errors = []
        key_columns = [
            ("Primary key column", self.get_primary_key()),
            ("Date field", self.get_date_field()),
        ]
        for label, column in key_columns:
            if column not in df.columns:
                errors.append(f"{label} '{column}' not found")

        named = {column for _, column in key_columns}
        missing = [c for c in self.get_required_columns() if c not in df.columns and c not in named]
        if missing:
            errors.append(f"Missing required columns: {missing}")

        min_rows = self.config.validation.quality.min_row_count
        if df.empty:
            errors.append("DataFrame is empty")
        elif len(df) < min_rows:
            errors.append(f"Row count {len(df)} below minimum {min_rows}")
        return errors

    def validate_schema(self, df: pd.DataFrame) -> tuple[bool, list[str]]:
        """Return (is_valid, errors) for a fetched table."""
        errors = self.schema_errors(df)
        return not errors, errors
