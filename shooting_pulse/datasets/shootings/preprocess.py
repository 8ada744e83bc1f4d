"""
Shooting Pulse - Shooting Incident Preprocessor

Cleans the raw NYPD shooting incident table into the analysis table.

Transformations (in order):
    1. Column pruning (free-text location descriptors)
    2. Type coercion (date, time, categoricals, murder flag, coordinates)
    3. Sort by occurrence date
    4. Completeness filter on required fields
    5. Sentinel normalization of demographic "unknown" spellings
    6. Invalid age-group filter and category level cleanup

Each step is a pure function that returns a new DataFrame. The steps depend
on the invariants of the ones before them and must run in this order.

Usage:
    from shooting_pulse.datasets.shootings.preprocess import ShootingPreprocessor

    preprocessor = ShootingPreprocessor()
    result = preprocessor.run(raw_df, execution_date="2024-01-15")
    processed_df = preprocessor.get_data()
"""

from __future__ import annotations

import logging
from typing import Any, Literal

import pandas as pd

from shooting_pulse.datasets.base import BasePreprocessor, convert_dtypes
from shooting_pulse.shared.config import Settings, get_dataset_config

logger = logging.getLogger(__name__)

CLEANING_CONFIG = get_dataset_config("shootings").get("cleaning", {})
DATE_FORMAT = CLEANING_CONFIG.get("date_format", "%m/%d/%Y")
TIME_FORMAT = CLEANING_CONFIG.get("time_format", "%H:%M:%S")
ON_PARSE_ERROR = CLEANING_CONFIG.get("on_parse_error", "abort")

ParseErrorPolicy = Literal["abort", "skip"]

PRUNED_COLUMNS = ["LOC_OF_OCCUR_DESC", "LOC_CLASSFCTN_DESC", "LOCATION_DESC", "Lon_Lat"]

DEMOGRAPHIC_COLUMNS = [
    "PERP_AGE_GROUP",
    "PERP_SEX",
    "PERP_RACE",
    "VIC_AGE_GROUP",
    "VIC_SEX",
    "VIC_RACE",
]
AGE_GROUP_COLUMNS = ["PERP_AGE_GROUP", "VIC_AGE_GROUP"]
CATEGORICAL_COLUMNS = ["BORO", "PRECINCT", "JURISDICTION_CODE", *DEMOGRAPHIC_COLUMNS]
COORDINATE_COLUMNS = ["X_COORD_CD", "Y_COORD_CD", "Latitude", "Longitude"]

# Victim demographics are intentionally not required
COMPLETENESS_COLUMNS = ["JURISDICTION_CODE", "PERP_SEX", "PERP_AGE_GROUP", "Latitude", "Longitude"]

UNKNOWN_LABEL = "Unknown"
SENTINEL_VALUES = ("UNKNOWN", "(null)", "U")

VALID_AGE_GROUPS = ("<18", "18-24", "25-44", "45-64", "65+", UNKNOWN_LABEL)
INVALID_AGE_GROUPS = ("1020", "1022", "1028", "224", "940")

MURDER_FLAG_TRUE_VALUES = {"Y", "1", "TRUE", "YES"}


class CleaningError(ValueError):
    """Raised when the raw table cannot be coerced into the cleaned schema."""


# =============================================================================
# Cleaning Steps
# =============================================================================


def prune_columns(df: pd.DataFrame, columns: list[str] | None = None) -> pd.DataFrame:
    """Drop location descriptor columns that are never used downstream."""
    return df.drop(columns=columns or PRUNED_COLUMNS, errors="ignore")


def _parse_murder_flag(value: Any) -> bool | None:
    """Portal spelling of the flag as a bool; a missing flag stays missing."""
    if pd.isna(value):
        return None
    return str(value).strip().upper() in MURDER_FLAG_TRUE_VALUES


def coerce_types(
    df: pd.DataFrame,
    on_parse_error: ParseErrorPolicy = "abort",
    date_format: str = DATE_FORMAT,
    time_format: str = TIME_FORMAT,
) -> pd.DataFrame:
    """
    Parse dates and times and cast every column to its analysis type.

    OCCUR_DATE becomes a midnight datetime64 and OCCUR_TIME a column of
    ``datetime.time`` values. STATISTICAL_MURDER_FLAG becomes a nullable
    ``boolean`` column; rows without a flag keep a null there.

    Args:
        df: Pruned raw DataFrame
        on_parse_error: "abort" raises on any malformed date/time,
            "skip" drops the offending rows
        date_format: strptime format of OCCUR_DATE
        time_format: strptime format of OCCUR_TIME

    Raises:
        CleaningError: Malformed date/time under the "abort" policy
    """
    if on_parse_error not in ("abort", "skip"):
        raise ValueError(f"Unknown parse error policy: {on_parse_error}")

    dates = pd.to_datetime(df["OCCUR_DATE"], format=date_format, errors="coerce")
    times = pd.to_datetime(df["OCCUR_TIME"].astype(str), format=time_format, errors="coerce")
    bad = dates.isna() | times.isna()

    if bad.any():
        if on_parse_error == "abort":
            sample = df.loc[bad, ["OCCUR_DATE", "OCCUR_TIME"]].head(3).to_dict("records")
            raise CleaningError(
                f"{int(bad.sum())} rows have malformed OCCUR_DATE/OCCUR_TIME values: {sample}"
            )
        logger.warning(f"Skipping {int(bad.sum())} rows with malformed date/time values")

    df = df.loc[~bad].copy()
    df["OCCUR_DATE"] = dates[~bad].dt.normalize()
    df["OCCUR_TIME"] = times[~bad].dt.time

    if "STATISTICAL_MURDER_FLAG" in df.columns:
        df["STATISTICAL_MURDER_FLAG"] = (
            df["STATISTICAL_MURDER_FLAG"].map(_parse_murder_flag).astype("boolean")
        )

    numeric = {"INCIDENT_KEY": "string", "PRECINCT": "int", "JURISDICTION_CODE": "int"}
    numeric.update({c: "float" for c in COORDINATE_COLUMNS})
    df = convert_dtypes(df, numeric)

    return convert_dtypes(df, {c: "category" for c in CATEGORICAL_COLUMNS})


def sort_by_date(df: pd.DataFrame) -> pd.DataFrame:
    """Stable ascending sort by occurrence date with a fresh index."""
    return df.sort_values("OCCUR_DATE", kind="mergesort").reset_index(drop=True)


def drop_incomplete(df: pd.DataFrame, required: list[str] | None = None) -> pd.DataFrame:
    """Drop rows missing any field required by aggregation or modeling; reindexes 0..n-1."""
    required = [c for c in (required or COMPLETENESS_COLUMNS) if c in df.columns]
    missing = df[required].isna().any(axis=1)
    return df.loc[~missing].reset_index(drop=True)


def normalize_sentinels(df: pd.DataFrame) -> pd.DataFrame:
    """
    Map every "unknown" spelling in the demographic fields to UNKNOWN_LABEL.

    Only exact sentinel values change; nulls stay null. Applying this twice
    gives the same table as applying it once.
    """
    df = df.copy()
    for col in DEMOGRAPHIC_COLUMNS:
        if col not in df.columns:
            continue
        is_categorical = isinstance(df[col].dtype, pd.CategoricalDtype)
        values = df[col].astype("object")
        values = values.where(~values.isin(SENTINEL_VALUES), UNKNOWN_LABEL)
        df[col] = values.astype("category") if is_categorical else values
    return df


def drop_unused_levels(df: pd.DataFrame) -> pd.DataFrame:
    """Restrict every categorical column's domain to its observed values."""
    df = df.copy()
    for col in df.columns:
        if isinstance(df[col].dtype, pd.CategoricalDtype):
            df[col] = df[col].cat.remove_unused_categories()
    return df


def drop_invalid_age_groups(df: pd.DataFrame) -> pd.DataFrame:
    """
    Remove rows whose perpetrator or victim age group is a deny-listed code.

    Surviving rows keep their order under a fresh 0..n-1 index.
    """
    invalid = pd.Series(False, index=df.index)
    for col in AGE_GROUP_COLUMNS:
        if col in df.columns:
            invalid |= df[col].astype(str).isin(INVALID_AGE_GROUPS)
    return drop_unused_levels(df.loc[~invalid].reset_index(drop=True))


def category_domains(df: pd.DataFrame) -> dict[str, list[Any]]:
    """Return the enumerated level list of every categorical column."""
    return {
        col: list(df[col].cat.categories)
        for col in df.columns
        if isinstance(df[col].dtype, pd.CategoricalDtype)
    }


def clean_shootings(
    df: pd.DataFrame,
    on_parse_error: ParseErrorPolicy = "abort",
) -> pd.DataFrame:
    """Run every cleaning step in order. Raises CleaningError on malformed dates."""
    df = prune_columns(df)
    df = coerce_types(df, on_parse_error=on_parse_error)
    df = sort_by_date(df)
    df = drop_incomplete(df)
    df = normalize_sentinels(df)
    return drop_invalid_age_groups(df)


# =============================================================================
# Preprocessor
# =============================================================================


class ShootingPreprocessor(BasePreprocessor):
    """
    Preprocessor for NYPD shooting incident data.

    Runs the cleaning steps in order and records what each one dropped.
    """

    REQUIRED_COLUMNS = [
        "INCIDENT_KEY",
        "OCCUR_DATE",
        "OCCUR_TIME",
        "BORO",
        "JURISDICTION_CODE",
        "STATISTICAL_MURDER_FLAG",
        *DEMOGRAPHIC_COLUMNS,
        "Latitude",
        "Longitude",
    ]

    def __init__(
        self,
        config: Settings | None = None,
        on_parse_error: ParseErrorPolicy | None = None,
    ):
        """
        Initialize shooting preprocessor.

        Args:
            config: Configuration object (uses default if not provided)
            on_parse_error: Overrides the policy from shootings.yaml
        """
        super().__init__(config)
        self.on_parse_error = on_parse_error or ON_PARSE_ERROR

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shootings"

    def get_required_columns(self) -> list[str]:
        """Return required output columns."""
        return self.REQUIRED_COLUMNS

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Apply the cleaning steps.

        Args:
            df: Raw DataFrame as read from the CSV

        Returns:
            Cleaned DataFrame
        """
        df = prune_columns(df)
        self.log_transformation("prune_columns")

        before = len(df)
        df = coerce_types(df, on_parse_error=self.on_parse_error)
        self.log_dropped_rows("malformed_datetime", before - len(df))
        self.log_transformation("coerce_types")

        df = sort_by_date(df)
        self.log_transformation("sort_by_date")

        before = len(df)
        df = drop_incomplete(df)
        self.log_dropped_rows("missing_required_fields", before - len(df))
        self.log_transformation("drop_incomplete")

        df = normalize_sentinels(df)
        self.log_transformation("normalize_sentinels")

        before = len(df)
        df = drop_invalid_age_groups(df)
        self.log_dropped_rows("invalid_age_group", before - len(df))
        self.log_transformation("drop_invalid_age_groups")

        self._report_unexpected_age_groups(df)
        self._report_out_of_bounds(df)

        return df

    def _report_unexpected_age_groups(self, df: pd.DataFrame) -> None:
        """Warn about age-group labels outside the curated set."""
        for col in AGE_GROUP_COLUMNS:
            if col not in df.columns:
                continue
            observed = set(df[col].dropna().astype(str))
            unexpected = sorted(observed - set(VALID_AGE_GROUPS))
            if unexpected:
                logger.warning(
                    f"Column {col} has age-group labels outside the curated set: {unexpected}",
                    extra={"column": col, "labels": unexpected},
                )

    def _report_out_of_bounds(self, df: pd.DataFrame) -> None:
        """Warn about coordinates outside the configured city bounds."""
        bounds = self.config.validation.geo_bounds
        out_of_bounds = (
            (df["Latitude"] < bounds.min_lat)
            | (df["Latitude"] > bounds.max_lat)
            | (df["Longitude"] < bounds.min_lon)
            | (df["Longitude"] > bounds.max_lon)
        )
        count = int(out_of_bounds.sum())
        if count > 0:
            logger.warning(f"Found {count} records with coordinates outside New York City")


# =============================================================================
# Convenience Functions
# =============================================================================


def preprocess_shooting_data(
    df: pd.DataFrame,
    execution_date: str,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for preprocessing shooting data.

    Returns the result dictionary.
    """
    preprocessor = ShootingPreprocessor(config)
    result = preprocessor.run(df, execution_date)
    return result.to_dict()
