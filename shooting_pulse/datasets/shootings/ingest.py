"""
Shooting Pulse - Shooting Incident Ingester

Fetches the NYPD Shooting Incident Data (Historic) CSV from NYC Open Data.

Data Source:
    NYPD Shooting Incident Data (Historic)
    https://data.cityofnewyork.us/Public-Safety/NYPD-Shooting-Incident-Data-Historic-/833y-fsy8

Configuration:
    Portal base URL and timeout from settings.apis.nyc_open_data, CSV path
    from configs/datasets/shootings.yaml

Usage:
    from shooting_pulse.datasets.shootings.ingest import ShootingIngester

    ingester = ShootingIngester()
    result = ingester.run(execution_date="2024-01-15")
    df = ingester.get_data()
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import Any

import pandas as pd
import requests

from shooting_pulse.datasets.base import BaseIngester
from shooting_pulse.shared.config import Settings, get_dataset_config

logger = logging.getLogger(__name__)

# =============================================================================
# Source Configuration (loaded from shootings.yaml)
# =============================================================================
DATASET_CONFIG = get_dataset_config("shootings")

SOURCE_CONFIG = DATASET_CONFIG.get("source", {})
SOURCE_PATH = SOURCE_CONFIG.get("path", "/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD")

INGESTION_CONFIG = DATASET_CONFIG.get("ingestion", {})
PRIMARY_KEY = INGESTION_CONFIG.get("primary_key", "INCIDENT_KEY")
DATE_FIELD = INGESTION_CONFIG.get("date_field", "OCCUR_DATE")

# Raw columns the cleaning and modeling stages read
REQUIRED_RAW_COLUMNS = [
    "INCIDENT_KEY",
    "OCCUR_DATE",
    "OCCUR_TIME",
    "BORO",
    "PRECINCT",
    "JURISDICTION_CODE",
    "STATISTICAL_MURDER_FLAG",
    "PERP_AGE_GROUP",
    "PERP_SEX",
    "PERP_RACE",
    "VIC_AGE_GROUP",
    "VIC_SEX",
    "VIC_RACE",
    "Latitude",
    "Longitude",
]


class ShootingIngester(BaseIngester):
    """
    Ingester for NYPD shooting incident data.

    Downloads the full historic CSV in one request; there is no paging or
    incremental window. Local file paths are accepted in place of a URL.
    """

    def __init__(self, config: Settings | None = None):
        """Initialize shooting ingester against the NYC Open Data portal."""
        super().__init__(config)
        portal = self.config.apis.nyc_open_data
        self.source_url = portal.base_url.rstrip("/") + SOURCE_PATH
        self.timeout = portal.timeout_seconds

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shootings"

    def get_date_field(self) -> str:
        """Return the occurrence date field (from config)."""
        return DATE_FIELD

    def get_primary_key(self) -> str:
        """Return the primary key field (from config)."""
        return PRIMARY_KEY

    def get_required_columns(self) -> list[str]:
        """Return raw columns required downstream."""
        return REQUIRED_RAW_COLUMNS

    def get_source(self) -> str:
        """Return the portal CSV URL."""
        return self.source_url

    def fetch_data(self, source: str | None = None) -> pd.DataFrame:
        """
        Fetch and parse the shooting incident CSV.

        Args:
            source: URL or local path (configured URL if None)

        Returns:
            DataFrame with one row per shooting victim record

        Raises:
            requests.HTTPError: Non-2xx response from the source
            pandas.errors.ParserError: Malformed CSV content
        """
        source = source or self.source_url

        if source.startswith(("http://", "https://")):
            logger.info(f"Downloading shooting data from {source}", extra={"source": source})
            response = requests.get(source, timeout=self.timeout)
            response.raise_for_status()
            df = pd.read_csv(StringIO(response.text), dtype={PRIMARY_KEY: str})
        else:
            logger.info(f"Reading shooting data from {source}", extra={"source": source})
            df = pd.read_csv(source, dtype={PRIMARY_KEY: str})

        logger.info(
            f"Fetched {len(df)} shooting records",
            extra={"rows": len(df), "columns": list(df.columns)},
        )

        return df


# =============================================================================
# Convenience Functions
# =============================================================================


def ingest_shooting_data(
    execution_date: str,
    source: str | None = None,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for ingesting shooting data.

    Returns the result dictionary.
    """
    ingester = ShootingIngester(config)
    result = ingester.run(execution_date, source=source)
    return result.to_dict()


def load_shootings(source: str | None = None, config: Settings | None = None) -> pd.DataFrame:
    """
    Fetch the shooting CSV, raising if the fetch, parse or schema check fails.

    Raises:
        RuntimeError: Ingestion did not succeed
    """
    ingester = ShootingIngester(config)
    result = ingester.run(execution_date=pd.Timestamp.now().strftime("%Y-%m-%d"), source=source)

    if not result.success:
        raise RuntimeError(f"Ingestion failed: {result.error_message}")

    return ingester.get_data()
