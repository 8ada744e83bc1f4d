"""
Shooting Pulse - Pytest Configuration and Fixtures

Shared fixtures for all tests:
- Configuration fixtures
- Raw shooting table fixtures
- Mock fixtures for the NYC Open Data download
"""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import pytest

# Set test environment
os.environ["SP_ENVIRONMENT"] = "dev"
os.environ.setdefault("MPLBACKEND", "Agg")

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def configs_dir(project_root: Path) -> Path:
    """Get the configs directory."""
    return project_root / "configs"


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_config() -> Any:
    """Get test configuration."""
    from shooting_pulse.shared.config import get_config, reload_config

    # Ensure fresh config for tests
    reload_config("dev")
    return get_config("dev")


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def sample_raw_shootings() -> pd.DataFrame:
    """
    Twelve raw rows in the NYC Open Data CSV layout.

    Rows 1004, 1006 and 1011 miss a required field; 1007 and 1008 carry
    deny-listed age codes. The other seven survive cleaning.
    """
    return pd.DataFrame(
        {
            "INCIDENT_KEY": [
                "1001", "1002", "1003", "1004", "1005", "1006",
                "1007", "1008", "1009", "1010", "1011", "1012",
            ],
            "OCCUR_DATE": [
                "07/15/2007", "01/03/2006", "11/20/2007", "05/05/2006",
                "08/09/2008", "02/14/2008", "06/30/2009", "09/12/2009",
                "03/03/2010", "12/31/2010", "04/22/2009", "10/10/2008",
            ],
            "OCCUR_TIME": [
                "14:30:00", "03:10:00", "03:45:00", "22:00:00",
                "01:15:00", "23:50:00", "16:20:00", "20:05:00",
                "02:40:00", "23:59:59", "18:00:00", "11:11:11",
            ],
            "BORO": [
                "BRONX", "BROOKLYN", "QUEENS", "BROOKLYN",
                "MANHATTAN", "BRONX", "STATEN ISLAND", "BROOKLYN",
                "BRONX", "QUEENS", "BROOKLYN", "MANHATTAN",
            ],
            "LOC_OF_OCCUR_DESC": ["OUTSIDE", None, "INSIDE", None] * 3,
            "PRECINCT": [40, 75, 113, 73, 25, 44, 120, 67, 46, 103, 79, 32],
            "JURISDICTION_CODE": [0.0, 0.0, 2.0, 0.0, 1.0, np.nan, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
            "LOC_CLASSFCTN_DESC": ["STREET", None, "HOUSING", None] * 3,
            "LOCATION_DESC": ["MULTI DWELL - PUBLIC HOUS", None, "(null)", None] * 3,
            "STATISTICAL_MURDER_FLAG": [
                False, True, False, False, True, False,
                False, False, True, False, False, False,
            ],
            "PERP_AGE_GROUP": [
                "25-44", "UNKNOWN", "18-24", np.nan, "(null)", "25-44",
                "940", "18-24", "<18", "45-64", "25-44", "UNKNOWN",
            ],
            "PERP_SEX": ["M", "U", "M", np.nan, "(null)", "M", "M", "M", "M", "F", "M", "M"],
            "PERP_RACE": [
                "BLACK", "UNKNOWN", "WHITE HISPANIC", np.nan, "(null)", "BLACK",
                "BLACK", "BLACK", "BLACK HISPANIC", "ASIAN / PACIFIC ISLANDER", "BLACK", "BLACK",
            ],
            "VIC_AGE_GROUP": [
                "18-24", "25-44", "<18", "25-44", "45-64", "25-44",
                "18-24", "1022", "UNKNOWN", "65+", "25-44", "18-24",
            ],
            "VIC_SEX": ["M", "M", "F", "M", "M", "M", "M", "M", "U", "F", "M", np.nan],
            "VIC_RACE": [
                "BLACK", "BLACK", "WHITE HISPANIC", "BLACK", "BLACK", "BLACK",
                "BLACK", "BLACK", "UNKNOWN", "WHITE", "BLACK", "BLACK",
            ],
            "X_COORD_CD": [
                1006343.0, 1012103.0, 1040386.0, 1003215.0, 998000.0, 1008000.0,
                962000.0, 998500.0, 1010000.0, 1030000.0, 1005000.0, 997000.0,
            ],
            "Y_COORD_CD": [
                234270.0, 180932.0, 184546.0, 174000.0, 232000.0, 240000.0,
                160000.0, 176000.0, 250000.0, 200000.0, 182000.0, 234000.0,
            ],
            "Latitude": [
                40.81, 40.67, 40.68, 40.65, 40.80, 40.83,
                40.63, 40.65, 40.85, 40.70, np.nan, 40.81,
            ],
            "Longitude": [
                -73.92, -73.88, -73.78, -73.90, -73.94, -73.91,
                -74.08, -73.94, -73.90, -73.80, np.nan, -73.94,
            ],
            "Lon_Lat": [f"POINT (-73.9 40.{i})" for i in range(12)],
        }
    )


@pytest.fixture
def make_raw_shootings() -> Callable[..., pd.DataFrame]:
    """Factory for larger, fully valid raw tables with both murder-flag classes."""

    def _make(n: int = 80, seed: int = 7) -> pd.DataFrame:
        rng = np.random.RandomState(seed)
        flags = rng.rand(n) < 0.3
        flags[:5] = True
        flags[5:10] = False
        return pd.DataFrame(
            {
                "INCIDENT_KEY": [str(200000 + i) for i in range(n)],
                "OCCUR_DATE": [
                    f"{m:02d}/{d:02d}/{y}"
                    for m, d, y in zip(
                        rng.randint(1, 13, n), rng.randint(1, 29, n), rng.randint(2006, 2023, n)
                    )
                ],
                "OCCUR_TIME": [
                    f"{h:02d}:{mi:02d}:00" for h, mi in zip(rng.randint(0, 24, n), rng.randint(0, 60, n))
                ],
                "BORO": rng.choice(["BRONX", "BROOKLYN", "MANHATTAN", "QUEENS", "STATEN ISLAND"], n),
                "LOC_OF_OCCUR_DESC": rng.choice(["INSIDE", "OUTSIDE"], n),
                "PRECINCT": rng.choice([40, 44, 67, 75, 103, 113, 120], n),
                "JURISDICTION_CODE": rng.choice([0.0, 1.0, 2.0], n),
                "LOC_CLASSFCTN_DESC": rng.choice(["STREET", "HOUSING"], n),
                "LOCATION_DESC": rng.choice(["GROCERY/BODEGA", "(null)"], n),
                "STATISTICAL_MURDER_FLAG": flags,
                "PERP_AGE_GROUP": rng.choice(["<18", "18-24", "25-44", "45-64", "UNKNOWN"], n),
                "PERP_SEX": rng.choice(["M", "F", "U"], n),
                "PERP_RACE": rng.choice(["BLACK", "WHITE HISPANIC", "BLACK HISPANIC", "UNKNOWN"], n),
                "VIC_AGE_GROUP": rng.choice(["<18", "18-24", "25-44", "45-64", "65+"], n),
                "VIC_SEX": rng.choice(["M", "F"], n),
                "VIC_RACE": rng.choice(["BLACK", "WHITE HISPANIC", "WHITE", "ASIAN / PACIFIC ISLANDER"], n),
                "X_COORD_CD": rng.uniform(960000, 1040000, n).round(),
                "Y_COORD_CD": rng.uniform(160000, 250000, n).round(),
                "Latitude": rng.uniform(40.55, 40.90, n).round(6),
                "Longitude": rng.uniform(-74.10, -73.75, n).round(6),
                "Lon_Lat": ["POINT (-73.9 40.7)"] * n,
            }
        )

    return _make


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_nyc_open_data(mocker: Any, sample_raw_shootings: pd.DataFrame) -> Any:
    """Mock the NYC Open Data CSV download."""
    mock_response = mocker.MagicMock()
    mock_response.status_code = 200
    mock_response.text = sample_raw_shootings.to_csv(index=False)
    mock_response.raise_for_status = mocker.MagicMock()
    mock_get = mocker.patch(
        "shooting_pulse.datasets.shootings.ingest.requests.get", return_value=mock_response
    )
    return mock_get


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def cleanup_env() -> Generator[None, None, None]:
    """Clean up environment variables after each test."""
    original_env = os.environ.copy()
    yield
    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)
