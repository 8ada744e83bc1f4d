"""
Unit tests for ShootingIngester.

Tests the shooting CSV download and schema checks.
"""

from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests

from shooting_pulse.datasets.shootings.ingest import (
    REQUIRED_RAW_COLUMNS,
    ShootingIngester,
    ingest_shooting_data,
    load_shootings,
)

PORTAL_CSV_URL = "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD"


class TestShootingIngester:
    """Test cases for ShootingIngester class."""

    @pytest.fixture
    def ingester(self):
        """Create a ShootingIngester instance."""
        return ShootingIngester()

    @pytest.fixture
    def csv_text(self, sample_raw_shootings):
        """Raw table serialized the way the portal serves it."""
        return sample_raw_shootings.to_csv(index=False)

    @pytest.fixture
    def mock_successful_response(self, csv_text):
        """Reusable mock for a successful download."""
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.text = csv_text
        mock_response.raise_for_status = MagicMock()
        return mock_response

    def test_get_dataset_name(self, ingester):
        """Test dataset name is correct."""
        assert ingester.get_dataset_name() == "shootings"

    def test_get_primary_key(self, ingester):
        """Test primary key is correct."""
        assert ingester.get_primary_key() == "INCIDENT_KEY"

    def test_get_date_field(self, ingester):
        """Test date field is correct."""
        assert ingester.get_date_field() == "OCCUR_DATE"

    def test_get_source_is_portal_url(self, ingester):
        """Test default source joins the portal base URL and the dataset path."""
        assert ingester.get_source() == PORTAL_CSV_URL

    def test_portal_settings_override(self, test_config):
        """Test base URL and timeout come from settings.apis.nyc_open_data."""
        portal = test_config.apis.nyc_open_data.model_copy(
            update={"base_url": "https://mirror.example.org/", "timeout_seconds": 5}
        )
        config = test_config.model_copy(
            update={"apis": test_config.apis.model_copy(update={"nyc_open_data": portal})}
        )

        ingester = ShootingIngester(config)

        assert ingester.get_source().startswith("https://mirror.example.org/api/views/833y-fsy8/")
        assert ingester.timeout == 5

    @patch("shooting_pulse.datasets.shootings.ingest.requests.get")
    def test_fetch_data_from_url(self, mock_get, ingester, mock_successful_response):
        """Test CSV download is parsed into a DataFrame."""
        mock_get.return_value = mock_successful_response

        df = ingester.fetch_data()

        assert len(df) == 12
        assert set(REQUIRED_RAW_COLUMNS).issubset(df.columns)
        assert df["INCIDENT_KEY"].iloc[0] == "1001"
        mock_get.assert_called_once()
        assert mock_get.call_args.args[0] == PORTAL_CSV_URL
        assert mock_get.call_args.kwargs["timeout"] == 120

    def test_fetch_data_from_local_path(self, ingester, sample_raw_shootings, tmp_path):
        """Test local CSV paths are read directly."""
        path = tmp_path / "shootings.csv"
        sample_raw_shootings.to_csv(path, index=False)

        df = ingester.fetch_data(source=str(path))

        assert len(df) == 12
        assert df["INCIDENT_KEY"].tolist()[:2] == ["1001", "1002"]

    @patch("shooting_pulse.datasets.shootings.ingest.requests.get")
    def test_run_success(self, mock_get, ingester, mock_successful_response):
        """Test successful ingestion run."""
        mock_get.return_value = mock_successful_response

        result = ingester.run(execution_date="2024-01-15")

        assert result.success
        assert result.dataset == "shootings"
        assert result.rows_fetched == 12
        assert result.source == PORTAL_CSV_URL
        assert result.metadata["primary_key"] == "INCIDENT_KEY"
        assert ingester.get_data() is not None

    @patch("shooting_pulse.datasets.shootings.ingest.requests.get")
    def test_run_http_error(self, mock_get, ingester):
        """Test a non-2xx response is reported as a failed run."""
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
        mock_get.return_value = mock_response

        result = ingester.run(execution_date="2024-01-15")

        assert not result.success
        assert "404" in result.error_message
        assert ingester.get_data() is None

    @patch("shooting_pulse.datasets.shootings.ingest.requests.get")
    def test_run_network_error(self, mock_get, ingester):
        """Test connection failures are reported as a failed run."""
        mock_get.side_effect = requests.ConnectionError("Connection refused")

        result = ingester.run(execution_date="2024-01-15")

        assert not result.success
        assert "Connection refused" in result.error_message

    @patch("shooting_pulse.datasets.shootings.ingest.requests.get")
    def test_run_missing_columns(self, mock_get, ingester, sample_raw_shootings):
        """Test schema validation rejects tables without required columns."""
        mock_response = MagicMock()
        mock_response.text = sample_raw_shootings.drop(columns=["BORO", "VIC_SEX"]).to_csv(
            index=False
        )
        mock_get.return_value = mock_response

        result = ingester.run(execution_date="2024-01-15")

        assert not result.success
        assert "Schema validation failed" in result.error_message
        assert "BORO" in result.error_message

    def test_validate_schema_empty(self, ingester):
        """Test empty tables fail validation."""
        df = pd.DataFrame(columns=REQUIRED_RAW_COLUMNS)

        is_valid, errors = ingester.validate_schema(df)

        assert not is_valid
        assert "DataFrame is empty" in errors

    def test_validate_schema_min_row_count(self, test_config, sample_raw_shootings):
        """Test snapshots smaller than validation.quality.min_row_count are rejected."""
        quality = test_config.validation.quality.model_copy(update={"min_row_count": 50})
        config = test_config.model_copy(
            update={"validation": test_config.validation.model_copy(update={"quality": quality})}
        )

        is_valid, errors = ShootingIngester(config).validate_schema(sample_raw_shootings)

        assert not is_valid
        assert errors == ["Row count 12 below minimum 50"]

    def test_validate_schema_missing_primary_key(self, ingester, sample_raw_shootings):
        """Test a missing primary key is named in the errors."""
        df = sample_raw_shootings.drop(columns=["INCIDENT_KEY"])

        is_valid, errors = ingester.validate_schema(df)

        assert not is_valid
        assert "Primary key column 'INCIDENT_KEY' not found" in errors


class TestIngestConvenienceFunctions:
    """Test cases for the module-level helpers."""

    def test_ingest_shooting_data(self, mock_nyc_open_data):
        """Test convenience function returns the result dictionary."""
        result = ingest_shooting_data(execution_date="2024-01-15")

        assert isinstance(result, dict)
        assert result["success"]
        assert result["rows_fetched"] == 12
        mock_nyc_open_data.assert_called_once()

    def test_load_shootings_returns_frame(self, mock_nyc_open_data):
        """Test load_shootings returns the fetched table."""
        df = load_shootings()

        assert len(df) == 12
        assert "STATISTICAL_MURDER_FLAG" in df.columns

    def test_load_shootings_raises_on_failure(self, tmp_path):
        """Test load_shootings raises when the source cannot be read."""
        with pytest.raises(RuntimeError, match="Ingestion failed"):
            load_shootings(source=str(tmp_path / "missing.csv"))
