"""
Shooting Pulse - Shooting Incident Dataset

Components:
    - ShootingIngester: Downloads the historic shooting CSV
    - ShootingPreprocessor: Cleans and recodes the raw table
    - ShootingFeatureBuilder: Builds yearly, hourly and borough counts

Data Source:
    NYPD Shooting Incident Data (Historic)
    https://data.cityofnewyork.us/Public-Safety/NYPD-Shooting-Incident-Data-Historic-/833y-fsy8

Usage:
    from shooting_pulse.datasets.shootings import (
        ShootingFeatureBuilder,
        ShootingIngester,
        ShootingPreprocessor,
    )

    ingester = ShootingIngester()
    result = ingester.run(execution_date="2024-01-15")
    raw_df = ingester.get_data()

    preprocessor = ShootingPreprocessor()
    result = preprocessor.run(raw_df, execution_date="2024-01-15")
    processed_df = preprocessor.get_data()

    builder = ShootingFeatureBuilder()
    result = builder.run(processed_df, execution_date="2024-01-15")
    tables = builder.get_aggregates()
"""

from shooting_pulse.datasets.shootings.features import (
    ShootingFeatureBuilder,
    build_shooting_features,
    count_by_borough,
    count_by_field,
    count_by_hour,
    count_by_year,
    murders_by_year,
)
from shooting_pulse.datasets.shootings.ingest import (
    ShootingIngester,
    ingest_shooting_data,
    load_shootings,
)
from shooting_pulse.datasets.shootings.preprocess import (
    CleaningError,
    ShootingPreprocessor,
    category_domains,
    clean_shootings,
    preprocess_shooting_data,
)

__all__ = [
    "ShootingIngester",
    "ShootingPreprocessor",
    "ShootingFeatureBuilder",
    "CleaningError",
    "ingest_shooting_data",
    "load_shootings",
    "preprocess_shooting_data",
    "clean_shootings",
    "category_domains",
    "build_shooting_features",
    "count_by_year",
    "count_by_hour",
    "count_by_borough",
    "count_by_field",
    "murders_by_year",
]
