"""
Shooting Pulse - Base Classes for Datasets

Abstract base classes that dataset implementations inherit from.
These provide a consistent interface for:
- Data ingestion (BaseIngester)
- Data preprocessing (BasePreprocessor)
- Feature building (BaseFeatureBuilder)

Usage:
    from shooting_pulse.datasets.base import BaseIngester, BasePreprocessor, BaseFeatureBuilder
"""

from shooting_pulse.datasets.base.feature_builder import (
    BaseFeatureBuilder,
    FeatureBuildResult,
    FeatureDefinition,
)
from shooting_pulse.datasets.base.ingester import BaseIngester, IngestionResult
from shooting_pulse.datasets.base.preprocessor import (
    BasePreprocessor,
    PreprocessingResult,
    convert_dtypes,
)

__all__ = [
    "BaseIngester",
    "IngestionResult",
    "BasePreprocessor",
    "PreprocessingResult",
    "convert_dtypes",
    "BaseFeatureBuilder",
    "FeatureBuildResult",
    "FeatureDefinition",
]
