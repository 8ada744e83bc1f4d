"""
Shooting Pulse - Analysis Pipeline

Runs the shooting analysis once, top to bottom.

Pipeline Stages:
    1. Ingest: Download the historic shooting CSV
    2. Preprocess: Clean and recode the raw table, then check the
       classifier target and predictors before anything is written
    3. Aggregate: Yearly, hourly and borough counts
    4. Visualize: Line/bar charts and the coordinate heatmap
    5. Classify: Random forest on the murder flag

A failing stage raises RuntimeError naming the stage; nothing downstream
runs and no partial report is returned.

Usage:
    from shooting_pulse.pipeline import run_analysis

    report = run_analysis(output_dir="outputs")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd

from shooting_pulse.datasets.shootings import (
    ShootingFeatureBuilder,
    ShootingIngester,
    ShootingPreprocessor,
)
from shooting_pulse.modeling import (
    ClassificationResult,
    fit_outcome_classifier,
    format_confusion_matrix,
    format_feature_importances,
    validate_training_inputs,
)
from shooting_pulse.modeling.outcome_classifier import DEFAULT_PREDICTORS, DEFAULT_TARGET
from shooting_pulse.shared.config import Settings, get_config
from shooting_pulse.visualization import (
    build_heatmap,
    coordinate_pairs,
    plot_borough_counts,
    plot_hourly_counts,
    plot_yearly_counts,
    save_figure,
    save_map,
)

logger = logging.getLogger(__name__)


@dataclass
class AnalysisReport:
    """Everything one analysis run produced."""

    execution_date: str
    cleaned: pd.DataFrame
    aggregates: dict[str, pd.DataFrame]
    classification: ClassificationResult
    outputs: dict[str, Path] = field(default_factory=dict)
    stage_results: dict[str, dict[str, Any]] = field(default_factory=dict)


# =============================================================================
# Stages
# =============================================================================


def ingest_stage(execution_date: str, source: str | None, config: Settings) -> pd.DataFrame:
    """Fetch the raw table."""
    ingester = ShootingIngester(config)
    result = ingester.run(execution_date=execution_date, source=source)

    if not result.success:
        raise RuntimeError(f"Ingestion failed: {result.error_message}")

    return ingester.get_data()


def preprocess_stage(raw_df: pd.DataFrame, execution_date: str, config: Settings) -> pd.DataFrame:
    """Clean the raw table."""
    preprocessor = ShootingPreprocessor(config)
    result = preprocessor.run(raw_df, execution_date)

    if not result.success:
        raise RuntimeError(f"Preprocessing failed: {result.error_message}")

    logger.info(f"Rows dropped during cleaning: {result.drop_reasons}")
    return preprocessor.get_data()


def aggregate_stage(
    cleaned: pd.DataFrame, execution_date: str, config: Settings
) -> dict[str, pd.DataFrame]:
    """Build the summary tables."""
    builder = ShootingFeatureBuilder(config)
    result = builder.run(cleaned, execution_date)

    if not result.success:
        raise RuntimeError(f"Aggregation failed: {result.error_message}")

    return builder.get_aggregates()


def visualize_stage(
    cleaned: pd.DataFrame,
    aggregates: dict[str, pd.DataFrame],
    output_dir: Path,
    config: Settings,
) -> dict[str, Path]:
    """Render charts and the heatmap into output_dir."""
    rendered = {
        "yearly_counts": save_figure(
            plot_yearly_counts(aggregates.get("year"), config), output_dir / "yearly_counts.png"
        ),
        "hourly_counts": save_figure(
            plot_hourly_counts(aggregates.get("hour"), config), output_dir / "hourly_counts.png"
        ),
        "borough_counts": save_figure(
            plot_borough_counts(aggregates.get("BORO"), config), output_dir / "borough_counts.png"
        ),
        "heatmap": save_map(
            build_heatmap(coordinate_pairs(cleaned)), output_dir / "shooting_heatmap.html"
        ),
    }
    return {name: path for name, path in rendered.items() if path is not None}


def classify_stage(cleaned: pd.DataFrame, config: Settings) -> ClassificationResult:
    """Fit the murder-flag classifier and display its evaluation."""
    result = fit_outcome_classifier(cleaned, config=config)

    print("Confusion matrix (rows: actual, columns: predicted)")
    print(format_confusion_matrix(result).to_string())
    print()
    print("Feature importance")
    print(format_feature_importances(result).to_string(index=False))

    return result


# =============================================================================
# Entry Point
# =============================================================================


def run_analysis(
    config: Settings | None = None,
    source: str | None = None,
    output_dir: str | Path | None = None,
    execution_date: str | None = None,
) -> AnalysisReport:
    """
    Run every stage in order.

    Args:
        config: Configuration object (uses default if not provided)
        source: CSV URL or path (configured URL if None)
        output_dir: Where charts and the map are written
        execution_date: Run label in YYYY-MM-DD format (today if None)

    Raises:
        RuntimeError: A stage failed
    """
    config = config or get_config()
    execution_date = execution_date or date.today().isoformat()
    output_dir = Path(output_dir or config.visualization.output_dir)

    logger.info(f"Starting shooting analysis for {execution_date}")

    raw_df = ingest_stage(execution_date, source, config)
    cleaned = preprocess_stage(raw_df, execution_date, config)

    # Target/predictor problems must stop the run before anything is written
    try:
        validate_training_inputs(
            cleaned,
            DEFAULT_TARGET,
            DEFAULT_PREDICTORS,
            train_fraction=config.modeling.classifier.train_fraction,
        )
    except ValueError as e:
        raise RuntimeError(f"Classification failed: {e}") from e

    aggregates = aggregate_stage(cleaned, execution_date, config)
    outputs = visualize_stage(cleaned, aggregates, output_dir, config)

    try:
        classification = classify_stage(cleaned, config)
    except ValueError as e:
        raise RuntimeError(f"Classification failed: {e}") from e

    logger.info(
        f"Shooting analysis complete: {len(cleaned)} incidents, {len(outputs)} outputs",
        extra={"outputs": {name: str(path) for name, path in outputs.items()}},
    )

    return AnalysisReport(
        execution_date=execution_date,
        cleaned=cleaned,
        aggregates=aggregates,
        classification=classification,
        outputs=outputs,
        stage_results={"classification": classification.to_dict()},
    )
