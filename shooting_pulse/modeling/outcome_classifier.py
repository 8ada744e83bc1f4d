"""
Shooting Pulse - Murder Outcome Classifier

Random forest predicting the binary STATISTICAL_MURDER_FLAG from categorical
incident attributes.

Steps:
    1. Validate target/predictor selection (before any fitting)
    2. Stratified train/held-out split with a fixed seed
    3. Ordinal-encode predictors and fit a RandomForestClassifier
    4. Predict the held-out rows
    5. Confusion matrix and feature-importance ranking

Usage:
    from shooting_pulse.modeling import fit_outcome_classifier

    result = fit_outcome_classifier(cleaned_df)
    print(format_confusion_matrix(result))
    print(result.feature_importances)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import RandomForestClassifier
from sklearn.metrics import accuracy_score, confusion_matrix
from sklearn.model_selection import train_test_split
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OrdinalEncoder

from shooting_pulse.shared.config import ClassifierOptions, Settings, get_config, get_dataset_config

logger = logging.getLogger(__name__)

MODELING_CONFIG = get_dataset_config("shootings").get("modeling", {})
DEFAULT_TARGET = MODELING_CONFIG.get("target", "STATISTICAL_MURDER_FLAG")
DEFAULT_PREDICTORS = MODELING_CONFIG.get(
    "predictors",
    ["BORO", "PERP_AGE_GROUP", "PERP_SEX", "PERP_RACE", "VIC_AGE_GROUP", "VIC_SEX", "VIC_RACE"],
)

MISSING_LABEL = "Unknown"


class ClassifierConfigError(ValueError):
    """Raised when the target or predictor selection cannot be trained on."""


@dataclass
class ClassificationResult:
    """Outcome of fitting and evaluating the classifier."""

    target: str
    predictors: list[str]
    labels: list[Any]
    confusion_matrix: np.ndarray
    accuracy: float
    feature_importances: list[tuple[str, float]]
    train_index: pd.Index
    test_index: pd.Index
    model: Pipeline

    @property
    def test_size(self) -> int:
        """Number of held-out rows."""
        return len(self.test_index)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "target": self.target,
            "predictors": self.predictors,
            "labels": [str(label) for label in self.labels],
            "confusion_matrix": self.confusion_matrix.tolist(),
            "accuracy": self.accuracy,
            "feature_importances": [
                {"feature": name, "importance": score} for name, score in self.feature_importances
            ],
            "train_rows": len(self.train_index),
            "test_rows": self.test_size,
        }


def validate_training_inputs(
    df: pd.DataFrame,
    target: str,
    predictors: list[str],
    train_fraction: float = 0.8,
) -> list[Any]:
    """
    Check the target/predictor selection before training.

    Besides the column checks, the labelled rows must support a stratified
    split at train_fraction: every class needs at least two rows and both
    sides of the split at least one row per class.

    Returns:
        The two target classes in sorted order

    Raises:
        ClassifierConfigError: Missing columns, a target that is not binary
            or too few rows to stratify
    """
    if not predictors:
        raise ClassifierConfigError("At least one predictor is required")

    missing = [c for c in [*predictors, target] if c not in df.columns]
    if missing:
        raise ClassifierConfigError(f"Columns not found in table: {missing}")

    if target in predictors:
        raise ClassifierConfigError(f"Target '{target}' cannot also be a predictor")

    labelled = df[target].dropna()
    classes = sorted(labelled.drop_duplicates().tolist())
    if len(classes) != 2:
        raise ClassifierConfigError(
            f"Target '{target}' must have exactly two classes, found {len(classes)}: {classes}"
        )

    class_counts = labelled.astype("object").value_counts()
    rare = {str(label): int(count) for label, count in class_counts.items() if count < 2}
    if rare:
        raise ClassifierConfigError(
            f"Target '{target}' needs at least 2 rows per class for a stratified split: {rare}"
        )

    n_rows = len(labelled)
    n_train = math.floor(n_rows * train_fraction)
    n_test = n_rows - n_train
    if min(n_train, n_test) < len(classes):
        raise ClassifierConfigError(
            f"{n_rows} labelled rows at train_fraction={train_fraction} give "
            f"{n_train} training and {n_test} held-out rows; each needs at least {len(classes)}"
        )

    return classes


def split_dataset(
    df: pd.DataFrame,
    target: str,
    train_fraction: float = 0.8,
    random_state: int = 42,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Stratified train/held-out split.

    The same table, fraction and seed always give the same partition.
    """
    train_df, test_df = train_test_split(
        df,
        train_size=train_fraction,
        random_state=random_state,
        stratify=pd.factorize(df[target])[0],
    )
    return train_df, test_df


def _predictor_frame(df: pd.DataFrame, predictors: list[str]) -> pd.DataFrame:
    """Predictors as strings, nulls mapped to MISSING_LABEL."""
    return df[predictors].astype("object").fillna(MISSING_LABEL).astype(str)


def _build_model(predictors: list[str], options: ClassifierOptions) -> Pipeline:
    preprocess = ColumnTransformer(
        transformers=[
            (
                "cat",
                OrdinalEncoder(handle_unknown="use_encoded_value", unknown_value=-1),
                predictors,
            ),
        ],
        remainder="drop",
    )
    clf = RandomForestClassifier(
        n_estimators=options.n_estimators,
        min_samples_leaf=options.min_samples_leaf,
        class_weight=options.class_weight,
        random_state=options.random_state,
    )
    return Pipeline(steps=[("preprocess", preprocess), ("clf", clf)])


def fit_outcome_classifier(
    df: pd.DataFrame,
    target: str | None = None,
    predictors: list[str] | None = None,
    options: ClassifierOptions | None = None,
    config: Settings | None = None,
) -> ClassificationResult:
    """
    Train and evaluate the random forest on the cleaned shooting table.

    Args:
        df: Cleaned shooting DataFrame
        target: Binary target column (STATISTICAL_MURDER_FLAG by default)
        predictors: Categorical predictor columns (from shootings.yaml by default)
        options: Split and forest options (settings.modeling.classifier by default)
        config: Configuration object used when options is None

    Returns:
        ClassificationResult with the 2x2 confusion matrix and importances

    Raises:
        ClassifierConfigError: Invalid target/predictor selection
    """
    target = target or DEFAULT_TARGET
    predictors = list(predictors or DEFAULT_PREDICTORS)
    if options is None:
        options = (config or get_config()).modeling.classifier

    labels = validate_training_inputs(df, target, predictors, options.train_fraction)
    df = df[df[target].notna()]

    logger.info(
        f"Training outcome classifier on {len(df)} rows",
        extra={"target": target, "predictors": predictors, "options": options.model_dump()},
    )

    train_df, test_df = split_dataset(
        df, target, train_fraction=options.train_fraction, random_state=options.random_state
    )

    # Positional encoding so class_weight mappings are keyed by 0/1
    y_train = (train_df[target] == labels[1]).astype(int)
    y_test = (test_df[target] == labels[1]).astype(int)

    model = _build_model(predictors, options)
    model.fit(_predictor_frame(train_df, predictors), y_train)
    y_pred = model.predict(_predictor_frame(test_df, predictors))

    matrix = confusion_matrix(y_test, y_pred, labels=[0, 1])
    importances = model.named_steps["clf"].feature_importances_.tolist()
    ranking = sorted(
        ((name, float(score)) for name, score in zip(predictors, importances, strict=True)),
        key=lambda item: (-item[1], item[0]),
    )

    result = ClassificationResult(
        target=target,
        predictors=predictors,
        labels=labels,
        confusion_matrix=matrix,
        accuracy=float(accuracy_score(y_test, y_pred)),
        feature_importances=ranking,
        train_index=train_df.index,
        test_index=test_df.index,
        model=model,
    )

    logger.info(
        f"Outcome classifier accuracy on {result.test_size} held-out rows: {result.accuracy:.3f}",
        extra=result.to_dict(),
    )

    return result


def format_confusion_matrix(result: ClassificationResult) -> pd.DataFrame:
    """Label the confusion matrix: rows are actual classes, columns predicted."""
    return pd.DataFrame(
        result.confusion_matrix,
        index=[f"actual_{label}" for label in result.labels],
        columns=[f"predicted_{label}" for label in result.labels],
    )


def format_feature_importances(result: ClassificationResult) -> pd.DataFrame:
    """Feature-importance ranking as a two-column table."""
    return pd.DataFrame(result.feature_importances, columns=["feature", "importance"])
