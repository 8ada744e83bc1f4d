"""
Shooting Pulse - Modeling

Random-forest classification of the murder outcome flag.
"""

from shooting_pulse.modeling.outcome_classifier import (
    ClassificationResult,
    ClassifierConfigError,
    fit_outcome_classifier,
    format_confusion_matrix,
    format_feature_importances,
    split_dataset,
    validate_training_inputs,
)

__all__ = [
    "ClassificationResult",
    "ClassifierConfigError",
    "fit_outcome_classifier",
    "format_confusion_matrix",
    "format_feature_importances",
    "split_dataset",
    "validate_training_inputs",
]
