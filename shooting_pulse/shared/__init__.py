from shooting_pulse.shared.config import (
    ClassifierOptions,
    Settings,
    get_config,
    get_dataset_config,
    reload_config,
)
from shooting_pulse.shared.log_setup import configure_logging

__all__ = [
    "get_config",
    "reload_config",
    "get_dataset_config",
    "Settings",
    "ClassifierOptions",
    "configure_logging",
]
