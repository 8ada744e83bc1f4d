"""
Shooting Analysis Script
Downloads the NYPD shooting incident CSV, cleans it, renders charts and
evaluates the murder-flag classifier.
"""

import logging
import sys

from shooting_pulse.pipeline import run_analysis
from shooting_pulse.shared import configure_logging, get_config

logger = logging.getLogger(__name__)


def main() -> int:
    config = get_config()
    configure_logging(config)

    try:
        report = run_analysis(config=config)
    except RuntimeError as e:
        logger.error(f"Shooting analysis aborted: {e}")
        return 1

    for name, path in report.outputs.items():
        logger.info(f"{name}: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
