"""
Shooting Pulse - Logging Setup

Configures the root logger from the logging section of Settings.
Modules log through ``logging.getLogger(__name__)`` and attach structured
context with ``extra={...}``; the JSON format carries that context through.
"""

from __future__ import annotations

import json
import logging

from shooting_pulse.shared.config import Settings, get_config

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes present on every LogRecord; anything else came in via extra=
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "logger": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(config: Settings | None = None) -> None:
    """Install a stream handler on the root logger using the configured level and format."""
    config = config or get_config()

    handler = logging.StreamHandler()
    if config.logging.format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    logging.basicConfig(level=config.logging.level.upper(), handlers=[handler], force=True)
