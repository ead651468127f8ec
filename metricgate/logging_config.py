"""Logging setup for metricgate.

Format and level come from the validated ``MG_LOG_FORMAT`` / ``MG_LOG_LEVEL``
settings.  In ``json`` mode every record is one JSON object; extras passed
via ``extra=`` (``source``, ``role_count``, ``action``, ...) become fields.
"""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

import metricgate
from metricgate.config import settings

_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(fmt=_JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    return logging.Formatter(_TEXT_FORMAT)


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """Configure the root logger; arguments default to the MG_* settings."""
    level = log_level or settings.log_level
    root = logging.getLogger()
    root.setLevel(level)

    # Remove any existing handlers so we don't double-log during tests.
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(build_formatter(log_format or settings.log_format))
    root.addHandler(handler)


def log_startup_info(role_count: int, source: str) -> None:
    """Emit a structured startup log line with the active policy."""
    logging.getLogger("metricgate").info(
        "metricgate started",
        extra={
            "version": metricgate.__version__,
            "source": source,
            "role_count": role_count,
            "admin_keys_status": "configured" if settings.admin_key_set else "dev_mode",
        },
    )
