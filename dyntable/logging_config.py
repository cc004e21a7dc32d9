from __future__ import annotations

import logging
import os
from typing import Optional

from pythonjsonlogger import jsonlogger

LOG_FORMAT_ENV = "DYNTABLE_LOG_FORMAT"
LOG_LEVEL_ENV = "DYNTABLE_LOG_LEVEL"
AUDIT_LOGGER = "dyntable.audit"

PLAIN_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _resolve_level(level: Optional[int]) -> int:
    if level is not None:
        return level
    value = logging.getLevelName(os.getenv(LOG_LEVEL_ENV, "INFO").upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(
        level: Optional[int] = None,
        force_format: Optional[str] = None,
        audit_level: int = logging.INFO,
) -> None:
    """
    Configure the root logger plus the `dyntable.audit` channel.

    Modes:
    - JSON (default): one object per record, `extra={...}` fields included,
      tagged with "app": "dyntable"
    - plain text (dev mode)

    Format selection order:
        1) force_format argument ("json" or "plain") if provided
        2) env var DYNTABLE_LOG_FORMAT
        3) default = "json"

    Level: the `level` argument, else env var DYNTABLE_LOG_LEVEL, else INFO.
    Audit records keep `audit_level` even when the root level is higher.
    """
    format_mode = (force_format or os.getenv(LOG_FORMAT_ENV, "json")).lower()

    if format_mode == "plain":
        formatter = logging.Formatter(PLAIN_FORMAT)
    else:
        formatter = jsonlogger.JsonFormatter(JSON_FORMAT, static_fields={"app": "dyntable"})

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(_resolve_level(level))
    # Replace any existing handlers to avoid duplicate logs
    root.handlers.clear()
    root.addHandler(handler)

    # Propagated records reach the root handler without consulting the root level
    logging.getLogger(AUDIT_LOGGER).setLevel(audit_level)
