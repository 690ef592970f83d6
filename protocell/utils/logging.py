"""
Logging configuration for Protocell.

Modules log through ``logging.getLogger(__name__)``; applications call
``setup_logging`` once to attach a stdout handler with plain or JSON output.
"""

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            log_data.update(extra)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class _ExtraFieldsFilter(logging.Filter):
    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = dict(extra_fields)

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "extra"):
            record.extra = {}
        record.extra.update(self.extra_fields)
        return True


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    extra_fields: Optional[Dict[str, Any]] = None,
    logger_name: str = "protocell",
) -> logging.Logger:
    """
    Attach a single stdout handler to the package logger.

    Args:
        level: Logging level.
        json_format: Emit JSON lines instead of plain text.
        extra_fields: Fields added to every JSON record.
        logger_name: Logger to configure; ``""`` configures the root logger.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(PLAIN_FORMAT))
    if extra_fields:
        handler.addFilter(_ExtraFieldsFilter(extra_fields))
    logger.addHandler(handler)
    return logger
