"""
Structured Logging Utilities

This module centralizes logging setup for web asset extraction. Records carry
structured fields (``stage``, ``artifact``, ``path`` ...) passed through
``extra=``; the console handler prints a compact line while the optional file
handler emits one JSON object per record and rolls files over by size.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timedelta, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import LoggingConfiguration, get_default_settings

__all__ = ["LOGGER_NAME", "JSONFormatter", "setup_logging"]

LOGGER_NAME = "AssetKit.WebJars"

_STRUCTURED_FIELDS = (
    "stage",
    "artifact",
    "root_folder",
    "path",
    "target",
    "origin",
    "files",
    "directories",
    "overrides",
    "skipped",
)


class JSONFormatter(logging.Formatter):
    """Formatter emitting JSON structured logs.

    Examples:
        >>> formatter = JSONFormatter()
        >>> isinstance(formatter.format(logging.makeLogRecord({'msg': 'test'})), str)
        True
    """

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc)
        log_obj = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_obj[field] = value
        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            log_obj.update(record.extra_fields)
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


def _cleanup_logs(log_dir: Path, retention_days: int) -> None:
    """Delete JSON log files older than the retention window."""

    cutoff = datetime.now(timezone.utc) - timedelta(days=retention_days)
    for file in log_dir.glob("webjars-*.jsonl*"):
        mtime = datetime.fromtimestamp(file.stat().st_mtime, tz=timezone.utc)
        if mtime < cutoff:
            file.unlink(missing_ok=True)


def setup_logging(
    config: LoggingConfiguration, log_dir: Optional[Path] = None
) -> logging.Logger:
    """Configure console and optional JSON file handlers.

    Args:
        config: Logging configuration containing level, size, and retention.
        log_dir: Directory for JSON log files; enables the file handler even
            when ``config.json_file`` is false.

    Returns:
        Configured logger instance scoped to the web asset extractor.

    Examples:
        >>> logger = setup_logging(LoggingConfiguration(level="INFO"))
        >>> logger.name
        'AssetKit.WebJars'
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_webjars_managed", False):
            logger.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    stream_handler._webjars_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    if log_dir is not None or config.json_file:
        if log_dir is None:
            settings = get_default_settings()
            log_dir = settings.temp_root / settings.cache_namespace / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        _cleanup_logs(log_dir, config.retention_days)
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        file_handler = RotatingFileHandler(
            log_dir / f"webjars-{today}.jsonl",
            maxBytes=int(config.max_log_size_mb * 1024 * 1024),
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler._webjars_managed = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.propagate = True
    return logger
