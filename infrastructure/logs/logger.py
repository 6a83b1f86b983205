"""
Logging setup for sync runs.

Console output honours the selected level; every run also writes a JSON
structured log file (logs/ac_import_<timestamp>.log) at debug level.
Log files older than the retention period are removed at start-up.
"""
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.config.environment import LoggingSettings

LOG_FILE_PREFIX = "ac_import_"
LOG_FILE_SUFFIX = ".log"

LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'error': logging.ERROR,
}


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter."""

    EXCLUDED_ATTRS = {
        'name', 'msg', 'args', 'levelname', 'levelno',
        'pathname', 'filename', 'module', 'exc_info',
        'exc_text', 'stack_info', 'lineno', 'funcName',
        'created', 'msecs', 'relativeCreated', 'thread',
        'threadName', 'processName', 'process', 'message',
        'asctime', 'taskName'
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON formatted string
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "event": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Fields passed with extra=
        for key, value in record.__dict__.items():
            if key not in self.EXCLUDED_ATTRS:
                try:
                    json.dumps(value)
                    log_data[key] = value
                except (TypeError, ValueError):
                    log_data[key] = str(value)

        return json.dumps(log_data)


def log_file_name(now: Optional[datetime] = None) -> str:
    """ac_import_<timestamp>.log with a file system safe timestamp."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S-%f")
    return f"{LOG_FILE_PREFIX}{stamp}{LOG_FILE_SUFFIX}"


def clean_old_logs(logs_dir: Path, retention_days: int, now: Optional[float] = None) -> List[Path]:
    """Delete run logs older than retention_days.

    Args:
        logs_dir: Directory holding run logs
        retention_days: Maximum age in days
        now: Reference time (epoch seconds), defaults to the current time

    Returns:
        Paths of deleted files
    """
    if not logs_dir.is_dir():
        return []

    cutoff = (now if now is not None else time.time()) - retention_days * 86400
    deleted = []
    for path in sorted(logs_dir.glob(f"{LOG_FILE_PREFIX}*{LOG_FILE_SUFFIX}")):
        if path.is_file() and path.stat().st_mtime < cutoff:
            path.unlink()
            deleted.append(path)
    return deleted


def configure_logging(settings: LoggingSettings, logger_name: str = "") -> Path:
    """Install console and run-file handlers.

    Args:
        settings: Logging settings (level, directory, retention)
        logger_name: Logger to configure, the root logger by default

    Returns:
        Path of this run's log file
    """
    logs_dir = Path(settings.logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    deleted = clean_old_logs(logs_dir, settings.retention_days)

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LEVELS.get(settings.level, logging.INFO))
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    log_path = logs_dir / log_file_name()
    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(StructuredFormatter())
    logger.addHandler(file_handler)

    # urllib3 logs every retry and connection at debug
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    for path in deleted:
        logger.info("Deleted old log file: %s", path.name)

    return log_path
