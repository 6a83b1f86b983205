"""
Unit tests for logging setup.
"""
import json
import logging
import os
import re
import sys
import time
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.config.environment import LoggingSettings
from infrastructure.logs.logger import (
    StructuredFormatter,
    clean_old_logs,
    configure_logging,
    log_file_name,
)


class TestStructuredFormatter:
    """Test JSON log formatting."""

    def test_format_includes_message_and_extra_fields(self):
        record = logging.LogRecord(
            name="core.services.merge_engine", level=logging.INFO, pathname=__file__,
            lineno=1, msg="Updated %s", args=("CRM-1",), exc_info=None
        )
        record.issue_key = "CRM-1"

        data = json.loads(StructuredFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["event"] == "Updated CRM-1"
        assert data["logger"] == "core.services.merge_engine"
        assert data["issue_key"] == "CRM-1"

    def test_non_serializable_extra_is_stringified(self):
        record = logging.LogRecord("x", logging.DEBUG, __file__, 1, "msg", None, None)
        record.path = Path("logs")

        data = json.loads(StructuredFormatter().format(record))
        assert data["path"] == "logs"


class TestLogFiles:
    """Test log file naming and retention."""

    def test_log_file_name(self):
        name = log_file_name(datetime(2024, 5, 1, 12, 30, 45, 123))
        assert name == "ac_import_2024-05-01T12-30-45-000123.log"
        assert re.fullmatch(r"ac_import_[0-9T-]+\.log", log_file_name())

    def test_clean_old_logs(self, tmp_path):
        old = tmp_path / "ac_import_old.log"
        recent = tmp_path / "ac_import_recent.log"
        unrelated = tmp_path / "notes.txt"
        for path in (old, recent, unrelated):
            path.write_text("x", encoding='utf-8')

        now = time.time()
        hundred_days_ago = now - 100 * 86400
        os.utime(old, (hundred_days_ago, hundred_days_ago))
        os.utime(unrelated, (hundred_days_ago, hundred_days_ago))

        deleted = clean_old_logs(tmp_path, retention_days=90, now=now)

        assert deleted == [old]
        assert not old.exists()
        assert recent.exists()
        assert unrelated.exists()

    def test_clean_missing_directory(self, tmp_path):
        assert clean_old_logs(tmp_path / "nope", 90) == []


class TestConfigureLogging:
    """Test handler installation."""

    def test_console_and_file_handlers(self, tmp_path):
        settings = LoggingSettings(level="error", logs_dir=str(tmp_path / "logs"), retention_days=90)
        logger_name = "ac_sync_test_logger"

        log_path = configure_logging(settings, logger_name=logger_name)
        logger = logging.getLogger(logger_name)
        try:
            logger.debug("debug detail")

            console, file_handler = logger.handlers
            assert console.level == logging.ERROR
            assert file_handler.level == logging.DEBUG
            assert log_path.parent == tmp_path / "logs"

            file_handler.flush()
            lines = log_path.read_text(encoding='utf-8').splitlines()
            assert json.loads(lines[-1])["event"] == "debug detail"
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
