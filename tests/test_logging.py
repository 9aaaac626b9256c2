"""
Tests for log modes, payload sanitizing and log file handling.
"""

import logging
import os
import time

import pytest

from utils import logging as captcha_logging
from utils.logging import SanitizingFilter, cleanup_logs, get_logger, setup_logging


def make_record(msg, level=logging.INFO, args=None):
    return logging.LogRecord("captcha", level, __file__, 1, msg, args, None)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    mode = captcha_logging._CURRENT_LOG_MODE
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    captcha_logging._CURRENT_LOG_MODE = mode


class TestSanitizingFilter:
    """Test payload removal and mode-based suppression."""

    def test_data_uri_replaced(self):
        record = make_record("Solving data:image/png;base64,iVBORw0KGgoAAAANSUhEUg== now")
        assert SanitizingFilter('verbose').filter(record)
        assert record.msg == "Solving [IMAGE_DATA] now"

    def test_long_base64_run_replaced(self):
        record = make_record("payload " + "QUJD" * 30)
        SanitizingFilter('verbose').filter(record)
        assert record.msg == "payload [IMAGE_DATA]"

    def test_short_text_untouched(self):
        record = make_record("Solved: Ab3x")
        SanitizingFilter('customer').filter(record)
        assert record.msg == "Solved: Ab3x"

    def test_customer_mode_hides_debug(self):
        flt = SanitizingFilter('customer')
        assert not flt.filter(make_record("details", logging.DEBUG))
        assert flt.filter(make_record("result", logging.INFO))

    def test_customer_mode_hides_separators(self):
        assert not SanitizingFilter('customer').filter(make_record("=" * 80))
        assert SanitizingFilter('verbose').filter(make_record("=" * 80))

    def test_verbose_mode_hides_trace(self):
        flt = SanitizingFilter('verbose')
        assert not flt.filter(make_record("pixels", captcha_logging.TRACE))
        assert flt.filter(make_record("stage", logging.DEBUG))

    def test_debug_mode_shows_trace(self):
        assert SanitizingFilter('debug').filter(make_record("pixels", captcha_logging.TRACE))


class TestSetupLogging:
    """Test handler configuration."""

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            setup_logging('loud')

    def test_log_file_written_and_sanitized(self, tmp_path, restore_root_logger):
        log_file = setup_logging('verbose', production_mode=False, log_to_file=True, logs_dir=str(tmp_path))
        assert log_file is not None
        assert captcha_logging.get_log_mode() == 'verbose'

        get_logger().info("captcha data:image/gif;base64,R0lGODlhAQABAAAAACw=")
        for handler in restore_root_logger.handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        assert "[IMAGE_DATA]" in content
        assert "R0lGODlh" not in content

    def test_production_mode_forces_verbose(self, tmp_path, restore_root_logger):
        setup_logging('customer', production_mode=True, log_to_file=False)
        assert captcha_logging.get_log_mode() == 'verbose'

    def test_trace_method_available(self, restore_root_logger):
        setup_logging('debug', production_mode=False, log_to_file=False)
        assert hasattr(get_logger(), "trace")
        assert get_logger().isEnabledFor(captcha_logging.TRACE)


class TestCleanupLogs:
    """Test log retention."""

    def test_old_logs_removed(self, tmp_path):
        old = tmp_path / "captcha_01-01-2020_00-00-00.log"
        fresh = tmp_path / "captcha_02-01-2020_00-00-00.log"
        other = tmp_path / "notes.txt"
        for path in (old, fresh, other):
            path.write_text("x")
        two_days_ago = time.time() - 2 * 24 * 60 * 60
        os.utime(old, (two_days_ago, two_days_ago))
        os.utime(other, (two_days_ago, two_days_ago))

        cleanup_logs(str(tmp_path))

        assert not old.exists()
        assert fresh.exists()
        assert other.exists()

    def test_missing_directory_ignored(self, tmp_path):
        cleanup_logs(str(tmp_path / "missing"))
