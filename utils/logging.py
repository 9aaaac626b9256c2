#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Logging configuration and utilities
"""

# Standard library imports
import logging
import os
import re
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

# Local imports
from config import (
    APP_NAME, LOGS_DIR, LOG_FILE_PATTERN, LOG_MAX_FILE_SIZE_MB_DEFAULT,
    LOG_SEPARATOR_WIDTH, LOG_TIMESTAMP_FORMAT, PRODUCTION_MODE,
)

# Add custom TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def trace(self, message, *args, **kwargs):
    """Log a trace message (ultra-detailed, below DEBUG)"""
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)


# Add trace() method to Logger class
logging.Logger.trace = trace

# Global log mode (set by setup_logging)
_CURRENT_LOG_MODE = 'customer'

LOG_MODES = ('customer', 'verbose', 'debug')


def get_log_mode() -> str:
    """Get the current logging mode"""
    return _CURRENT_LOG_MODE


class SanitizingFilter(logging.Filter):
    """
    Logging filter that keeps image payloads out of the logs and controls verbosity.

    Three modes:
    - customer: Clean logs (INFO+ only, no separators)
    - verbose: Full technical details (DEBUG+, per-stage pipeline info)
    - debug: Ultra-detailed (TRACE+, per-pixel-stage dumps)
    """

    PATTERNS = [
        # Inline data URIs and long base64 runs (captcha payloads)
        (re.compile(r'data:image/[a-z]+;base64,[A-Za-z0-9+/=]+'), '[IMAGE_DATA]'),
        (re.compile(r'[A-Za-z0-9+/]{80,}={0,2}'), '[IMAGE_DATA]'),
    ]

    def __init__(self, log_mode: str = 'customer'):
        super().__init__()
        self.log_mode = log_mode

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Filter log records. Returns False to suppress, True to allow.
        Modifies record.msg to strip image payloads.
        """
        if self.log_mode == 'customer':
            if record.levelno < logging.INFO:
                return False
            msg_str = str(record.getMessage()).strip()
            # Separator lines are only useful in developer logs
            if msg_str and all(c == '=' for c in msg_str):
                return False
        elif self.log_mode == 'verbose':
            if record.levelno < logging.DEBUG:
                return False

        if isinstance(record.msg, str):
            sanitized = record.msg
            for pattern, replacement in self.PATTERNS:
                sanitized = pattern.sub(replacement, sanitized)
            record.msg = sanitized

        return True


class SizeRotatingFileHandler(logging.FileHandler):
    """
    File handler that rolls over to base.log.1, base.log.2, ... once the
    current file reaches max_bytes. Old files are never deleted here,
    cleanup_logs() handles retention.
    """

    def __init__(self, base_path: Path, max_bytes: int, encoding: str = 'utf-8'):
        self.base_path = Path(base_path)
        self.max_bytes = max_bytes
        self._index = 0
        super().__init__(self.base_path, encoding=encoding)

    def _maybe_rotate(self):
        current = Path(self.baseFilename)
        if not current.exists() or current.stat().st_size < self.max_bytes:
            return
        self.close()
        self._index += 1
        self.baseFilename = os.fspath(
            self.base_path.with_name(f"{self.base_path.name}.{self._index}").absolute()
        )
        self.stream = self._open()

    def emit(self, record):
        try:
            self._maybe_rotate()
        except OSError:
            # Keep writing to the current file
            pass
        super().emit(record)


class _FileFmt(logging.Formatter):
    def format(self, record):
        record._when = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
        return super().format(record)


def _level_for_mode(log_mode: str) -> int:
    if log_mode == 'debug':
        return TRACE
    if log_mode == 'verbose':
        return logging.DEBUG
    return logging.INFO


def setup_logging(log_mode: str = 'customer', production_mode: bool = None,
                  log_to_file: bool = True, logs_dir: Optional[str] = None):
    """
    Setup logging configuration with three modes

    Args:
        log_mode: 'customer' (clean logs), 'verbose' (developer), or 'debug' (ultra-detailed)
        production_mode: Override PRODUCTION_MODE (None = use config default)
        log_to_file: Also write a per-session log file
        logs_dir: Directory for log files (default: config.LOGS_DIR)
    """
    global _CURRENT_LOG_MODE

    if log_mode not in LOG_MODES:
        raise ValueError(f"log_mode must be one of {LOG_MODES}, got {log_mode!r}")

    if production_mode is None:
        production_mode = PRODUCTION_MODE

    # In production mode, always use verbose mode for full logging
    _CURRENT_LOG_MODE = 'verbose' if production_mode else log_mode

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    # Console handler (suppressed in production mode)
    if not production_mode:
        console = logging.StreamHandler(sys.stderr)
        if _CURRENT_LOG_MODE == 'debug':
            console.setFormatter(logging.Formatter("%(levelname)-7s | %(name)-15s | %(message)s"))
        elif _CURRENT_LOG_MODE == 'verbose':
            console.setFormatter(logging.Formatter("%(levelname)-7s | %(message)s"))
        else:
            console.setFormatter(logging.Formatter("%(message)s"))
        console.setLevel(_level_for_mode(_CURRENT_LOG_MODE))
        console.addFilter(SanitizingFilter(_CURRENT_LOG_MODE))
        root.addHandler(console)

    log_file = None
    if log_to_file:
        try:
            target_dir = Path(logs_dir or LOGS_DIR)
            target_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
            log_file = target_dir / f"captcha_{timestamp}.log"
            max_bytes = int(LOG_MAX_FILE_SIZE_MB_DEFAULT * 1024 * 1024)
            file_handler = SizeRotatingFileHandler(log_file, max_bytes)

            if _CURRENT_LOG_MODE == 'debug':
                file_fmt = "%(_when)s | %(levelname)-7s | %(name)-15s | %(funcName)-20s | %(message)s"
            elif _CURRENT_LOG_MODE == 'verbose':
                file_fmt = "%(_when)s | %(levelname)-7s | %(message)s"
            else:
                file_fmt = "%(_when)s | %(message)s"
            file_handler.setFormatter(_FileFmt(file_fmt))
            file_handler.setLevel(_level_for_mode(_CURRENT_LOG_MODE))
            file_handler.addFilter(SanitizingFilter(_CURRENT_LOG_MODE))
            root.addHandler(file_handler)
        except OSError as e:
            # If file logging fails, continue without it
            log_file = None
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    # Root logger must be at TRACE so handlers decide what to show
    root.setLevel(TRACE)

    # Pillow is chatty about PNG chunks at DEBUG
    logging.getLogger("PIL").setLevel(logging.WARNING)

    logger = logging.getLogger("startup")
    if _CURRENT_LOG_MODE != 'customer':
        logger.info("=" * LOG_SEPARATOR_WIDTH)
        logger.info(f"{APP_NAME} - logging initialized ({_CURRENT_LOG_MODE} mode)")
        logger.info("=" * LOG_SEPARATOR_WIDTH)
        if log_file is not None:
            logger.debug(f"Log file location: {log_file.absolute()}")

    return log_file


def get_logger(name: str = "captcha") -> logging.Logger:
    """Get a logger instance"""
    return logging.getLogger(name)


def cleanup_logs(logs_dir: Optional[str] = None, max_age_seconds: int = 24 * 60 * 60):
    """Delete log files older than max_age_seconds (default: 1 day)."""
    target_dir = Path(logs_dir or LOGS_DIR)
    if not target_dir.exists():
        return

    now = time.time()
    for log_file in target_dir.glob(LOG_FILE_PATTERN + "*"):
        try:
            if now - log_file.stat().st_mtime > max_age_seconds:
                log_file.unlink()
        except OSError:
            pass


# ==================== Pretty Logging Helpers ====================

def log_section(logger: logging.Logger, title: str, details: dict = None, mode: str = None):
    """
    Log a section with title and optional details

    Args:
        logger: Logger instance
        title: Main title text (will be uppercased in verbose/debug mode)
        details: Optional dict of key-value pairs to display
        mode: 'customer', 'verbose' or 'debug'. If None, uses current global log mode.

    Example:
        log_section(log, "Templates loaded", {"Characters": 62, "Templates": 80})
    """
    if mode is None:
        mode = get_log_mode()

    if mode == 'customer':
        if details:
            detail_str = ", ".join(f"{k}: {v}" for k, v in details.items())
            logger.info(f"{title} ({detail_str})")
        else:
            logger.info(title)
    else:
        logger.info("=" * LOG_SEPARATOR_WIDTH)
        logger.info(title.upper())
        if details:
            for key, value in details.items():
                logger.info(f"   {key}: {value}")
        logger.info("=" * LOG_SEPARATOR_WIDTH)


def log_event(logger: logging.Logger, event: str, details: dict = None):
    """Log a single event with optional details"""
    logger.info(event)
    if details:
        for key, value in details.items():
            logger.info(f"   - {key}: {value}")


def log_success(logger: logging.Logger, message: str):
    """Log a success message"""
    logger.info(f"OK {message}")
