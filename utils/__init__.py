#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utils Package - Utility functions and helpers

- logging: log modes, TRACE level, sanitizing filter and pretty helpers
"""


# Lazy imports for modules that depend on config (to avoid circular imports)
# These will be imported on first access via __getattr__
def __getattr__(name):
    """Lazy import for modules that may have circular dependencies"""
    if name in {
        'get_logger', 'setup_logging', 'log_section', 'log_success',
        'get_log_mode', 'log_event', 'cleanup_logs'
    }:
        from utils import logging as _logging
        return getattr(_logging, name)

    raise AttributeError(f"module 'utils' has no attribute '{name}'")
