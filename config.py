#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Global constants for the captcha solver
All empirical values are centralized here for easy tracking and modification
"""

# =============================================================================
# APPLICATION METADATA
# =============================================================================

APP_NAME = "captcha-solver"
APP_VERSION = "0.3.0"

# Production mode - controls logging verbosity
# Set to True for unattended runs (verbose file logs, no console noise)
PRODUCTION_MODE = False


# =============================================================================
# FILE AND DIRECTORY PATHS
# =============================================================================

# All paths are relative to the working directory of the login client
CACHE_FILE = "captcha_cache.json"        # Persisted fingerprint -> text mapping
TEMPLATES_DIR = "captcha_templates"      # One <char>.png per character
TRAINING_DIR = "captcha_training"        # Solved samples, <text>.png
DEBUG_DIR = "."                          # debug_processed.png, debug_char_<i>.png

DEBUG_PROCESSED_NAME = "debug_processed.png"
DEBUG_CHAR_PATTERN = "debug_char_{index}.png"

# Log files
LOGS_DIR = "logs"
LOG_FILE_PATTERN = "captcha_*.log"
LOG_TIMESTAMP_FORMAT = "%d-%m-%Y_%H-%M-%S"


# =============================================================================
# IMAGE NORMALIZATION
# =============================================================================

# Canonical working resolution (width, height) - matches the source aspect ratio
CANONICAL_WIDTH = 120
CANONICAL_HEIGHT = 80

# Source images carry a random rotation of roughly +-10..20 degrees
ROTATION_CANDIDATE_ANGLES = (-20, -15, -10, -5, 0, 5, 10, 15, 20)


# =============================================================================
# CONTRAST / NOISE
# =============================================================================

ADAPTIVE_THRESHOLD_RADIUS = 15           # Block is (2 * radius + 1) square
ADAPTIVE_THRESHOLD_OFFSET = 1            # cv2 offset so that pixel >= local mean stays white
POLARITY_SPLIT = 127                     # Above = light, at or below = dark
NOISE_MIN_NEIGHBORS = 2                  # Fewer same-polarity neighbors = noise
MORPHOLOGY_RADIUS = 1                    # L1 neighborhood radius for erode/dilate


# =============================================================================
# SEGMENTATION
# =============================================================================

FOREGROUND_THRESHOLD = 128               # Pixel < threshold counts as ink
PROJECTION_MIN = 3                       # Column is in-character when projection > this
MIN_CHAR_WIDTH = 3                       # Narrower runs are dropped
MIN_CHAR_GAP = 3                         # Runs closer than this are merged
MIN_CHAR_COUNT = 3
MAX_CHAR_COUNT = 8


# =============================================================================
# CHARACTER MATCHING
# =============================================================================

TEMPLATE_WIDTH = 20                      # Comparison size (width)
TEMPLATE_HEIGHT = 30                     # Comparison size (height)
MATCH_THRESHOLD = 0.4                    # Mean abs difference must be below this
UNKNOWN_CHAR = "?"                       # Placeholder for unreadable characters
TEMPLATE_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
MIN_SOLUTION_LENGTH = 3


# =============================================================================
# CACHE
# =============================================================================

CACHE_FLUSH_INTERVAL = 5                 # Flush to disk on every Nth new entry


# =============================================================================
# LOGGING CONSTANTS
# =============================================================================

LOG_MAX_FILE_SIZE_MB_DEFAULT = 5         # Rotate log file after this size
LOG_SEPARATOR_WIDTH = 80                 # Width of separator lines in logs (e.g., "=" * 80)


# =============================================================================
# DEFAULT ARGUMENTS
# =============================================================================

DEFAULT_VERBOSE = False
DEFAULT_SAVE_DEBUG = True
DEFAULT_SAVE_TRAINING = True
DEFAULT_MEASURE_TIME = True
