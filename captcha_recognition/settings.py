#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tunable recognition settings.

Defaults come from config.py; pass a modified copy to the solver to tune
the empirical constants without touching module globals.
"""

from dataclasses import dataclass
from typing import Tuple

import config


@dataclass(frozen=True)
class RecognitionSettings:
    """Empirical constants of the pipeline"""
    # Normalization
    canonical_width: int = config.CANONICAL_WIDTH
    canonical_height: int = config.CANONICAL_HEIGHT
    rotation_angles: Tuple[int, ...] = config.ROTATION_CANDIDATE_ANGLES

    # Contrast / noise
    threshold_radius: int = config.ADAPTIVE_THRESHOLD_RADIUS
    threshold_offset: int = config.ADAPTIVE_THRESHOLD_OFFSET
    polarity_split: int = config.POLARITY_SPLIT
    noise_min_neighbors: int = config.NOISE_MIN_NEIGHBORS
    morphology_radius: int = config.MORPHOLOGY_RADIUS

    # Segmentation
    foreground_threshold: int = config.FOREGROUND_THRESHOLD
    projection_min: int = config.PROJECTION_MIN
    min_char_width: int = config.MIN_CHAR_WIDTH
    min_char_gap: int = config.MIN_CHAR_GAP
    min_char_count: int = config.MIN_CHAR_COUNT
    max_char_count: int = config.MAX_CHAR_COUNT

    # Matching
    template_width: int = config.TEMPLATE_WIDTH
    template_height: int = config.TEMPLATE_HEIGHT
    match_threshold: float = config.MATCH_THRESHOLD
    unknown_char: str = config.UNKNOWN_CHAR
    min_solution_length: int = config.MIN_SOLUTION_LENGTH

    @property
    def canonical_size(self) -> Tuple[int, int]:
        """(width, height) as expected by cv2.resize"""
        return self.canonical_width, self.canonical_height

    @property
    def template_size(self) -> Tuple[int, int]:
        """(width, height) of the comparison grid"""
        return self.template_width, self.template_height


DEFAULT_SETTINGS = RecognitionSettings()
