#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pattern matching module for captcha character recognition.

Compares a character crop with every template on a small fixed grid using
the mean absolute difference of normalized intensities.
"""

from typing import Optional, Tuple

import cv2
import numpy as np

from .template_manager import TemplateManager
from utils.logging import get_logger

log = get_logger()


def compare_images(img1: np.ndarray, img2: np.ndarray,
                   size: Tuple[int, int] = (20, 30)) -> float:
    """
    Mean absolute difference of two images resampled to the same size.

    Args:
        img1: First grayscale image
        img2: Second grayscale image
        size: (width, height) of the comparison grid

    Returns:
        Score between 0.0 (identical) and 1.0 (inverted)
    """
    a = cv2.resize(img1, size, interpolation=cv2.INTER_NEAREST).astype(np.float32) / 255.0
    b = cv2.resize(img2, size, interpolation=cv2.INTER_NEAREST).astype(np.float32) / 255.0
    return float(np.mean(np.abs(a - b)))


def match_character(char_img: np.ndarray,
                    template_manager: TemplateManager,
                    match_threshold: float = 0.4,
                    size: Tuple[int, int] = (20, 30)) -> Tuple[Optional[str], float]:
    """
    Match a character image against all templates in the database.

    Args:
        char_img: Character crop (grayscale)
        template_manager: Loaded TemplateManager
        match_threshold: Score must be strictly below this to count as a match
        size: Comparison grid (width, height)

    Returns:
        Tuple of (label, best_score); label is None if nothing clears the threshold
    """
    if char_img is None or char_img.size == 0:
        log.warning("Empty character image provided to match_character")
        return None, 1.0

    best_match = None
    best_score = float("inf")

    for character, templates in template_manager.templates.items():
        for template in templates:
            score = compare_images(char_img, template, size)
            if score < best_score:
                best_score = score
                best_match = character

    if best_match is not None and best_score < match_threshold:
        log.debug(f"Matched character: '{best_match}' (score: {best_score:.3f})")
        return best_match, best_score

    log.debug(f"No match below threshold {match_threshold} (best: {best_score:.3f})")
    return None, best_score
