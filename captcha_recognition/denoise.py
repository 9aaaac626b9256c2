#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Contrast enhancement and noise removal for canonical captcha images.
"""

import cv2
import numpy as np

from .settings import DEFAULT_SETTINGS, RecognitionSettings
from utils.logging import get_logger

log = get_logger()


def adaptive_threshold(gray: np.ndarray, block_radius: int, offset: int = 1) -> np.ndarray:
    """
    Local mean thresholding over a (2 * block_radius + 1) square block.

    With offset=1 a pixel at least as bright as its local mean becomes 255,
    anything darker becomes 0, so flat backgrounds stay white.
    """
    block_size = 2 * block_radius + 1
    return cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_MEAN_C,
                                 cv2.THRESH_BINARY, block_size, offset)


def remove_isolated_pixels(img: np.ndarray, split: int = 127, min_neighbors: int = 2) -> np.ndarray:
    """
    Invert interior pixels that have fewer than min_neighbors 8-connected
    neighbors of the same polarity (light = value > split).

    Neighbor counts are taken from the input, never from the partially
    corrected output, so corrections do not cascade. Border pixels are
    left as they are.
    """
    height, width = img.shape[:2]
    output = img.copy()
    if height < 3 or width < 3:
        return output

    light = img > split
    center = light[1:-1, 1:-1]
    same = np.zeros(center.shape, dtype=np.uint8)

    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dy == 0 and dx == 0:
                continue
            neighbor = light[1 + dy:height - 1 + dy, 1 + dx:width - 1 + dx]
            same += (neighbor == center)

    noise = same < min_neighbors
    interior = output[1:-1, 1:-1]
    interior[noise] = 255 - interior[noise]

    log.trace(f"[CAPTCHA:noise] Inverted {int(noise.sum())} isolated pixels")
    return output


def l1_kernel(radius: int) -> np.ndarray:
    """Structuring element of all offsets with |dx| + |dy| <= radius."""
    offsets = np.arange(-radius, radius + 1)
    return (np.abs(offsets)[:, None] + np.abs(offsets)[None, :] <= radius).astype(np.uint8)


def morphological_cleanup(img: np.ndarray, radius: int = 1) -> np.ndarray:
    """One erosion followed by one dilation with an L1 neighborhood."""
    kernel = l1_kernel(radius)
    eroded = cv2.erode(img, kernel, iterations=1)
    return cv2.dilate(eroded, kernel, iterations=1)


def clean(gray: np.ndarray, settings: RecognitionSettings = DEFAULT_SETTINGS) -> np.ndarray:
    """Threshold, remove isolated pixels and apply the morphological pass."""
    contrasted = adaptive_threshold(gray, settings.threshold_radius, settings.threshold_offset)
    denoised = remove_isolated_pixels(contrasted, settings.polarity_split, settings.noise_min_neighbors)
    return morphological_cleanup(denoised, settings.morphology_radius)
