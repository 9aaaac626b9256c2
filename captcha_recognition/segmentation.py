#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Character segmentation module for captcha recognition.

Splits a cleaned canonical image into character column ranges using a
vertical projection (ink pixels per column), then merges ranges that are
too close together to be separate characters.
"""

from typing import List, Tuple

import numpy as np

from .exceptions import FormatMismatch
from .settings import DEFAULT_SETTINGS, RecognitionSettings
from utils.logging import get_logger

log = get_logger()

# Half-open column range [start, end)
Region = Tuple[int, int]


def vertical_projection(img: np.ndarray, threshold: int = 128) -> np.ndarray:
    """
    Count foreground pixels (intensity below threshold) in every column.

    Returns:
        1-D int array of length image width
    """
    return np.count_nonzero(img < threshold, axis=0)


def find_raw_boundaries(projection: np.ndarray, min_projection: int = 3,
                        min_width: int = 3) -> List[Region]:
    """
    Find maximal runs of in-character columns.

    A column is in-character when its projection exceeds min_projection.
    Runs narrower than min_width are dropped. A run reaching the right edge
    ends at the image width.
    """
    boundaries: List[Region] = []
    in_char = False
    start = 0

    for x, count in enumerate(projection):
        if count > min_projection:
            if not in_char:
                in_char = True
                start = x
        elif in_char:
            in_char = False
            if x - start >= min_width:
                boundaries.append((start, x))

    if in_char and len(projection) - start >= min_width:
        boundaries.append((start, len(projection)))

    return boundaries


def merge_boundaries(boundaries: List[Region], min_gap: int = 3) -> List[Region]:
    """
    Merge consecutive regions separated by at most min_gap columns.

    Touching characters often leave a one or two column dip in the
    projection; those halves are joined back into one region.
    """
    merged: List[Region] = []
    for start, end in boundaries:
        if merged and start - merged[-1][1] <= min_gap:
            merged[-1] = (merged[-1][0], end)
        else:
            merged.append((start, end))
    return merged


def segment_image(img: np.ndarray, settings: RecognitionSettings = DEFAULT_SETTINGS) -> List[Region]:
    """
    Segment a cleaned canonical image into character regions.

    Args:
        img: Cleaned grayscale image (dark text on light background)
        settings: Segmentation constants

    Returns:
        List of (start, end) column ranges, left to right

    Raises:
        FormatMismatch: Region count outside [min_char_count, max_char_count]
    """
    projection = vertical_projection(img, settings.foreground_threshold)
    raw = find_raw_boundaries(projection, settings.projection_min, settings.min_char_width)
    regions = merge_boundaries(raw, settings.min_char_gap)

    log.debug(f"[CAPTCHA:segment] {len(raw)} raw regions, {len(regions)} after merge: {regions}")

    if not settings.min_char_count <= len(regions) <= settings.max_char_count:
        raise FormatMismatch(len(regions), settings.min_char_count, settings.max_char_count)

    return regions
