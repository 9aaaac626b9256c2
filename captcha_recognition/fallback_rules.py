#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Heuristic fallback for characters no template matches.

The crop's ink distribution is summarised in a RegionProfile and checked
against an ordered list of rules; the first rule whose predicate holds
supplies the label.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class RegionProfile:
    """Share of ink pixels per horizontal third and in the left half"""
    top: float
    middle: float
    bottom: float
    left: float

    @classmethod
    def from_image(cls, char_img: np.ndarray, threshold: int = 128) -> Optional["RegionProfile"]:
        """
        Build the profile of a character crop.

        Returns None when the crop holds no ink at all.
        """
        ink = char_img < threshold
        total = int(np.count_nonzero(ink))
        if total == 0:
            return None

        height, width = ink.shape
        top = int(np.count_nonzero(ink[:height // 3]))
        middle = int(np.count_nonzero(ink[height // 3:2 * height // 3]))
        bottom = total - top - middle
        left = int(np.count_nonzero(ink[:, :width // 2]))

        return cls(top=top / total, middle=middle / total,
                   bottom=bottom / total, left=left / total)


@dataclass(frozen=True)
class FallbackRule:
    label: str
    predicate: Callable[[RegionProfile], bool]
    description: str = ""


DEFAULT_RULES = (
    FallbackRule('8', lambda p: p.top > 0.4 and p.bottom > 0.4 and p.middle < 0.2,
                 "heavy top and bottom, empty middle"),
    FallbackRule('E', lambda p: p.top > 0.4 and p.middle > 0.3, "heavy top and middle"),
    FallbackRule('C', lambda p: p.left > 0.7, "ink mostly on the left"),
    FallbackRule('J', lambda p: p.top < 0.2 and p.bottom > 0.5, "ink sinks to the bottom"),
    FallbackRule('H', lambda p: p.middle > 0.5, "ink concentrated in the middle"),
)

DEFAULT_LABEL = 'A'


def estimate_character(char_img: np.ndarray,
                       rules: Sequence[FallbackRule] = DEFAULT_RULES,
                       default: str = DEFAULT_LABEL,
                       threshold: int = 128) -> Optional[str]:
    """
    Guess a character from its ink distribution.

    Returns:
        Label of the first matching rule, ``default`` when none matches,
        or None for a crop without ink
    """
    profile = RegionProfile.from_image(char_img, threshold)
    if profile is None:
        return None

    for rule in rules:
        if rule.predicate(profile):
            return rule.label
    return default
