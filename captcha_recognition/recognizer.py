#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Character recognizer for captcha text.

Runs the contrast/noise stage on a canonical image, segments it into
character regions and labels every region by template matching, falling
back to the distribution heuristics when no template is close enough.
"""

import time
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from . import denoise
from .exceptions import ValidationFailure
from .fallback_rules import DEFAULT_LABEL, DEFAULT_RULES, FallbackRule, estimate_character
from .matcher import match_character
from .segmentation import Region, segment_image
from .settings import DEFAULT_SETTINGS, RecognitionSettings
from .sinks import NULL_SINK, ArtifactSink
from .template_manager import TemplateManager
from utils.logging import get_logger

log = get_logger()


def is_valid_solution(text: str, min_length: int = 3, unknown_char: str = "?") -> bool:
    """Text must have min_length characters, each ASCII alphanumeric or the unknown marker."""
    if len(text) < min_length:
        return False
    return all((c.isascii() and c.isalnum()) or c == unknown_char for c in text)


@dataclass
class RecognitionResult:
    """Outcome of a successful recognition"""
    text: str
    processed: np.ndarray
    regions: List[Region] = field(default_factory=list)


class CharacterRecognizer:
    """Captcha text recognition using template matching with heuristic fallback."""

    def __init__(self, template_manager: TemplateManager,
                 settings: RecognitionSettings = DEFAULT_SETTINGS,
                 sink: ArtifactSink = NULL_SINK,
                 rules: Sequence[FallbackRule] = DEFAULT_RULES,
                 measure_time: bool = True):
        """
        Initialize character recognizer.

        Args:
            template_manager: Template store; loaded on first use
            settings: Pipeline constants
            sink: Receives debug crops and the processed image
            rules: Ordered fallback rules
            measure_time: Enable timing measurements for recognition operations
        """
        self.template_manager = template_manager
        self.settings = settings
        self.sink = sink
        self.rules = tuple(rules)
        self.measure_time = measure_time

        # Timing statistics
        self.last_recognition_time = 0.0
        self.avg_recognition_time = 0.0
        self.recognition_call_count = 0

    def identify_character(self, char_img: np.ndarray) -> str:
        """
        Label a single character crop.

        Blank templates carry no shape, so while the store is synthesized
        every crop goes straight to the fallback rules.

        Returns:
            Template label, fallback estimate, or the unknown marker
        """
        self.template_manager.ensure_loaded()
        if not self.template_manager.synthesized:
            label, score = match_character(char_img, self.template_manager,
                                           self.settings.match_threshold,
                                           self.settings.template_size)
            if label is not None:
                return label
            log.trace(f"[CAPTCHA] No template match (best score {score:.3f})")

        estimate = estimate_character(char_img, self.rules, DEFAULT_LABEL,
                                      self.settings.foreground_threshold)
        log.trace(f"[CAPTCHA] Fallback estimate: {estimate!r}")
        return estimate if estimate is not None else self.settings.unknown_char

    def read_regions(self, processed: np.ndarray, regions: Sequence[Region]) -> str:
        """
        Label every region of a cleaned image and validate the text.

        Raises:
            ValidationFailure: Assembled text fails the length/alphabet checks
        """
        chars = []
        for index, (start, end) in enumerate(regions):
            char_img = np.ascontiguousarray(processed[:, start:end])
            self.sink.on_character(index, char_img)
            chars.append(self.identify_character(char_img))

        text = "".join(chars)
        if not is_valid_solution(text, self.settings.min_solution_length, self.settings.unknown_char):
            raise ValidationFailure(text)
        return text

    def recognize(self, canonical: np.ndarray) -> RecognitionResult:
        """
        Recognize the text of a canonical (resized, de-rotated) captcha.

        Args:
            canonical: Grayscale image at the canonical resolution

        Returns:
            RecognitionResult with the validated text

        Raises:
            FormatMismatch: Implausible number of character regions
            ValidationFailure: Assembled text is not a plausible solution
        """
        start_time = time.perf_counter() if self.measure_time else 0

        processed = denoise.clean(canonical, self.settings)
        self.sink.on_processed(processed)

        regions = segment_image(processed, self.settings)
        text = self.read_regions(processed, regions)

        if self.measure_time:
            total_time = (time.perf_counter() - start_time) * 1000
            self.last_recognition_time = total_time
            self.recognition_call_count += 1
            self.avg_recognition_time = ((self.avg_recognition_time * (self.recognition_call_count - 1))
                                         + total_time) / self.recognition_call_count
            log.debug(f"[CAPTCHA:timing] Recognition: {total_time:.2f}ms | "
                      f"Avg: {self.avg_recognition_time:.2f}ms | Count: {self.recognition_call_count}")

        return RecognitionResult(text=text, processed=processed, regions=list(regions))

    def get_timing_stats(self) -> dict:
        """Get recognition timing statistics."""
        return {
            'last_recognition_time': self.last_recognition_time,
            'avg_recognition_time': self.avg_recognition_time,
            'recognition_call_count': self.recognition_call_count,
            'measure_time': self.measure_time,
        }

    def get_template_stats(self) -> dict:
        """Get template database statistics."""
        return self.template_manager.get_statistics()
