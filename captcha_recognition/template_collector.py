#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Template collection from solved captcha samples.

Every solved captcha is stored as ``<text>.png`` (the cleaned canonical
image). Once the text of a sample has been checked, its regions can be cut
out again and saved as character templates.
"""

from pathlib import Path
from typing import Dict, Set

import cv2
import numpy as np

import config
from .exceptions import FormatMismatch
from .segmentation import segment_image
from .settings import DEFAULT_SETTINGS, RecognitionSettings
from .template_manager import TemplateManager, label_from_stem
from utils.logging import get_logger

log = get_logger()


class TemplateCollector:
    """Turns labeled training samples into per-character templates."""

    def __init__(self, templates_dir: str = config.TEMPLATES_DIR,
                 settings: RecognitionSettings = DEFAULT_SETTINGS,
                 overwrite: bool = False):
        """
        Args:
            templates_dir: Directory to save character templates
            settings: Segmentation constants and template size
            overwrite: Replace templates that already exist on disk
        """
        self.settings = settings
        self.overwrite = overwrite
        self.template_manager = TemplateManager(templates_dir, settings.template_size)

        # One template per character; track what is on disk already
        self.collected_labels: Set[str] = set()
        if self.template_manager.templates_dir.is_dir():
            for path in self.template_manager.templates_dir.glob("*.png"):
                label = label_from_stem(path.stem)
                if label is not None:
                    self.collected_labels.add(label)
        self.stats = {'processed': 0, 'collected': 0, 'skipped': 0, 'errors': 0}

    def collect_from_image(self, processed_img: np.ndarray, label: str) -> int:
        """
        Cut one template per character out of a labeled sample.

        Args:
            processed_img: Cleaned canonical image of a solved captcha
            label: Its text (one character per region)

        Returns:
            Number of templates saved
        """
        if config.UNKNOWN_CHAR in label or not all(label_from_stem(c) == c for c in label):
            log.debug(f"Skipping sample with unusable label: {label!r}")
            self.stats['skipped'] += 1
            return 0

        try:
            regions = segment_image(processed_img, self.settings)
        except FormatMismatch as e:
            log.debug(f"Skipping sample {label!r}: {e}")
            self.stats['skipped'] += 1
            return 0

        if len(regions) != len(label):
            log.debug(f"Skipping sample {label!r}: {len(regions)} regions for {len(label)} characters")
            self.stats['skipped'] += 1
            return 0

        saved = 0
        for char, (start, end) in zip(label, regions):
            if char in self.collected_labels and not self.overwrite:
                continue
            crop = cv2.resize(np.ascontiguousarray(processed_img[:, start:end]),
                              self.settings.template_size, interpolation=cv2.INTER_AREA)
            if self.template_manager.save_template(char, crop):
                self.collected_labels.add(char)
                saved += 1

        self.stats['collected'] += saved
        return saved

    def collect_from_directory(self, training_dir: str = config.TRAINING_DIR) -> Dict[str, int]:
        """
        Process every ``<text>.png`` sample in the training directory.

        Returns:
            Dictionary with processing statistics
        """
        training_path = Path(training_dir)
        samples = sorted(training_path.glob("*.png")) if training_path.is_dir() else []
        if not samples:
            log.warning(f"No training samples found in: {training_dir}")
            return dict(self.stats)

        log.info(f"Found {len(samples)} training samples")
        for sample in samples:
            img = cv2.imread(str(sample), cv2.IMREAD_GRAYSCALE)
            if img is None:
                log.warning(f"Failed to load sample: {sample}")
                self.stats['errors'] += 1
                continue

            self.stats['processed'] += 1
            saved = self.collect_from_image(img, sample.stem)
            if saved:
                log.info(f"  {sample.name}: {saved} new templates")

        return dict(self.stats)
