#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Artifact sinks for the captcha pipeline.

The recognizer reports intermediate images and solved samples to a sink
instead of writing files itself. ArtifactSink ignores everything;
DiskArtifactSink writes debug images and training samples, best effort.
"""

from pathlib import Path

import cv2
import numpy as np

import config
from utils.logging import get_logger

log = get_logger()


class ArtifactSink:
    """Receives pipeline artifacts. The base class discards them."""

    def on_processed(self, image: np.ndarray) -> None:
        """Cleaned canonical image, before segmentation."""

    def on_character(self, index: int, image: np.ndarray) -> None:
        """Crop of the index-th character region."""

    def on_solved(self, text: str, image: np.ndarray) -> None:
        """Validated solution together with its cleaned image."""


NULL_SINK = ArtifactSink()


class DiskArtifactSink(ArtifactSink):
    """Writes debug images and labeled training samples to disk."""

    def __init__(self, debug_dir: str = config.DEBUG_DIR,
                 training_dir: str = config.TRAINING_DIR,
                 save_debug: bool = config.DEFAULT_SAVE_DEBUG,
                 save_training: bool = config.DEFAULT_SAVE_TRAINING):
        self.debug_dir = Path(debug_dir)
        self.training_dir = Path(training_dir)
        self.save_debug = save_debug
        self.save_training = save_training

    def _write(self, path: Path, image: np.ndarray) -> bool:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if cv2.imwrite(str(path), image):
                return True
            log.debug(f"[CAPTCHA:sink] Could not write {path}")
        except (OSError, cv2.error) as e:
            log.debug(f"[CAPTCHA:sink] Could not write {path}: {e}")
        return False

    def on_processed(self, image: np.ndarray) -> None:
        if self.save_debug:
            self._write(self.debug_dir / config.DEBUG_PROCESSED_NAME, image)

    def on_character(self, index: int, image: np.ndarray) -> None:
        if self.save_debug:
            self._write(self.debug_dir / config.DEBUG_CHAR_PATTERN.format(index=index), image)

    def on_solved(self, text: str, image: np.ndarray) -> None:
        # Same text overwrites the previous sample
        if self.save_training and self._write(self.training_dir / f"{text}.png", image):
            log.trace(f"[CAPTCHA:sink] Training sample saved: {text}.png")
