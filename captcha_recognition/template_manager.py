#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Template manager for captcha character recognition.

Loads labeled reference images once and keeps them as a read-only table
for the matcher. The label is the first character of the file stem:
``A.png`` and ``A_3f2c91aa.png`` are both templates for ``A``.
"""

import threading
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import cv2
import numpy as np

import config
from utils.logging import get_logger

log = get_logger()


def label_from_stem(stem: str) -> Optional[str]:
    """
    Extract the character label from a template file stem.

    Returns None when the stem does not name a single alphanumeric character.
    """
    if not stem:
        return None
    label = stem[0]
    if not (label.isascii() and label.isalnum()):
        return None
    if len(stem) > 1 and stem[1] != "_":
        return None
    return label


class TemplateManager:
    """Manages character templates for captcha matching."""

    def __init__(self, templates_dir: str = config.TEMPLATES_DIR,
                 template_size: Tuple[int, int] = (config.TEMPLATE_WIDTH, config.TEMPLATE_HEIGHT),
                 alphabet: str = config.TEMPLATE_ALPHABET):
        """
        Initialize template manager. Nothing is read until ensure_loaded().

        Args:
            templates_dir: Directory containing <char>.png templates
            template_size: (width, height) of synthesized blank templates
            alphabet: Characters that get a blank template when none load
        """
        self.templates_dir = Path(templates_dir)
        self.template_size = template_size
        self.alphabet = alphabet
        self._templates: Dict[str, List[np.ndarray]] = {}
        self._lock = threading.Lock()
        self.loaded = False
        self.synthesized = False

    @property
    def templates(self) -> Mapping[str, Tuple[np.ndarray, ...]]:
        """Read-only view of label -> templates"""
        return MappingProxyType({label: tuple(images) for label, images in self._templates.items()})

    def ensure_loaded(self):
        """Load templates on first call; later calls return immediately."""
        if self.loaded:
            return
        with self._lock:
            if self.loaded:
                return
            self._templates = self._load_templates()
            if not self._templates:
                self._templates = self._blank_templates()
                self.synthesized = True
            self.loaded = True

        stats = self.get_statistics()
        if self.synthesized:
            log.warning(f"No character templates in {self.templates_dir} - "
                        f"using {stats['character_count']} blank templates (fallback heuristics only)")
        else:
            log.info(f"Loaded {stats['total_templates']} templates for {stats['character_count']} characters")

    def _load_templates(self) -> Dict[str, List[np.ndarray]]:
        """Read every <char>.png in the templates directory."""
        templates: Dict[str, List[np.ndarray]] = {}

        if not self.templates_dir.is_dir():
            log.warning(f"Templates directory does not exist: {self.templates_dir}")
            try:
                self.templates_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                log.warning(f"Could not create templates directory {self.templates_dir}: {e}")
            return templates

        for template_file in sorted(self.templates_dir.glob("*.png")):
            label = label_from_stem(template_file.stem)
            if label is None:
                log.debug(f"Skipping template with unexpected name: {template_file.name}")
                continue

            template_img = cv2.imread(str(template_file), cv2.IMREAD_GRAYSCALE)
            if template_img is None:
                log.warning(f"Failed to load template: {template_file}")
                continue

            templates.setdefault(label, []).append(template_img)

        for label, images in templates.items():
            log.trace(f"Character '{label}': {len(images)} templates")

        return templates

    def _blank_templates(self) -> Dict[str, List[np.ndarray]]:
        width, height = self.template_size
        blank = np.zeros((height, width), dtype=np.uint8)
        blank.flags.writeable = False
        return {char: [blank] for char in self.alphabet}

    def get_all_characters(self) -> List[str]:
        """Get list of all available character labels."""
        return list(self._templates.keys())

    def get_template_count(self) -> int:
        """Get total number of loaded templates."""
        return sum(len(images) for images in self._templates.values())

    def get_character_count(self) -> int:
        """Get number of unique characters."""
        return len(self._templates)

    def has_character(self, character: str) -> bool:
        """Check if templates exist for a character."""
        return bool(self._templates.get(character))

    def save_template(self, character: str, template_img: np.ndarray,
                      filename: str = None) -> bool:
        """
        Write a new template image to the templates directory.

        The loaded table is not modified; the new file is picked up by the
        next process (or the next TemplateManager instance).

        Args:
            character: Character label
            template_img: Template image (grayscale)
            filename: Optional filename, default <character>.png

        Returns:
            True if the file was written
        """
        if label_from_stem(character) != character:
            log.warning(f"Refusing template for invalid label {character!r}")
            return False

        try:
            self.templates_dir.mkdir(parents=True, exist_ok=True)
            template_path = self.templates_dir / (filename or f"{character}.png")
            if not cv2.imwrite(str(template_path), template_img):
                log.error(f"Failed to save template: {template_path}")
                return False
        except (OSError, cv2.error) as e:
            log.error(f"Error saving template for character '{character}': {e}")
            return False

        log.debug(f"Saved template for character '{character}': {template_path.name}")
        return True

    def get_statistics(self) -> Dict:
        """
        Get statistics about loaded templates.

        Returns:
            Dictionary with template statistics
        """
        total_templates = self.get_template_count()
        character_count = self.get_character_count()

        return {
            'total_templates': total_templates,
            'character_count': character_count,
            'average_templates_per_character': total_templates / character_count if character_count else 0,
            'templates_directory': str(self.templates_dir),
            'loaded': self.loaded,
            'synthesized': self.synthesized,
        }
