#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Captcha Recognition Module

Solves the base64 image captchas of the chat login page with a heuristic
pipeline: normalization and rotation correction, adaptive thresholding and
noise removal, projection-based segmentation and template matching, all
behind a persistent solution cache.
"""

from .cache import SolutionCache, fingerprint
from .exceptions import CaptchaError, DecodeFailure, FormatMismatch, ValidationFailure
from .recognizer import CharacterRecognizer, is_valid_solution
from .segmentation import segment_image
from .settings import DEFAULT_SETTINGS, RecognitionSettings
from .sinks import ArtifactSink, DiskArtifactSink
from .solver import CaptchaSolver
from .template_manager import TemplateManager
from .matcher import match_character

__all__ = [
    'CaptchaSolver',
    'CharacterRecognizer',
    'SolutionCache',
    'TemplateManager',
    'ArtifactSink',
    'DiskArtifactSink',
    'RecognitionSettings',
    'DEFAULT_SETTINGS',
    'CaptchaError',
    'DecodeFailure',
    'FormatMismatch',
    'ValidationFailure',
    'fingerprint',
    'is_valid_solution',
    'segment_image',
    'match_character',
]
