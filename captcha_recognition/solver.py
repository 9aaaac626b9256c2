#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Captcha solver service.

Single entry point used by the login flow: hand in the ``src`` attribute of
the captcha image, get the text back or None. One CaptchaSolver owns the
cache and the template store; construct it once and share it.
"""

import threading
import time
from typing import Optional

import config
from . import image_processing
from .cache import SolutionCache, fingerprint
from .exceptions import CaptchaError, DecodeFailure
from .recognizer import CharacterRecognizer
from .settings import DEFAULT_SETTINGS, RecognitionSettings
from .sinks import NULL_SINK, ArtifactSink
from .template_manager import TemplateManager
from utils.logging import get_logger

log = get_logger()


class CaptchaSolver:
    """Cached captcha recognition pipeline."""

    def __init__(self, cache: Optional[SolutionCache] = None,
                 template_manager: Optional[TemplateManager] = None,
                 settings: RecognitionSettings = DEFAULT_SETTINGS,
                 sink: ArtifactSink = NULL_SINK,
                 measure_time: bool = config.DEFAULT_MEASURE_TIME):
        """
        Args:
            cache: Solution cache (default: persisted to config.CACHE_FILE)
            template_manager: Template store (default: config.TEMPLATES_DIR)
            settings: Pipeline constants
            sink: Receives debug artifacts and training samples
            measure_time: Log per-stage timings
        """
        self.cache = cache if cache is not None else SolutionCache()
        self.template_manager = template_manager if template_manager is not None else TemplateManager(
            template_size=settings.template_size)
        self.settings = settings
        self.sink = sink
        self.measure_time = measure_time
        self.recognizer = CharacterRecognizer(self.template_manager, settings, sink,
                                              measure_time=measure_time)

        self._init_lock = threading.Lock()
        self._initialized = False
        self._stats_lock = threading.Lock()
        self._stats = {'cache_hits': 0, 'cache_misses': 0, 'solved': 0, 'failed': 0}

    @property
    def initialized(self) -> bool:
        return self._initialized

    def ensure_initialized(self):
        """Load the persisted cache and the templates once."""
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            self.cache.load()
            self.template_manager.ensure_loaded()
            self._initialized = True

    def _count(self, key: str):
        with self._stats_lock:
            self._stats[key] += 1

    def solve(self, encoded_image: str) -> Optional[str]:
        """
        Recognize the text of a base64 captcha.

        Args:
            encoded_image: Optionally MIME-prefixed base64 PNG or GIF

        Returns:
            Recognized text, or None when the image cannot be decoded,
            segments into an implausible character count, or the text
            fails validation
        """
        self.ensure_initialized()

        key = fingerprint(encoded_image)
        cached = self.cache.get(key)
        if cached is not None:
            self._count('cache_hits')
            log.info(f"[CAPTCHA:cache] Cache hit: {cached}")
            return cached
        self._count('cache_misses')

        start_time = time.perf_counter()
        try:
            canonical = image_processing.normalize(encoded_image, self.settings)
            result = self.recognizer.recognize(canonical)
        except DecodeFailure as e:
            self._count('failed')
            log.warning(f"[CAPTCHA] Could not decode captcha image: {e}")
            return None
        except CaptchaError as e:
            self._count('failed')
            log.info(f"[CAPTCHA] No solution: {e}")
            return None

        self._count('solved')
        if self.cache.insert(key, result.text):
            log.debug(f"[CAPTCHA:cache] Stored {key} -> {result.text} ({len(self.cache)} entries)")
        self.sink.on_solved(result.text, result.processed)

        if self.measure_time:
            log.debug(f"[CAPTCHA:timing] Solve: {(time.perf_counter() - start_time) * 1000:.2f}ms")
        log.info(f"[CAPTCHA] Solved: {result.text}")
        return result.text

    def flush(self) -> bool:
        """Persist the cache regardless of the flush cadence."""
        return self.cache.flush()

    def get_stats(self) -> dict:
        """Counters, cache size and template statistics."""
        with self._stats_lock:
            stats = dict(self._stats)
        stats['cache_size'] = len(self.cache)
        stats['templates'] = self.template_manager.get_statistics()
        stats['timing'] = self.recognizer.get_timing_stats()
        return stats
