#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Persistent solution cache keyed by captcha fingerprint.

The whole mapping lives in memory and is mirrored to a JSON file. The file
is rewritten only on every Nth new entry, always through a temporary file
and an atomic rename, so a crash loses at most the unflushed entries.
"""

import hashlib
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

import config
from .image_processing import strip_mime_prefix
from utils.logging import get_logger

log = get_logger()


def fingerprint(encoded_image: str) -> str:
    """
    Stable digest of the encoded captcha text, used as cache key.

    Only the base64 payload is hashed, so the same image with or without
    its data URI prefix maps to the same key.
    """
    payload = strip_mime_prefix(encoded_image)
    return hashlib.md5(payload.encode("utf-8"), usedforsecurity=False).hexdigest()[:16]


class SolutionCache:
    """Thread-safe fingerprint -> text mapping with periodic persistence."""

    def __init__(self, cache_file: Optional[str] = config.CACHE_FILE,
                 flush_interval: int = config.CACHE_FLUSH_INTERVAL):
        """
        Args:
            cache_file: JSON file to load from and flush to; None keeps the cache in memory only
            flush_interval: Flush when the size after an insert is a multiple of this
        """
        self.cache_file = Path(cache_file) if cache_file else None
        self.flush_interval = flush_interval
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def load(self) -> int:
        """
        Replace the in-memory entries with the persisted ones.

        A missing or unreadable file leaves the cache empty.

        Returns:
            Number of entries loaded
        """
        if self.cache_file is None or not self.cache_file.exists():
            return 0

        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.warning(f"[CAPTCHA:cache] Ignoring unreadable cache file {self.cache_file}: {e}")
            return 0

        if not isinstance(data, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
            log.warning(f"[CAPTCHA:cache] Ignoring cache file with unexpected layout: {self.cache_file}")
            return 0

        with self._lock:
            self._entries = dict(data)
        log.info(f"[CAPTCHA:cache] Loaded {len(data)} cached solutions")
        return len(data)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def insert(self, key: str, text: str) -> bool:
        """
        Add a solution. Existing keys are left untouched.

        Returns:
            True if the entry was new
        """
        with self._lock:
            if key in self._entries:
                return False
            self._entries[key] = text
            if len(self._entries) % self.flush_interval == 0:
                self._flush_locked()
            return True

    def flush(self) -> bool:
        """Persist all entries now."""
        with self._lock:
            return self._flush_locked()

    def _flush_locked(self) -> bool:
        if self.cache_file is None:
            return False

        tmp_path = None
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{self.cache_file.name}.",
                                            dir=self.cache_file.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._entries, f)
            os.replace(tmp_path, self.cache_file)
        except OSError as e:
            log.warning(f"[CAPTCHA:cache] Could not persist cache to {self.cache_file}: {e}")
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            return False

        log.debug(f"[CAPTCHA:cache] Flushed {len(self._entries)} entries to {self.cache_file}")
        return True

    def snapshot(self) -> Dict[str, str]:
        """Copy of the current entries."""
        with self._lock:
            return dict(self._entries)
