#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Exceptions raised inside the captcha pipeline.

None of these reach the caller of CaptchaSolver.solve(), which maps every
one of them to a ``None`` result.
"""


class CaptchaError(Exception):
    """Base class for captcha pipeline failures."""


class DecodeFailure(CaptchaError):
    """Raised when the encoded image is not valid base64 or not a readable image."""


class FormatMismatch(CaptchaError):
    """Raised when segmentation yields an implausible number of characters."""

    def __init__(self, count: int, minimum: int, maximum: int):
        super().__init__(f"Segmented {count} characters, expected {minimum}..{maximum}")
        self.count = count


class ValidationFailure(CaptchaError):
    """Raised when the assembled text fails the length/alphabet checks."""

    def __init__(self, text: str):
        super().__init__(f"Rejected candidate text: {text!r}")
        self.text = text
