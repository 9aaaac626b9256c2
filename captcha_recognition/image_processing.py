#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Image normalization for captcha recognition.

Decodes the base64 payload served in the login page, converts it to a
grayscale canonical image and compensates the random rotation applied by
the captcha generator.
"""

import base64
import binascii
import io
import struct
from typing import Callable, Iterable, Tuple

import cv2
import numpy as np
from PIL import Image

from .exceptions import DecodeFailure
from .settings import DEFAULT_SETTINGS, RecognitionSettings
from utils.logging import get_logger

log = get_logger()


def strip_mime_prefix(encoded_image: str) -> str:
    """
    Return the base64 payload of an optionally MIME-prefixed image string.

    Both ``data:image/png;base64,AAAA`` and a bare ``AAAA`` yield ``AAAA``.
    """
    return encoded_image.split(",")[-1].strip()


def decode_image(encoded_image: str) -> np.ndarray:
    """
    Decode a (MIME-prefixed) base64 PNG or GIF into a grayscale array.

    Args:
        encoded_image: Contents of the img ``src`` attribute

    Returns:
        2-D uint8 array (height, width)

    Raises:
        DecodeFailure: Payload is not valid base64 or not a readable image
    """
    payload = "".join(strip_mime_prefix(encoded_image).split())
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure(f"Invalid base64 payload: {e}") from e

    if not raw:
        raise DecodeFailure("Empty image payload")

    try:
        with Image.open(io.BytesIO(raw)) as img:
            # GIF captchas are single frame; Pillow reads the first one
            img.load()
            gray = img.convert("L")
    except (OSError, ValueError, SyntaxError, EOFError, struct.error,
            Image.DecompressionBombError) as e:
        # Pillow reports broken chunks and truncated frames with all of these
        raise DecodeFailure(f"Unreadable image data: {e}") from e

    return np.asarray(gray, dtype=np.uint8).copy()


def resize_canonical(gray: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    """Resize to the canonical (width, height) using area averaging."""
    if gray.shape[1] == size[0] and gray.shape[0] == size[1]:
        return gray.copy()
    return cv2.resize(gray, size, interpolation=cv2.INTER_AREA)


def rotate_image(img: np.ndarray, angle: float) -> np.ndarray:
    """
    Rotate image about its centre by the given angle.

    The output keeps the input size; uncovered corners are filled by
    replicating the border so they do not add artificial contrast.

    Args:
        img: Input grayscale image
        angle: Rotation angle in degrees (positive = counter-clockwise)

    Returns:
        Rotated image
    """
    if angle == 0:
        return img.copy()

    height, width = img.shape[:2]
    center = ((width - 1) / 2.0, (height - 1) / 2.0)
    rotation_matrix = cv2.getRotationMatrix2D(center, angle, 1.0)

    return cv2.warpAffine(img, rotation_matrix, (width, height),
                          flags=cv2.INTER_LINEAR, borderMode=cv2.BORDER_REPLICATE)


def clarity_score(img: np.ndarray) -> float:
    """
    Variance of the intensity histogram.

    Higher means better separated foreground/background. Only meaningful
    as a ranking between candidates of the same image.
    """
    hist = np.bincount(img.ravel(), minlength=256).astype(np.float64)
    total = hist.sum()
    if total == 0:
        return 0.0

    levels = np.arange(256, dtype=np.float64)
    mean = (levels * hist).sum() / total
    return float((((levels - mean) ** 2) * hist).sum() / total)


def correct_rotation(img: np.ndarray, angles: Iterable[float],
                     scorer: Callable[[np.ndarray], float] = clarity_score) -> Tuple[np.ndarray, float]:
    """
    Try every candidate angle and keep the clearest rendering.

    The unrotated image is the baseline; a candidate replaces the current
    best only if it scores strictly higher.

    Returns:
        Tuple of (best_image, best_angle)
    """
    best_img = img
    best_angle = 0
    best_score = scorer(img)

    for angle in angles:
        if angle == 0:
            continue
        candidate = rotate_image(img, angle)
        score = scorer(candidate)
        log.trace(f"[CAPTCHA:rotation] angle={angle:+} score={score:.2f}")
        if score > best_score:
            best_img, best_angle, best_score = candidate, angle, score

    return best_img, best_angle


def normalize(encoded_image: str, settings: RecognitionSettings = DEFAULT_SETTINGS) -> np.ndarray:
    """
    Decode, grayscale, resize and de-rotate an encoded captcha.

    Raises:
        DecodeFailure: See decode_image()
    """
    gray = decode_image(encoded_image)
    log.debug(f"[CAPTCHA] Decoded image {gray.shape[1]}x{gray.shape[0]}")

    sized = resize_canonical(gray, settings.canonical_size)
    rotated, angle = correct_rotation(sized, settings.rotation_angles)
    log.debug(f"[CAPTCHA] Rotation correction: {angle:+} degrees")
    return rotated
