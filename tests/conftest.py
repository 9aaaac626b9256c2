"""
Shared fixtures for the captcha recognition tests.

Synthetic captchas are white 120x80 canvases with black rectangular glyphs,
which survive thresholding, noise removal and the morphological pass
unchanged.
"""

import base64
import io
from typing import Iterable, Optional, Tuple

import numpy as np
import pytest
from PIL import Image

from captcha_recognition import CaptchaSolver, RecognitionSettings, SolutionCache, TemplateManager

GLYPH_RANGES = [(10, 20), (35, 45), (60, 70), (85, 95)]

# Rotation search off: keeps synthetic glyphs exactly where they were drawn
NO_ROTATION = RecognitionSettings(rotation_angles=(0,))


def make_glyph_image(ranges: Iterable[Tuple[int, int]],
                     rows: Optional[Iterable[Tuple[int, int]]] = None,
                     size: Tuple[int, int] = (120, 80)) -> np.ndarray:
    """White canvas with a black rectangle per column range."""
    width, height = size
    img = np.full((height, width), 255, dtype=np.uint8)
    ranges = list(ranges)
    rows = list(rows) if rows is not None else [(20, 60)] * len(ranges)
    for (start, end), (top, bottom) in zip(ranges, rows):
        img[top:bottom, start:end] = 0
    return img


def encode_image(img: np.ndarray, fmt: str = "PNG", prefix: bool = True) -> str:
    """Encode an array the way the login page embeds it."""
    buffer = io.BytesIO()
    Image.fromarray(img).save(buffer, format=fmt)
    payload = base64.b64encode(buffer.getvalue()).decode("ascii")
    if prefix:
        return f"data:image/{fmt.lower()};base64,{payload}"
    return payload


def png_with_short_idat(img: np.ndarray) -> str:
    """Valid PNG header whose IDAT length field claims a single byte."""
    raw = bytearray(base64.b64decode(encode_image(img, prefix=False)))
    length_at = raw.index(b"IDAT") - 4
    raw[length_at:length_at + 4] = (1).to_bytes(4, "big")
    return "data:image/png;base64," + base64.b64encode(bytes(raw)).decode("ascii")


def png_with_flipped_header(img: np.ndarray) -> str:
    """PNG whose IHDR chunk no longer matches its CRC."""
    raw = bytearray(base64.b64decode(encode_image(img, prefix=False)))
    raw[raw.index(b"IHDR") + 4] ^= 0x01
    return "data:image/png;base64," + base64.b64encode(bytes(raw)).decode("ascii")


def truncated_gif(img: np.ndarray) -> str:
    """GIF cut off inside its image data."""
    raw = base64.b64decode(encode_image(img, fmt="GIF", prefix=False))
    return "data:image/gif;base64," + base64.b64encode(raw[:-40]).decode("ascii")


@pytest.fixture
def glyph_image():
    return make_glyph_image(GLYPH_RANGES)


@pytest.fixture
def encoded_glyphs(glyph_image):
    return encode_image(glyph_image)


@pytest.fixture
def cache_file(tmp_path):
    return tmp_path / "captcha_cache.json"


@pytest.fixture
def templates_dir(tmp_path):
    return tmp_path / "captcha_templates"


@pytest.fixture
def solver(cache_file, templates_dir):
    """Solver with everything pointed into tmp_path and no artifact output."""
    return CaptchaSolver(
        cache=SolutionCache(str(cache_file)),
        template_manager=TemplateManager(str(templates_dir)),
        settings=NO_ROTATION,
    )
