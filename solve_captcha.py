#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Solve a captcha from the command line.

Reads the image ``src`` value (optionally ``data:image/...;base64,`` prefixed)
from a file or stdin and prints the recognized text. Raw PNG/GIF files are
accepted too and encoded on the fly.
"""

import argparse
import base64
import sys
from pathlib import Path

import config
from captcha_recognition import CaptchaSolver, DiskArtifactSink, SolutionCache, TemplateManager
from utils.logging import get_logger, setup_logging

log = get_logger()

_IMAGE_MAGIC = (b"\x89PNG", b"GIF87a", b"GIF89a")


def read_encoded_image(source: str) -> str:
    """Return the encoded captcha from a file path, or stdin for '-'."""
    if source == "-":
        return sys.stdin.read().strip()

    raw = Path(source).read_bytes()
    if raw.startswith(_IMAGE_MAGIC):
        return base64.b64encode(raw).decode("ascii")
    return raw.decode("utf-8").strip()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Solve a base64 image captcha")
    parser.add_argument("source", nargs="?", default="-",
                        help="File with the encoded image (or a PNG/GIF file); '-' reads stdin")
    parser.add_argument("--cache-file", default=config.CACHE_FILE,
                        help=f"Solution cache (default: {config.CACHE_FILE})")
    parser.add_argument("--no-cache", action="store_true", help="Do not read or write the cache file")
    parser.add_argument("--templates-dir", default=config.TEMPLATES_DIR,
                        help=f"Character templates (default: {config.TEMPLATES_DIR})")
    parser.add_argument("--training-dir", default=config.TRAINING_DIR,
                        help=f"Where solved samples are stored (default: {config.TRAINING_DIR})")
    parser.add_argument("--debug-dir", default=config.DEBUG_DIR,
                        help=f"Where debug images are written (default: {config.DEBUG_DIR})")
    parser.add_argument("--no-debug", action="store_true", help="Do not write debug images")
    parser.add_argument("--no-training", action="store_true", help="Do not store solved samples")
    parser.add_argument("--log-file", action="store_true", help="Also write a session log file")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--verbose", action="store_true", help="Developer logs")
    mode.add_argument("--debug", action="store_true", help="Ultra-detailed logs")
    args = parser.parse_args(argv)

    log_mode = 'debug' if args.debug else 'verbose' if args.verbose or config.DEFAULT_VERBOSE else 'customer'
    setup_logging(log_mode, log_to_file=args.log_file)

    try:
        encoded = read_encoded_image(args.source)
    except (OSError, UnicodeDecodeError) as e:
        log.error(f"Could not read captcha from {args.source}: {e}")
        return 2

    solver = CaptchaSolver(
        cache=SolutionCache(None if args.no_cache else args.cache_file),
        template_manager=TemplateManager(args.templates_dir),
        sink=DiskArtifactSink(args.debug_dir, args.training_dir,
                              save_debug=not args.no_debug, save_training=not args.no_training),
    )

    text = solver.solve(encoded)
    solver.flush()
    if text is None:
        log.error("Captcha could not be solved")
        return 1

    print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
