#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Independent template learning script.

Turns solved captcha samples (captcha_training/<text>.png) into character
templates (captcha_templates/<char>.png). Check the sample names first:
a wrongly solved sample produces wrong templates.
"""

import argparse
import shutil
import sys
from pathlib import Path

import config
from captcha_recognition.template_collector import TemplateCollector
from captcha_recognition.template_manager import label_from_stem
from utils import get_logger, log_section, setup_logging

log = get_logger()


def analyze_character_coverage(templates_dir: str = config.TEMPLATES_DIR):
    """
    Report which alphabet characters have no template yet.

    Args:
        templates_dir: Directory containing character templates
    """
    char_counts = {}
    for template_file in Path(templates_dir).glob("*.png"):
        label = label_from_stem(template_file.stem)
        if label is not None:
            char_counts[label] = char_counts.get(label, 0) + 1

    if not char_counts:
        log.warning("No template files found")
        return

    missing_chars = sorted(set(config.TEMPLATE_ALPHABET) - set(char_counts))
    log_section(log, "Character coverage", {
        "Total templates": sum(char_counts.values()),
        "Unique characters": len(char_counts),
        "Missing characters": "".join(missing_chars) or "-",
    })


def main():
    """Main function for template learning script."""
    parser = argparse.ArgumentParser(
        description="Learn character templates from solved captcha samples",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Learn templates from the default training directory
  python learn_templates.py

  # Learn with custom directories, replacing existing templates
  python learn_templates.py --training-dir samples --templates-dir templates --overwrite

  # Analyze coverage only
  python learn_templates.py --analyze-only
        """
    )

    parser.add_argument("--training-dir", default=config.TRAINING_DIR,
                        help=f"Directory containing solved samples (default: {config.TRAINING_DIR})")
    parser.add_argument("--templates-dir", default=config.TEMPLATES_DIR,
                        help=f"Directory to save character templates (default: {config.TEMPLATES_DIR})")
    parser.add_argument("--overwrite", action="store_true",
                        help="Replace templates that already exist")
    parser.add_argument("--analyze-only", action="store_true",
                        help="Only analyze existing templates without learning new ones")
    parser.add_argument("--clear-templates", action="store_true",
                        help="Clear existing templates before learning new ones")
    parser.add_argument("--verbose", action="store_true", help="Developer logs")

    args = parser.parse_args()
    setup_logging('verbose' if args.verbose else 'customer', log_to_file=False)

    if args.clear_templates:
        templates_path = Path(args.templates_dir)
        if templates_path.exists():
            shutil.rmtree(templates_path)
            log.info(f"Cleared existing templates: {templates_path}")

    if not args.analyze_only:
        log.info(f"Learning templates from: {args.training_dir}")
        collector = TemplateCollector(args.templates_dir, overwrite=args.overwrite)
        stats = collector.collect_from_directory(args.training_dir)
        log_section(log, "Template learning complete", {
            "Processed samples": stats['processed'],
            "Templates collected": stats['collected'],
            "Skipped samples": stats['skipped'],
            "Errors": stats['errors'],
        })

    analyze_character_coverage(args.templates_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
