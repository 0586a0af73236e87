"""
billscan - Entry Point

Reads the amount and date of a transaction from a payment screenshot.

Example:
    python main.py screenshot.png
    python main.py screenshot.png --report            # free-text layout report
    python main.py screenshot.png --report --layout 3
    python main.py --list-templates
"""

import sys
import logging
import argparse
from datetime import datetime
from typing import Optional

from billscan.ocr import (
    DEBUG_DIR,
    DecodeFailure,
    PatternNotFound,
    TemplateLoadError,
    create_engine,
    save_debug_image,
)
from billscan.settings import engine_config, load_settings, save_settings


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool, log_file: Optional[str]) -> None:
    """Configure logging - output to console and optionally to a file."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='a', encoding='utf-8'))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
    )


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="billscan - read amount and date from payment screenshots"
    )
    parser.add_argument(
        "image",
        nargs="?",
        help="Screenshot to read"
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Settings file (default: config.json)"
    )
    parser.add_argument(
        "--templates", "-t",
        default=None,
        help="Glyph template directory (overrides settings)"
    )
    parser.add_argument(
        "--report", "-r",
        action="store_true",
        help="Print the free-text layout report instead of amount and date"
    )
    parser.add_argument(
        "--layout", "-l",
        type=int,
        default=None,
        help="Only report this layout id (with --report)"
    )
    parser.add_argument(
        "--list-templates",
        action="store_true",
        help="List the loaded template library and exit"
    )
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Write the effective settings (including --templates) back to the settings file"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Save an annotated debug image and log per-band strings"
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write the log to this file"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run one recognition from the command line."""
    args = parse_args(argv)
    settings = load_settings(args.config)
    debug_mode = args.debug or settings.get("debug_enabled", False)
    setup_logging(debug_mode, args.log_file)

    if args.templates:
        settings["template_dir"] = args.templates
    if args.save_config:
        save_settings(settings, args.config)

    engine = create_engine("template", **engine_config(settings))

    try:
        if args.list_templates:
            engine.reload_templates()
            for label, source in engine.store.snapshot().entries():
                print(f"{label}\t{source}")
            return 0

        if not args.image:
            logger.error("No image given")
            return 2

        if args.report:
            print(engine.describe_layouts(args.image, args.layout))
            return 0

        if debug_mode:
            report = engine.scan(args.image)
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            save_debug_image(args.image, report, DEBUG_DIR / f"debug_{stamp}.png")
            if not report.record.is_complete:
                raise PatternNotFound(record=report.record)
            record = report.record
        else:
            record = engine.recognize_band(args.image)
        print(f"{record.amount:.2f}\t{record.timestamp.isoformat()}")
        return 0

    except (DecodeFailure, TemplateLoadError, PatternNotFound) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
