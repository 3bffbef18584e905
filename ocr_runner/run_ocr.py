"""
run_ocr.py

Command line entry point for the OCR runner.

Walks the files matching the input glob, submits each one for text
detection via the Google Cloud Vision API, or via a Document AI
processor when a prediction endpoint is given, and writes the image
information and annotations to a newline delimited JSON file.

Usage:
    python -m ocr_runner -i "scans/*.jpg" -o results.ndjson
    python -m ocr_runner -i "scans/*.pdf" -o results.ndjson --full \
        --endpoint https://us-documentai.googleapis.com/v1/projects/p/locations/us/processors/x:process
"""

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__, config
from .ocr_pipeline import process_batch
from .schemas import RunSettings
from .utils import ConfigError, OCRRunnerError

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=config.APPLICATION_NAME,
        description=(
            "Submit image files for optical character recognition via the Google "
            "Cloud Vision API, or a Document AI processor if a prediction endpoint "
            "is provided, and write the annotations to a newline delimited JSON file."
        ),
    )
    parser.add_argument("-i", "--input", default="", help="Input path glob (required)")
    parser.add_argument("-o", "--output", default="", help="Output file (required)")
    parser.add_argument(
        "--full",
        action="store_true",
        help="Output full details (bounding boxes, orientation, words) to JSON",
    )
    parser.add_argument(
        "--endpoint",
        default="",
        help="Document AI prediction endpoint (optional)",
    )
    parser.add_argument(
        "--ignore-file",
        default=config.IGNORE_FILE_NAME,
        help=f"File of glob patterns to skip (default: {config.IGNORE_FILE_NAME})",
    )
    parser.add_argument(
        "--extensions",
        default=None,
        help="Comma separated extension allow-list, e.g. .jpg,.png (optional)",
    )
    parser.add_argument(
        "--language-hint",
        action="append",
        dest="language_hints",
        default=None,
        help="Vision API language hint, repeatable (default: en-t-i0-handwrit)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Display verbose or debug detail",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=config.LOG_FORMAT,
        datefmt=config.LOG_DATE_FORMAT,
        stream=sys.stderr,
    )


def _parse_extensions(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [ext.strip() for ext in value.split(",") if ext.strip()]


def build_settings(args: argparse.Namespace) -> RunSettings:
    """
    Turn parsed arguments into RunSettings.

    Raises:
        ConfigError: If a required option is missing or invalid.
    """
    if not args.input or not args.output:
        raise ConfigError("Both --input and --output are required")

    try:
        return RunSettings(
            input_path=args.input,
            output_file=args.output,
            full_output=args.full,
            endpoint=args.endpoint or None,
            ignore_file=args.ignore_file,
            extensions=_parse_extensions(args.extensions),
            language_hints=args.language_hints or list(config.LANGUAGE_HINTS),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid arguments: {e}") from e


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    try:
        settings = build_settings(args)
    except ConfigError as e:
        parser.print_usage(sys.stderr)
        logger.error("%s", e)
        return 1

    # Credentials (GOOGLE_APPLICATION_CREDENTIALS) may live in a .env file
    load_dotenv()

    logger.info("%s %s", config.APPLICATION_NAME, __version__)
    logger.info("Arguments")
    logger.info("... Input Path: %s", settings.input_path)
    logger.info("... Output File: %s", settings.output_file)
    logger.info("... Output Full Details: %s", settings.full_output)
    logger.info("... Document AI Prediction Endpoint: %s", settings.endpoint or "")
    logger.info("Begin")

    try:
        summary = process_batch(settings)
    except OCRRunnerError as e:
        logger.error("Image text detection failed: %s", e)
        return 1

    logger.info("Processed %d of %d image(s)", summary.processed, summary.total)
    logger.info("End")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
