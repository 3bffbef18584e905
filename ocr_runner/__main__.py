"""Entry point for running the OCR runner as a module.

Usage:
    python -m ocr_runner -i PATH -o FILE [options]
"""
from .run_ocr import main

if __name__ == "__main__":
    raise SystemExit(main())
