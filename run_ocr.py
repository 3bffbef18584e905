"""
Run OCR over the files matching a glob and write NDJSON results.

Usage:
    python run_ocr.py -i "path/to/images/*.jpg" -o results.ndjson
"""

from ocr_runner.run_ocr import main

if __name__ == "__main__":
    raise SystemExit(main())
