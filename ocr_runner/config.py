"""
config.py

Configuration module for the OCR runner.

Purpose:
--------
Contains the constants and defaults used across the module: backend
request hints, the media type table used during file collection,
the ignore-list location, and logging format.

Design Principle:
-----------------
Configuration is isolated from business logic.
Per-run values (input pattern, output file, endpoint) live in
schemas.RunSettings; this module only holds defaults.
"""

# -----------------------------
# Vision API
# -----------------------------
LANGUAGE_HINTS = ["en-t-i0-handwrit"]

# -----------------------------
# Document AI
# -----------------------------
DEFAULT_ENDPOINT_PORT = 443
REQUEST_NAME_MARKER = "/projects/"

# -----------------------------
# File collection
# -----------------------------
IGNORE_FILE_NAME = ".ocrignore"
DEFAULT_MIME_TYPE = "application/octet-stream"
MIME_TYPES = {
    ".bmp": "image/bmp",
    ".gif": "image/gif",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".webp": "image/webp",
}

# -----------------------------
# Logging
# -----------------------------
LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# -----------------------------
# Application
# -----------------------------
APPLICATION_NAME = "ocr-runner"
