"""
utils.py

Error types, ignore-list handling, and file collection for the OCR runner.

Handles:
- The exception hierarchy shared by every stage of a run
- Loading and parsing the ignore-list file
- Path-separator-aware glob matching for ignore patterns
- Glob expansion into ordered FileDescriptor lists
"""

import glob
import logging
import mimetypes
import os
import re
import stat
from functools import lru_cache
from typing import List, Optional, Pattern, Sequence

from . import config
from .schemas import BatchSummary, FileDescriptor

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")
_SEPARATORS = re.compile("[%s]" % re.escape("/" + os.sep))


class OCRRunnerError(Exception):
    """Base class for all errors raised by the OCR runner."""

    pass


class ConfigError(OCRRunnerError):
    """Raised when a required run parameter is missing or invalid."""

    pass


class DiscoveryError(OCRRunnerError):
    """Raised when input files cannot be discovered."""

    pass


class RecognitionError(OCRRunnerError):
    """Raised when a backend call fails for a single file."""

    pass


class SerializationError(OCRRunnerError):
    """Raised when an ImageRecord cannot be encoded."""

    pass


class OutputWriteError(OCRRunnerError, OSError):
    """Raised when the output file cannot be opened or written."""

    pass


class BatchError(OCRRunnerError):
    """Raised after a full pass when one or more files failed."""

    def __init__(self, summary: BatchSummary):
        super().__init__(
            f"{summary.error_count} of {summary.total} file(s) failed OCR processing"
        )
        self.summary = summary


# -----------------------------
# Ignore list
# -----------------------------


def load_ignore_list(path: str) -> List[str]:
    """
    Load ignore patterns from a newline-delimited file.

    A missing file means nothing is ignored. Any other read failure is
    logged and also treated as an empty list.

    Args:
        path: Location of the ignore file.

    Returns:
        Ordered list of glob patterns.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            contents = f.read()
    except FileNotFoundError:
        logger.debug("No ignore file at %s", path)
        return []
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Couldn't read ignore file %s: %s", path, e)
        return []

    patterns = parse_ignore_list(contents)
    logger.debug("Loaded %d ignore pattern(s) from %s", len(patterns), path)
    return patterns


def parse_ignore_list(contents: str) -> List[str]:
    """Split on line breaks, strip each line and drop the blank ones."""
    globs = []
    for line in _LINE_BREAK.split(contents):
        pattern = line.strip()
        if pattern:
            globs.append(pattern)
    return globs


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> Pattern[str]:
    """
    Translate a glob into a regex where '*' and '?' never cross a '/'.

    Supports '*', '?', '[...]' classes (with '!' or '^' negation) and
    backslash escapes. Raises ValueError on a malformed pattern.
    """
    parts = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        i += 1
        if c == "*":
            parts.append("[^/]*")
        elif c == "?":
            parts.append("[^/]")
        elif c == "\\":
            if i >= n:
                raise ValueError(f"trailing escape in pattern {pattern!r}")
            parts.append(re.escape(pattern[i]))
            i += 1
        elif c == "[":
            negate = i < n and pattern[i] in "!^"
            start = i + 1 if negate else i
            end = pattern.find("]", start)
            if end <= start:
                raise ValueError(f"unterminated or empty class in pattern {pattern!r}")
            body = "".join(
                ch if ch == "-" else re.escape(ch) for ch in pattern[start:end]
            )
            parts.append("[" + ("^" if negate else "") + body + "]")
            i = end + 1
        else:
            parts.append(re.escape(c))

    try:
        return re.compile("".join(parts) + r"\Z", re.DOTALL)
    except re.error as e:
        raise ValueError(f"malformed pattern {pattern!r}: {e}") from e


def match_glob(pattern: str, filename: str) -> bool:
    """Match the whole filename against pattern, treating '/' as a separator."""
    return _compile_glob(pattern).match(filename) is not None


def is_ignorable_file(filename: str, ignore_list: Sequence[str]) -> bool:
    """
    Check a filename against the ignore patterns. First match wins.

    Malformed patterns are logged and skipped.
    """
    for pattern in ignore_list:
        try:
            matches = match_glob(pattern, filename)
        except ValueError as e:
            logger.error(
                "Encountered a malformed glob while checking if a file should be "
                "ignored. Offending glob: %s (%s)",
                pattern,
                e,
            )
            continue

        if matches:
            return True

    return False


# -----------------------------
# File collection
# -----------------------------


def mime_type_for(filename: str) -> str:
    """Resolve the media type declared to the backends for a file."""
    ext = os.path.splitext(filename)[1]
    mime_type = config.MIME_TYPES.get(ext)
    if mime_type:
        return mime_type

    guessed, _ = mimetypes.guess_type(filename)
    return guessed or config.DEFAULT_MIME_TYPE


def collect_files(
    pattern: str,
    ignore_list: Sequence[str],
    extensions: Optional[Sequence[str]] = None,
) -> List[FileDescriptor]:
    """
    Expand the input glob into an ordered list of files to process.

    Args:
        pattern: Glob expression; '**' matches recursively.
        ignore_list: Patterns of files to skip.
        extensions: Optional allow-list of extensions (case-sensitive,
            including the leading dot). When None every extension is kept.

    Returns:
        FileDescriptors in sorted glob order.

    Raises:
        DiscoveryError: If the glob is malformed or a file cannot be stat'ed.
    """
    if not pattern:
        raise DiscoveryError("Glob failed: empty input pattern")

    for segment in _SEPARATORS.split(pattern):
        if segment and segment != "**":
            try:
                _compile_glob(segment)
            except ValueError as e:
                raise DiscoveryError(f"Glob failed for {pattern!r}: {e}") from e

    try:
        matches = sorted(glob.glob(pattern, recursive=True))
    except (OSError, ValueError) as e:
        raise DiscoveryError(f"Glob failed for {pattern!r}: {e}") from e

    allowed = set(extensions) if extensions is not None else None
    files: List[FileDescriptor] = []

    for filename in matches:
        if is_ignorable_file(filename, ignore_list):
            logger.debug("Ignoring %s", filename)
            continue

        try:
            info = os.stat(filename)
        except OSError as e:
            raise DiscoveryError(f"Failed to get file info for {filename}: {e}") from e

        if stat.S_ISDIR(info.st_mode):
            continue

        if allowed is not None and os.path.splitext(filename)[1] not in allowed:
            logger.debug("Skipping %s: extension not allowed", filename)
            continue

        files.append(
            FileDescriptor(
                path=filename,
                size=info.st_size,
                mime_type=mime_type_for(filename),
            )
        )

    return files
