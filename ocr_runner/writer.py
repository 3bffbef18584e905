"""
writer.py

Newline-delimited JSON output for the OCR runner.

Each record is written as a single line and flushed immediately, so a
run interrupted part way leaves every completed record on disk.
"""

import logging
from typing import IO, Optional

from .schemas import CompactParagraph, CompactRecord, ImageRecord
from .utils import OutputWriteError, SerializationError

logger = logging.getLogger(__name__)


def to_compact_record(record: ImageRecord) -> CompactRecord:
    """Drop geometry and words, keeping paragraph confidence and text."""
    return CompactRecord(
        filename=record.filename,
        size=record.size,
        text=record.text,
        paragraphs=[
            CompactParagraph(confidence=p.confidence, text=p.text)
            for p in record.paragraphs
        ],
    )


def serialize_record(record: ImageRecord, full: bool = False) -> str:
    """
    Encode a record as a single JSON line (without the newline).

    Raises:
        SerializationError: If the record cannot be encoded.
    """
    try:
        if full:
            return record.model_dump_json()
        return to_compact_record(record).model_dump_json()
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to encode {record.filename}: {e}") from e


class OutputWriter:
    """Owns the output stream for the duration of a run."""

    def __init__(self, stream: IO[str], path: Optional[str] = None):
        self._stream = stream
        self.path = path
        self.records_written = 0

    @classmethod
    def open(cls, path: str) -> "OutputWriter":
        """
        Create or truncate the output file.

        Raises:
            OutputWriteError: If the file cannot be created.
        """
        try:
            stream = open(path, "w", encoding="utf-8")
        except OSError as e:
            raise OutputWriteError(f"Failed to create output file {path}: {e}") from e
        logger.debug("Opened output file %s", path)
        return cls(stream, path=path)

    def write_record(self, record: ImageRecord, full: bool = False) -> None:
        """
        Append one record as one line and flush it.

        Raises:
            SerializationError: If the record cannot be encoded.
            OutputWriteError: If the line cannot be written.
        """
        line = serialize_record(record, full=full)
        try:
            self._stream.write(line + "\n")
            self._stream.flush()
        except OSError as e:
            raise OutputWriteError(f"Failed to write to output file: {e}") from e
        self.records_written += 1

    def close(self) -> None:
        try:
            self._stream.close()
        except OSError as e:
            logger.error("Failed to close output file %s: %s", self.path, e)

    def __enter__(self) -> "OutputWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
