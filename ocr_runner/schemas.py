"""
schemas.py

Pydantic models for the OCR runner.

Covers the file descriptors produced by collection, the normalized
annotations produced by the engines, the two output record shapes
(full and compact), and the per-run settings.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import config


class FileDescriptor(BaseModel):
    """A candidate file discovered by collection."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path as returned by the glob expansion")
    size: int = Field(..., ge=0, description="File size in bytes")
    mime_type: str = Field(..., description="Declared media type")


class Vertex(BaseModel):
    """Single polygon vertex in pixel coordinates."""

    model_config = ConfigDict(frozen=True)

    x: int = 0
    y: int = 0


class Rectangle(BaseModel):
    """Axis-aligned bounding rectangle."""

    model_config = ConfigDict(frozen=True)

    min_x: int = 0
    min_y: int = 0
    max_x: int = 0
    max_y: int = 0


class Annotation(BaseModel):
    """One recognized paragraph or word."""

    model_config = ConfigDict(frozen=True)

    bounding_box: Rectangle = Field(default_factory=Rectangle)
    orientation: int = Field(default=0, description="One of 0, 90, 180, 270")
    confidence: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Recognition confidence (0.0 to 1.0)"
    )
    text: str = Field(default="", description="Recognized text")

    @field_validator("orientation")
    @classmethod
    def _check_orientation(cls, value: int) -> int:
        if value not in (0, 90, 180, 270):
            raise ValueError(f"orientation must be 0, 90, 180 or 270, got {value}")
        return value


class RecognitionResult(BaseModel):
    """Normalized output of a single engine call."""

    text: str = Field(default="", description="Document-level text")
    paragraphs: List[Annotation] = Field(default_factory=list)
    words: List[Annotation] = Field(default_factory=list)


class ImageRecord(BaseModel):
    """Full per-image record written in full output mode."""

    model_config = ConfigDict(frozen=True)

    filename: str
    size: int = Field(..., ge=0)
    mime_type: str
    text: str = ""
    paragraphs: List[Annotation] = Field(default_factory=list)
    words: List[Annotation] = Field(default_factory=list)


class CompactParagraph(BaseModel):
    model_config = ConfigDict(frozen=True)

    confidence: float
    text: str


class CompactRecord(BaseModel):
    """Per-image record written in compact output mode (no geometry, no words)."""

    model_config = ConfigDict(frozen=True)

    filename: str
    size: int
    text: str
    paragraphs: List[CompactParagraph] = Field(default_factory=list)


class RunSettings(BaseModel):
    """Values that configure a single batch run."""

    input_path: str = Field(..., description="Glob expression selecting input files")
    output_file: str = Field(..., description="NDJSON output file, truncated on open")
    full_output: bool = False
    endpoint: Optional[str] = Field(
        default=None, description="Document AI prediction endpoint URL"
    )
    ignore_file: str = config.IGNORE_FILE_NAME
    extensions: Optional[List[str]] = Field(
        default=None, description="Extension allow-list, e.g. ['.jpg', '.png']"
    )
    language_hints: List[str] = Field(
        default_factory=lambda: list(config.LANGUAGE_HINTS)
    )

    @field_validator("input_path", "output_file")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("endpoint")
    @classmethod
    def _blank_endpoint_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class BatchState(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class BatchSummary(BaseModel):
    """Aggregate outcome of a batch run."""

    total: int = 0
    processed: int = 0
    error_count: int = 0
    state: BatchState = BatchState.IDLE

    @property
    def ok(self) -> bool:
        return self.error_count == 0 and self.state == BatchState.DONE
