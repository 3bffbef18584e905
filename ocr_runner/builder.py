"""
builder.py

Assembles engine output into the per-image record.
"""

from .schemas import FileDescriptor, ImageRecord, RecognitionResult


def build_image_record(descriptor: FileDescriptor, result: RecognitionResult) -> ImageRecord:
    """Combine a discovered file with its recognition result, preserving order."""
    return ImageRecord(
        filename=descriptor.path,
        size=descriptor.size,
        mime_type=descriptor.mime_type,
        text=result.text,
        paragraphs=list(result.paragraphs),
        words=list(result.words),
    )
