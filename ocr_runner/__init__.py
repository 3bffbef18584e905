"""
OCR Runner

Batch optical character recognition over a glob of image files using
the Google Cloud Vision API or a Google Cloud Document AI processor,
with results written as newline delimited JSON.

Public API:
    process_batch  - Run a complete batch from RunSettings
    BatchRunner    - Sequential runner with per-file failure isolation
    create_engine  - Pick the recognition engine for a run
    ImageRecord    - Per-image output record
    RunSettings    - Per-run configuration
"""

__version__ = "0.2.0"

from .engine import DocumentAIEngine, OCREngine, VisionTextEngine, create_engine
from .ocr_pipeline import BatchRunner, process_batch
from .schemas import Annotation, BatchState, ImageRecord, Rectangle, RunSettings, Vertex

__all__ = [
    "__version__",
    "process_batch",
    "BatchRunner",
    "BatchState",
    "create_engine",
    "OCREngine",
    "VisionTextEngine",
    "DocumentAIEngine",
    "Annotation",
    "ImageRecord",
    "Rectangle",
    "RunSettings",
    "Vertex",
]
