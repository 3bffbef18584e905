"""
ocr_pipeline.py

Main orchestrator for the OCR runner.

Coordinates the full pipeline: collection -> recognition -> record
building -> output. Files are processed strictly one after another;
a failure on one file is logged and counted, and the batch moves on.
"""

import logging
from typing import Optional, Sequence

from .builder import build_image_record
from .engine import OCREngine, create_engine
from .schemas import BatchState, BatchSummary, FileDescriptor, RunSettings
from .utils import (
    BatchError,
    DiscoveryError,
    OutputWriteError,
    collect_files,
    load_ignore_list,
)
from .writer import OutputWriter

logger = logging.getLogger(__name__)


class BatchRunner:
    """
    Runs one pass over the input files with a single engine.

    The engine is chosen once by the caller; the runner never re-checks
    it per file. No retries are attempted.
    """

    def __init__(
        self,
        engine: OCREngine,
        full_output: bool = False,
        log: Optional[logging.Logger] = None,
    ):
        self.engine = engine
        self.full_output = full_output
        self.logger = log or logger
        self.state = BatchState.IDLE
        self.error_count = 0

    def run(
        self,
        pattern: str,
        output_file: str,
        ignore_list: Sequence[str] = (),
        extensions: Optional[Sequence[str]] = None,
    ) -> BatchSummary:
        """
        Process every file matched by pattern and write one line per success.

        Args:
            pattern: Input glob expression.
            output_file: NDJSON file to create or truncate.
            ignore_list: Glob patterns of files to skip.
            extensions: Optional extension allow-list.

        Returns:
            BatchSummary for a run where every file succeeded.

        Raises:
            DiscoveryError: If collection fails or finds nothing.
            OutputWriteError: If the output file cannot be created.
            BatchError: After the full pass, if any file failed.
        """
        self.state = BatchState.COLLECTING
        self.error_count = 0

        try:
            files = collect_files(pattern, ignore_list, extensions)
        except DiscoveryError:
            self.state = BatchState.FAILED
            self.logger.error("Failed to populate images list from provided input path")
            raise

        if not files:
            self.state = BatchState.FAILED
            raise DiscoveryError("No image files found, check the input path provided")

        self.logger.info("Populating image file list complete: %d image(s)", len(files))

        try:
            writer = OutputWriter.open(output_file)
        except OutputWriteError:
            self.state = BatchState.FAILED
            raise

        self.state = BatchState.PROCESSING
        processed = 0
        with writer:
            for descriptor in files:
                if self._process_file(descriptor, writer):
                    processed += 1

        self.state = BatchState.FAILED if self.error_count > 0 else BatchState.DONE
        summary = BatchSummary(
            total=len(files),
            processed=processed,
            error_count=self.error_count,
            state=self.state,
        )

        if self.error_count > 0:
            raise BatchError(summary)
        return summary

    def _process_file(self, descriptor: FileDescriptor, writer: OutputWriter) -> bool:
        self.logger.info(
            "Image: %s (size=%d, mime_type=%s)",
            descriptor.path,
            descriptor.size,
            descriptor.mime_type,
        )

        try:
            result = self.engine.recognize(descriptor)
            self.logger.debug("... Text: %s", result.text)
            record = build_image_record(descriptor, result)
            writer.write_record(record, full=self.full_output)
        except Exception as e:
            self.logger.error(
                "%s processing failed for %s: %s", self.engine.name, descriptor.path, e
            )
            self.error_count += 1
            return False

        return True


def process_batch(
    settings: RunSettings,
    engine: Optional[OCREngine] = None,
    log: Optional[logging.Logger] = None,
) -> BatchSummary:
    """
    Run a complete batch from RunSettings.

    Loads the ignore list once, selects the engine (unless one is
    supplied) and runs the batch.
    """
    ignore_list = load_ignore_list(settings.ignore_file)
    if engine is None:
        engine = create_engine(settings)
    (log or logger).info("Using %s for text detection", engine.name)

    runner = BatchRunner(engine, full_output=settings.full_output, log=log)
    return runner.run(
        settings.input_path,
        settings.output_file,
        ignore_list=ignore_list,
        extensions=settings.extensions,
    )
