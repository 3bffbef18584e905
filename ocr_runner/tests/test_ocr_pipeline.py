"""
Tests for the batch runner.

A stub engine stands in for the network backends.
"""

import json
import logging
import os

import pytest
from pydantic import ValidationError

from ocr_runner.engine import OCREngine
from ocr_runner.ocr_pipeline import BatchRunner, BatchState, process_batch
from ocr_runner.schemas import (
    Annotation,
    BatchSummary,
    ImageRecord,
    RecognitionResult,
    Rectangle,
    RunSettings,
)
from ocr_runner.utils import BatchError, DiscoveryError, OutputWriteError, RecognitionError


class StubEngine(OCREngine):
    """Returns one paragraph and one word per file; fails for chosen names."""

    name = "Stub"

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []

    def recognize(self, descriptor):
        name = os.path.basename(descriptor.path)
        self.calls.append(name)
        if name in self.fail_on:
            raise RecognitionError(f"backend rejected {name}")
        annotation = Annotation(
            bounding_box=Rectangle(min_x=1, min_y=2, max_x=3, max_y=4),
            orientation=90,
            confidence=0.5,
            text=f"text of {name}",
        )
        return RecognitionResult(
            text=f"text of {name}\n", paragraphs=[annotation], words=[annotation]
        )


@pytest.fixture
def three_images(tmp_path):
    folder = tmp_path / "images"
    folder.mkdir()
    for name in ("1.jpg", "2.jpg", "3.jpg"):
        (folder / name).write_bytes(b"jpeg-bytes")
    return folder


def _read_lines(path):
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f.read().splitlines()]


class TestBatchRunner:
    def test_all_files_succeed(self, three_images, tmp_path):
        out = tmp_path / "out.ndjson"
        runner = BatchRunner(StubEngine())

        summary = runner.run(str(three_images / "*.jpg"), str(out))

        assert summary.ok
        assert summary.total == 3
        assert summary.processed == 3
        assert summary.state is BatchState.DONE
        assert runner.state == BatchState.DONE
        lines = _read_lines(out)
        assert [os.path.basename(line["filename"]) for line in lines] == [
            "1.jpg",
            "2.jpg",
            "3.jpg",
        ]

    def test_partial_failure_keeps_going(self, three_images, tmp_path):
        out = tmp_path / "out.ndjson"
        engine = StubEngine(fail_on={"2.jpg"})
        runner = BatchRunner(engine)

        with pytest.raises(BatchError) as exc_info:
            runner.run(str(three_images / "*.jpg"), str(out))

        assert exc_info.value.summary.error_count == 1
        assert exc_info.value.summary.processed == 2
        assert exc_info.value.summary.state is BatchState.FAILED
        assert not exc_info.value.summary.ok
        assert runner.state == BatchState.FAILED
        assert engine.calls == ["1.jpg", "2.jpg", "3.jpg"]
        lines = _read_lines(out)
        assert len(lines) == 2
        assert [os.path.basename(line["filename"]) for line in lines] == ["1.jpg", "3.jpg"]

    def test_unexpected_error_is_isolated(self, three_images, tmp_path):
        class Exploding(StubEngine):
            def recognize(self, descriptor):
                if descriptor.path.endswith("1.jpg"):
                    raise RuntimeError("boom")
                return super().recognize(descriptor)

        out = tmp_path / "out.ndjson"
        with pytest.raises(BatchError):
            BatchRunner(Exploding()).run(str(three_images / "*.jpg"), str(out))
        assert len(_read_lines(out)) == 2

    def test_compact_output(self, three_images, tmp_path):
        out = tmp_path / "out.ndjson"
        BatchRunner(StubEngine()).run(str(three_images / "1.jpg"), str(out))
        (line,) = _read_lines(out)
        assert line == {
            "filename": str(three_images / "1.jpg"),
            "size": 10,
            "text": "text of 1.jpg\n",
            "paragraphs": [{"confidence": 0.5, "text": "text of 1.jpg"}],
        }

    def test_full_output_round_trip(self, three_images, tmp_path):
        out = tmp_path / "out.ndjson"
        BatchRunner(StubEngine(), full_output=True).run(str(three_images / "*.jpg"), str(out))

        records = [ImageRecord.model_validate(line) for line in _read_lines(out)]
        assert len(records) == 3
        first = records[0]
        assert first.size == 10
        assert first.mime_type == "image/jpeg"
        assert first.text == "text of 1.jpg\n"
        assert first.paragraphs[0].orientation == 90
        assert first.words[0].bounding_box == Rectangle(min_x=1, min_y=2, max_x=3, max_y=4)

    def test_no_files_found(self, tmp_path):
        out = tmp_path / "out.ndjson"
        runner = BatchRunner(StubEngine())
        with pytest.raises(DiscoveryError):
            runner.run(str(tmp_path / "*.jpg"), str(out))
        assert runner.state == BatchState.FAILED
        assert not out.exists()

    def test_discovery_failure_processes_nothing(self, tmp_path):
        (tmp_path / "broken.jpg").symlink_to(tmp_path / "missing.jpg")
        engine = StubEngine()
        runner = BatchRunner(engine)
        with pytest.raises(DiscoveryError):
            runner.run(str(tmp_path / "*.jpg"), str(tmp_path / "out.ndjson"))
        assert engine.calls == []
        assert runner.state == BatchState.FAILED

    def test_output_open_failure(self, three_images, tmp_path):
        runner = BatchRunner(StubEngine())
        with pytest.raises(OutputWriteError):
            runner.run(str(three_images / "*.jpg"), str(tmp_path / "no" / "out.ndjson"))
        assert runner.state == BatchState.FAILED

    def test_ignore_list(self, three_images, tmp_path):
        out = tmp_path / "out.ndjson"
        engine = StubEngine()
        BatchRunner(engine).run(
            str(three_images / "*.jpg"), str(out), ignore_list=[str(three_images / "2.*")]
        )
        assert engine.calls == ["1.jpg", "3.jpg"]

    def test_injected_logger_reports_failures(self, three_images, tmp_path, caplog):
        log = logging.getLogger("test.batch")
        with caplog.at_level(logging.ERROR, logger="test.batch"):
            with pytest.raises(BatchError):
                BatchRunner(StubEngine(fail_on={"3.jpg"}), log=log).run(
                    str(three_images / "*.jpg"), str(tmp_path / "out.ndjson")
                )
        messages = [r.getMessage() for r in caplog.records if r.name == "test.batch"]
        assert any("3.jpg" in m and "backend rejected" in m for m in messages)


class TestProcessBatch:
    def test_uses_ignore_file_and_extensions(self, three_images, tmp_path):
        (three_images / "notes.txt").write_text("skip me", encoding="utf-8")
        ignore_file = tmp_path / "custom.ignore"
        ignore_file.write_text(f"{three_images / '3.jpg'}\n", encoding="utf-8")
        out = tmp_path / "out.ndjson"
        settings = RunSettings(
            input_path=str(three_images / "*"),
            output_file=str(out),
            ignore_file=str(ignore_file),
            extensions=[".jpg"],
        )
        engine = StubEngine()

        summary = process_batch(settings, engine=engine)

        assert summary.processed == 2
        assert engine.calls == ["1.jpg", "2.jpg"]

    def test_missing_ignore_file_ignores_nothing(self, three_images, tmp_path):
        settings = RunSettings(
            input_path=str(three_images / "*.jpg"),
            output_file=str(tmp_path / "out.ndjson"),
            ignore_file=str(tmp_path / "absent"),
        )
        assert process_batch(settings, engine=StubEngine()).processed == 3


class TestBatchSummary:
    def test_state_is_coerced_to_enum(self):
        summary = BatchSummary(total=1, processed=1, state="done")
        assert summary.state is BatchState.DONE
        assert summary.ok

    def test_default_state_is_idle(self):
        summary = BatchSummary()
        assert summary.state is BatchState.IDLE
        assert not summary.ok

    def test_unknown_state_rejected(self):
        with pytest.raises(ValidationError):
            BatchSummary(state="finished")
