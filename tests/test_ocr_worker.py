"""Tests for the OCR worker lifecycle."""

from datetime import date

import pytest
from conftest import FakeRecognitionEngine

from src.clarityledger.ocr.worker import OCRWorker, WorkerState


class EngineFactory:
    def __init__(self, text="Total: $9.99", error=None, fail_on_create=False):
        self.text = text
        self.error = error
        self.fail_on_create = fail_on_create
        self.engines: list[FakeRecognitionEngine] = []

    def __call__(self, languages: str) -> FakeRecognitionEngine:
        if self.fail_on_create:
            raise RuntimeError("engine unavailable")
        engine = FakeRecognitionEngine(languages, text=self.text, error=self.error)
        self.engines.append(engine)
        return engine


class TestOCRWorker:
    def test_engine_created_lazily(self):
        factory = EngineFactory()
        worker = OCRWorker(factory)

        assert worker.state == WorkerState.UNINITIALIZED
        assert factory.engines == []

        worker.acquire()

        assert worker.state == WorkerState.READY
        assert len(factory.engines) == 1
        assert factory.engines[0].languages == "eng+chi_tra"

    def test_engine_reused_between_calls(self):
        factory = EngineFactory()
        worker = OCRWorker(factory)

        worker.recognize(b"image-1")
        worker.recognize(b"image-2")

        assert len(factory.engines) == 1
        assert factory.engines[0].calls == 2

    def test_recognize_runs_heuristics_and_reports_progress(self):
        worker = OCRWorker(EngineFactory(text="Total: $9.99\n2024-05-01"))
        progress = []

        result = worker.recognize(b"image", on_progress=lambda pct, status: progress.append((pct, status)))

        assert result.amount == 9.99
        assert result.date == date(2024, 5, 1)
        assert progress == [(100, "recognizing text")]

    def test_failure_tears_down_and_next_call_starts_fresh(self):
        factory = EngineFactory(error=RuntimeError("bad image"))
        worker = OCRWorker(factory)

        with pytest.raises(RuntimeError, match="bad image"):
            worker.recognize(b"image")

        assert factory.engines[0].terminated is True
        assert worker.state == WorkerState.UNINITIALIZED

        factory.error = None
        worker.recognize(b"image")

        assert len(factory.engines) == 2
        assert worker.state == WorkerState.READY

    def test_factory_failure_propagates(self):
        worker = OCRWorker(EngineFactory(fail_on_create=True))

        with pytest.raises(RuntimeError, match="engine unavailable"):
            worker.acquire()

        assert worker.state == WorkerState.UNINITIALIZED

    def test_release_terminates_engine(self):
        factory = EngineFactory()
        worker = OCRWorker(factory, languages="eng")
        worker.acquire()

        worker.release()

        assert factory.engines[0].terminated is True
        assert factory.engines[0].languages == "eng"
        assert worker.state == WorkerState.TERMINATED

    def test_release_without_engine(self):
        worker = OCRWorker(EngineFactory())

        worker.release()

        assert worker.state == WorkerState.TERMINATED

    def test_context_manager_releases(self):
        factory = EngineFactory()

        with OCRWorker(factory) as worker:
            worker.recognize(b"image")

        assert factory.engines[0].terminated is True
        assert worker.state == WorkerState.TERMINATED
