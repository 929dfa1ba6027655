"""Lifecycle handle around an external text-recognition engine."""

import logging
from collections.abc import Callable
from datetime import date
from enum import StrEnum
from typing import Any, Protocol

from ..core.models import OCRResult
from .heuristics import extract

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGES = "eng+chi_tra"

ProgressCallback = Callable[[int, str], None]


class RecognitionEngine(Protocol):
    """What the worker needs from a recognition backend."""

    def recognize(self, image: Any, on_progress: ProgressCallback | None = None) -> str: ...

    def terminate(self) -> None: ...


EngineFactory = Callable[[str], RecognitionEngine]


class WorkerState(StrEnum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    TERMINATED = "terminated"


class OCRWorker:
    """Owns at most one recognition engine at a time.

    The engine is created lazily on first use and torn down explicitly with
    ``release()`` (or by leaving a ``with`` block). A failed recognition tears
    the engine down so the next call starts from a fresh one; there is no
    automatic retry.
    """

    def __init__(self, engine_factory: EngineFactory, languages: str = DEFAULT_LANGUAGES):
        self.engine_factory = engine_factory
        self.languages = languages
        self.state = WorkerState.UNINITIALIZED
        self._engine: RecognitionEngine | None = None

    def acquire(self) -> RecognitionEngine:
        """Return a ready engine, creating one if needed."""
        if self.state == WorkerState.READY and self._engine is not None:
            return self._engine

        self._teardown()
        self.state = WorkerState.INITIALIZING
        logger.info("Initializing recognition engine for languages: %s", self.languages)
        try:
            engine = self.engine_factory(self.languages)
        except Exception:
            self.state = WorkerState.UNINITIALIZED
            logger.error("Failed to initialize recognition engine", exc_info=True)
            raise

        self._engine = engine
        self.state = WorkerState.READY
        return engine

    def recognize(self, image: Any, on_progress: ProgressCallback | None = None, today: date | None = None) -> OCRResult:
        """Recognize ``image`` and run the text heuristics on the result."""
        engine = self.acquire()
        try:
            text = engine.recognize(image, on_progress)
        except Exception:
            logger.error("Error during OCR processing", exc_info=True)
            self._teardown()
            raise
        return extract(text, today)

    def release(self) -> None:
        """Terminate the engine, if any."""
        self._teardown()
        self.state = WorkerState.TERMINATED

    def _teardown(self) -> None:
        engine, self._engine = self._engine, None
        if engine is None:
            return
        try:
            engine.terminate()
        except Exception as e:
            logger.warning("Error terminating recognition engine: %s", e)
        self.state = WorkerState.UNINITIALIZED

    def __enter__(self) -> "OCRWorker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
