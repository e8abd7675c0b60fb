import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from docvault.logging.logger import Log
from docvault.ocr.base import BaseRecognitionEngine
from docvault.ocr.exceptions import RecognitionTimeoutError


class RecognitionEngineHandle:
    """Owns the process-wide recognition engine.

    The engine is created and loaded on first use and then reused. Engines
    process one unit at a time and hold large models in memory, so every
    session holds the handle's lock: concurrent recognition runs queue here.
    """

    def __init__(self, engine_factory: Callable[[], BaseRecognitionEngine]) -> None:
        self._engine_factory = engine_factory
        self._engine: BaseRecognitionEngine | None = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._engine is not None

    @contextmanager
    def session(self, timeout_seconds: float | None = None) -> Iterator[BaseRecognitionEngine]:
        """Hold exclusive access to the loaded engine for the ``with`` block.

        Raises:
            RecognitionTimeoutError: if the engine stays busy past ``timeout_seconds``.
            RecognitionEngineUnavailableError: if the engine fails to load.
        """
        acquired = self._lock.acquire(timeout=-1 if timeout_seconds is None else timeout_seconds)
        if not acquired:
            raise RecognitionTimeoutError(
                f"Recognition engine busy for more than {timeout_seconds}s"
            )
        try:
            yield self._ensure_engine()
        finally:
            self._lock.release()

    def close(self) -> None:
        """Release the engine; the next session loads a fresh one."""
        with self._lock:
            if self._engine is not None:
                Log.info(f"Closing recognition engine {self._engine.ENGINE_NAME}")
                self._engine.close()
                self._engine = None

    def _ensure_engine(self) -> BaseRecognitionEngine:
        if self._engine is None:
            engine = self._engine_factory()
            Log.info(f"Loading recognition engine {engine.ENGINE_NAME}")
            engine.load()
            self._engine = engine
        return self._engine
