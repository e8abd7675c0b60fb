from collections.abc import Callable

from docvault.logging.logger import Log
from docvault.processor.models import ProgressEvent

ProgressCallback = Callable[[ProgressEvent], None]

CLASSIFY_BAND = (0, 10)
EXTRACT_BAND = (10, 85)
PERSIST_BAND = (85, 100)


class ProgressReporter:
    """Single notification channel for one pipeline run.

    Percentages are clamped to 0..100 and never go backwards, whatever the
    stages report. A failing callback is logged and otherwise ignored.
    """

    def __init__(self, callback: ProgressCallback | None = None, document_id: str = "") -> None:
        self._callback = callback
        self._document_id = document_id
        self._percent = 0

    @property
    def percent(self) -> int:
        return self._percent

    def report(self, stage: str, percent: float, error: str | None = None) -> ProgressEvent:
        value = max(self._percent, min(100, max(0, int(percent))))
        self._percent = value
        event = ProgressEvent(stage=stage, percent=value, error=error)
        Log.debug(f"Progress {value}% {stage}", document=self._document_id)
        if self._callback is not None:
            try:
                self._callback(event)
            except Exception as exc:
                Log.warning(f"Progress callback failed: {exc}", document=self._document_id)
        return event

    def band(self, stage: str, start: int, end: int) -> Callable[[int, int], None]:
        """Callback mapping ``(done, total)`` units onto ``start..end`` percent."""

        def on_unit(done: int, total: int) -> None:
            fraction = done / total if total > 0 else 1.0
            label = f"{stage} ({done}/{total})" if total > 0 else stage
            self.report(label, start + (end - start) * fraction)

        return on_unit
