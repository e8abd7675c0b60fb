import threading
import time
from collections.abc import Callable

from docvault.processor.exceptions import ExtractionInterrupted


class CancellationToken:
    """Thread-safe cancellation flag shared by one pipeline run and its caller."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = ""

    def cancel(self, reason: str = "cancelled by caller") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason


class ExtractionControl:
    """Cancellation token plus a deadline for a single extraction stage.

    Extractors poll :meth:`should_stop` between pages/units and raise
    :meth:`interrupted` with the text gathered so far.
    """

    def __init__(
        self,
        stage: str,
        token: CancellationToken | None = None,
        timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stage = stage
        self._token = token
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._started_at = clock()

    @property
    def stage(self) -> str:
        return self._stage

    def remaining(self) -> float | None:
        """Seconds left before the stage deadline, ``None`` when unbounded."""
        if self._timeout_seconds is None:
            return None
        return max(0.0, self._timeout_seconds - (self._clock() - self._started_at))

    def timed_out(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def cancelled(self) -> bool:
        return self._token is not None and self._token.cancelled

    def should_stop(self) -> bool:
        return self.cancelled() or self.timed_out()

    def stop_reason(self) -> str:
        if self.cancelled() and self._token is not None:
            return f"{self._stage} cancelled: {self._token.reason}"
        return f"{self._stage} timed out after {self._timeout_seconds}s"

    def interrupted(self, partial_text: str = "", units_done: int = 0) -> ExtractionInterrupted:
        return ExtractionInterrupted(
            self.stop_reason(),
            partial_text=partial_text,
            units_done=units_done,
            timed_out=not self.cancelled(),
        )
