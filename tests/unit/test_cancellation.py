import threading

from docvault.processor.cancellation import CancellationToken, ExtractionControl


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestCancellationToken:
    def test_starts_active(self) -> None:
        token = CancellationToken()
        assert token.cancelled is False
        assert token.reason == ""

    def test_first_reason_wins(self) -> None:
        token = CancellationToken()
        token.cancel("user closed the dialog")
        token.cancel("shutdown")
        assert token.cancelled is True
        assert token.reason == "user closed the dialog"

    def test_cancel_from_another_thread(self) -> None:
        token = CancellationToken()
        thread = threading.Thread(target=token.cancel)
        thread.start()
        thread.join()
        assert token.cancelled is True


class TestExtractionControl:
    def test_unbounded_without_timeout(self) -> None:
        control = ExtractionControl("recognition")
        assert control.remaining() is None
        assert control.should_stop() is False

    def test_deadline_counts_down(self) -> None:
        clock = _Clock()
        control = ExtractionControl("recognition", timeout_seconds=10, clock=clock)
        clock.now += 4
        assert control.remaining() == 6
        clock.now += 7
        assert control.remaining() == 0
        assert control.timed_out() is True
        assert control.should_stop() is True

    def test_timeout_interruption(self) -> None:
        clock = _Clock()
        control = ExtractionControl("recognition", timeout_seconds=1, clock=clock)
        clock.now += 2
        exc = control.interrupted("partial", units_done=2)
        assert exc.timed_out is True
        assert exc.partial_text == "partial"
        assert exc.units_done == 2
        assert exc.reason == "recognition timed out after 1s"

    def test_cancellation_interruption(self) -> None:
        token = CancellationToken()
        token.cancel("shutdown")
        control = ExtractionControl("structured-parse", token=token, timeout_seconds=60)
        exc = control.interrupted()
        assert control.cancelled() is True
        assert exc.timed_out is False
        assert exc.reason == "structured-parse cancelled: shutdown"
