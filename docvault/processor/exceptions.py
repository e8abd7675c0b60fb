class ProcessorError(Exception):
    """Base exception for all ingestion pipeline errors."""


class ExtractionFailed(ProcessorError):
    """Raised when an extractor cannot produce text for a document.

    Recovered inside the pipeline: the record is stored with
    ``extraction_method = failed`` and the reason kept on the record.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ExtractionInterrupted(ProcessorError):
    """Raised when an extraction stage is cancelled or runs out of time.

    Carries whatever text the stage produced before it stopped.
    """

    def __init__(
        self,
        reason: str,
        *,
        partial_text: str = "",
        units_done: int = 0,
        timed_out: bool = False,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.partial_text = partial_text
        self.units_done = units_done
        self.timed_out = timed_out
