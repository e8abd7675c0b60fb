class RecognitionError(Exception):
    """Raised when optical character recognition fails."""


class RecognitionEngineUnavailableError(RecognitionError):
    """Raised when the recognition engine cannot be initialized."""


class RecognitionTimeoutError(RecognitionError):
    """Raised when a recognition call or engine acquisition runs out of time."""
