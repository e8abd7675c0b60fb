from abc import ABC, abstractmethod


class BaseRecognitionEngine(ABC):
    """Contract for all OCR engine adapters.

    Engines are expensive to initialize: :meth:`load` is called once, lazily,
    by the owning handle and the instance is reused for every document.
    """

    ENGINE_NAME = "ocr"

    @abstractmethod
    def load(self) -> None:
        """Initialize the engine (models, binaries, clients).

        Raises:
            RecognitionEngineUnavailableError: if the engine cannot start.
        """

    @abstractmethod
    def recognize(self, image_bytes: bytes, timeout_seconds: float | None = None) -> str:
        """Recognize the text in one encoded image.

        Args:
            image_bytes: Encoded image (PNG, JPEG, TIFF, ...).
            timeout_seconds: Upper bound for this call, ``None`` for no limit.

        Returns:
            Recognized text, possibly empty.

        Raises:
            RecognitionTimeoutError: if the call exceeds ``timeout_seconds``.
            RecognitionError: on any other failure.
        """

    def close(self) -> None:
        """Release engine resources."""
