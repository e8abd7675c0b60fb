from docvault.config.settings import Settings
from docvault.ocr.base import BaseRecognitionEngine
from docvault.ocr.engine_handle import RecognitionEngineHandle
from docvault.ocr.openai_vision_adapter import OpenAIVisionEngine
from docvault.ocr.tesseract_adapter import TesseractEngine


class RecognitionEngineFactory:
    """Creates the configured OCR engine adapter."""

    ENGINES: tuple[str, ...] = ("tesseract", "openai")

    @classmethod
    def create(cls, settings: Settings) -> BaseRecognitionEngine:
        engine = settings.ocr_engine.lower()
        if engine == "tesseract":
            return TesseractEngine(language=settings.ocr_language)
        if engine == "openai":
            return OpenAIVisionEngine(
                api_key=settings.openai_api_key,
                model=settings.openai_model_name,
                timeout_seconds=settings.openai_timeout_seconds,
            )
        raise ValueError(f"Unknown OCR engine '{engine}'. Choose from: {list(cls.ENGINES)}")

    @classmethod
    def create_handle(cls, settings: Settings) -> RecognitionEngineHandle:
        """Validate the engine name now, load the engine on first use."""
        engine = settings.ocr_engine.lower()
        if engine not in cls.ENGINES:
            raise ValueError(f"Unknown OCR engine '{engine}'. Choose from: {list(cls.ENGINES)}")
        return RecognitionEngineHandle(lambda: cls.create(settings))
