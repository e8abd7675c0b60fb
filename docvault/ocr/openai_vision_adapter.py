import base64

import httpx
import openai

from docvault.logging.logger import Log
from docvault.ocr.base import BaseRecognitionEngine
from docvault.ocr.exceptions import (
    RecognitionEngineUnavailableError,
    RecognitionError,
    RecognitionTimeoutError,
)

_TRANSCRIBE_PROMPT = (
    "Transcribe all text visible in this image exactly as written. "
    "Preserve line breaks and reading order. Return only the transcribed text, "
    "with no commentary. Return an empty response if the image has no text."
)


def detect_image_media_type(image_bytes: bytes) -> str:
    """Detect the MIME type of an image from its magic bytes."""
    if image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if image_bytes[:2] == b"\xff\xd8":
        return "image/jpeg"
    return "image/png"


class OpenAIVisionEngine(BaseRecognitionEngine):
    """Recognizes text by sending page images to a vision-capable chat model."""

    ENGINE_NAME = "openai"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._base_url = base_url
        self._client: openai.OpenAI | None = None

    def load(self) -> None:
        if not self._api_key:
            raise RecognitionEngineUnavailableError("openai_api_key is required for ocr_engine=openai")
        self._client = openai.OpenAI(
            api_key=self._api_key,
            timeout=self._timeout_seconds,
            base_url=self._base_url,
        )
        Log.info("OpenAI vision OCR ready", model=self._model)

    def recognize(self, image_bytes: bytes, timeout_seconds: float | None = None) -> str:
        if self._client is None:
            raise RecognitionError("OpenAI vision engine used before load()")
        encoded = base64.b64encode(image_bytes).decode("ascii")
        data_url = f"data:{detect_image_media_type(image_bytes)};base64,{encoded}"
        client = self._client
        if timeout_seconds is not None:
            client = client.with_options(timeout=min(timeout_seconds, self._timeout_seconds))
        try:
            response = client.chat.completions.create(
                model=self._model,
                temperature=0.0,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": _TRANSCRIBE_PROMPT},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    }
                ],
            )
        except (openai.APITimeoutError, httpx.TimeoutException) as exc:
            raise RecognitionTimeoutError(f"OpenAI vision OCR timed out: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError) as exc:
            raise RecognitionError(f"OpenAI vision OCR network error: {exc}") from exc
        except openai.APIError as exc:
            raise RecognitionError(f"OpenAI vision OCR API error: {exc}") from exc

        if not response.choices:
            raise RecognitionError("OpenAI vision OCR returned no choices")
        content = response.choices[0].message.content
        return (content or "").strip()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
