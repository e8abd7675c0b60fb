import io
import time

import pytest
from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from docvault.ocr.base import BaseRecognitionEngine
from docvault.ocr.engine_handle import RecognitionEngineHandle

LONG_LINE = "The quick brown fox jumps over the lazy dog while the vault keeps every page."


class FakeEngine(BaseRecognitionEngine):
    """In-memory recognition engine that records how it is used."""

    ENGINE_NAME = "fake"

    def __init__(self, text: str = "Recognized text") -> None:
        self.text = text
        self.error: Exception | None = None
        self.delay_seconds = 0.0
        self.load_count = 0
        self.calls = 0
        self.timeouts: list[float | None] = []
        self.closed = False

    def load(self) -> None:
        self.load_count += 1

    def recognize(self, image_bytes: bytes, timeout_seconds: float | None = None) -> str:
        self.calls += 1
        self.timeouts.append(timeout_seconds)
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        return self.text

    def close(self) -> None:
        self.closed = True


def _render_text_image(text: str, size: tuple[int, int] = (900, 200)) -> Image.Image:
    image = Image.new("RGB", size, "white")
    draw = ImageDraw.Draw(image)
    draw.text((30, 60), text, fill="black", font=ImageFont.load_default(size=48))
    return image


@pytest.fixture()
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture()
def engine_handle(fake_engine: FakeEngine) -> RecognitionEngineHandle:
    return RecognitionEngineHandle(lambda: fake_engine)


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def long_text_pdf_bytes() -> bytes:
    """Generate a two-page PDF whose text layer is well above 500 characters."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for _page in range(2):
        for line in range(6):
            c.drawString(40, 720 - line * 20, LONG_LINE)
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def text_image() -> Image.Image:
    return _render_text_image("Scanned invoice 2024")


@pytest.fixture()
def text_png_bytes(text_image: Image.Image) -> bytes:
    """PNG with large, high-contrast text."""
    buf = io.BytesIO()
    text_image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def image_only_pdf_bytes(text_image: Image.Image) -> bytes:
    """Generate a PDF whose only page is a picture of text, with no text layer."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawImage(ImageReader(text_image), 36, 500, width=540, height=120)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_frame_tiff_bytes() -> bytes:
    """Three-frame TIFF, one line of text per frame."""
    frames = [_render_text_image(f"Frame {number}") for number in range(1, 4)]
    buf = io.BytesIO()
    frames[0].save(buf, format="TIFF", save_all=True, append_images=frames[1:])
    return buf.getvalue()
