import io

from PIL import Image, ImageSequence

from docvault.ocr.exceptions import RecognitionError


def split_frames(image_bytes: bytes) -> list[bytes]:
    """Split a multi-frame image (TIFF, GIF) into one PNG per frame.

    Single-frame images are returned unchanged as a one-item list.

    Raises:
        RecognitionError: if the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            if getattr(image, "n_frames", 1) <= 1:
                return [image_bytes]
            frames: list[bytes] = []
            for frame in ImageSequence.Iterator(image):
                buf = io.BytesIO()
                frame.convert("RGB").save(buf, format="PNG")
                frames.append(buf.getvalue())
            return frames
    except Exception as exc:
        raise RecognitionError(f"Unreadable image: {exc}") from exc
