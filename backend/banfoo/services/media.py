from __future__ import annotations
import io
import re
from PIL import Image, UnidentifiedImageError


ALLOWED_FORMATS = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp", "GIF": "image/gif"}

def sniff_mime(data: bytes) -> str | None:
    # Trust the bytes, not the browser's content-type
    try:
        with Image.open(io.BytesIO(data)) as img:
            return ALLOWED_FORMATS.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        return None

def validate_image(data: bytes) -> str:
    """Return the detected mime type or raise ValueError."""
    if not data:
        raise ValueError("Empty file")
    mime = sniff_mime(data)
    if mime is None:
        raise ValueError("Unsupported image type")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()  # basic integrity
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValueError("Invalid image file")
    return mime

def safe_filename(name: str | None) -> str:
    base = (name or "upload").replace("\\", "/").rsplit("/", 1)[-1]
    base = re.sub(r"[^A-Za-z0-9._-]+", "-", base).strip("-.")
    return base[:80] or "upload"
