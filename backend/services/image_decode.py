"""
Image decode service.

Turns uploaded bytes into a Pillow image plus its natural pixel size.
HEIC/HEIF uploads (iPhone photos) decode through pillow-heif when it is
installed and registered.
"""
from dataclasses import dataclass
from io import BytesIO
import logging
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from domain.models import Size

logger = logging.getLogger(__name__)


class ImageDecodeError(ValueError):
    """Raised when uploaded bytes cannot be decoded into an image."""


@dataclass
class DecodedImage:
    """A decoded source image and its natural size (after EXIF rotation)."""
    image: Image.Image
    natural_size: Size
    filename: Optional[str] = None


def is_heic_file(filename: Optional[str], content_type: Optional[str] = None) -> bool:
    """
    Check if a file is a HEIC/HEIF image.

    Args:
        filename: Original filename
        content_type: MIME content type if available

    Returns:
        True if the file is likely HEIC/HEIF.
    """
    if filename:
        ext = filename.lower().rsplit(".", 1)[-1] if "." in filename else ""
        if ext in ("heic", "heif"):
            return True

    if content_type:
        heic_types = ["image/heic", "image/heif", "image/heic-sequence", "image/heif-sequence"]
        if content_type.lower() in heic_types:
            return True

    return False


def register_heif_opener() -> bool:
    """
    Register HEIF/HEIC opener with Pillow if pillow-heif is available.

    Call this at application startup to enable HEIC support.
    Safe to call multiple times or if pillow-heif is not installed.
    """
    try:
        from pillow_heif import register_heif_opener as _register
        _register()
        return True
    except ImportError:
        return False


def decode_image(
    file_bytes: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> DecodedImage:
    """
    Decode raw upload bytes.

    The returned image is fully loaded and upright (EXIF orientation
    applied), so `natural_size` matches what the user sees.

    Raises:
        ImageDecodeError: if the bytes are empty or not a supported image
    """
    if not file_bytes:
        raise ImageDecodeError("Empty image upload")

    if is_heic_file(filename, content_type) and not register_heif_opener():
        raise ImageDecodeError("HEIC upload received but pillow-heif is not installed")

    try:
        img = Image.open(BytesIO(file_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeError(f"Could not decode image {filename or '<upload>'}: {exc}") from exc

    img = ImageOps.exif_transpose(img)
    natural_size = Size(width=img.width, height=img.height)
    logger.debug("decoded %s: %dx%d mode=%s", filename or "<upload>", img.width, img.height, img.mode)
    return DecodedImage(image=img, natural_size=natural_size, filename=filename)
