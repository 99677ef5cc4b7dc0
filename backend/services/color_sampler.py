"""
Fixed-grid color sampling.

Resamples any source image to a SAMPLE_SIZE x SAMPLE_SIZE RGBA grid so
palette analysis costs the same regardless of the source resolution.
"""
from __future__ import annotations

import logging
from typing import Optional

from PIL import Image

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 50


def sample_pixels(image: Optional[Image.Image]) -> bytes:
    """
    Return the RGBA bytes of `image` squeezed into the sampling grid.

    Fails closed: a missing image or any Pillow error yields b"" so the
    palette stage falls back to its defaults.
    """
    if image is None:
        return b""
    try:
        grid = image.convert("RGBA").resize((SAMPLE_SIZE, SAMPLE_SIZE), Image.Resampling.BILINEAR)
        return grid.tobytes()
    except Exception:
        logger.warning("color sampling failed; using fallback palette", exc_info=True)
        return b""
