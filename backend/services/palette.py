"""
Palette extraction service.

Builds a small "Morandi" palette (muted, high-lightness colors) from a
source image:

1. The color sampler squeezes the image into a fixed 50x50 grid.
2. `quantize` drops transparent, near-black and near-white pixels and bins
   the rest by flooring each channel to a multiple of BIN_SIZE.
3. Bins are ranked by frequency and each one is pushed through
   `to_morandi`, which compresses it into a narrow low-saturation band.
4. `select_distinct` keeps up to PALETTE_SIZE distinct results and
   `pad_palette` tops the list up from FALLBACK_PALETTE.

Distinctness is exact hex equality; near-identical colors are both kept.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from domain.models import FALLBACK_DOMINANT, FALLBACK_PALETTE, PALETTE_SIZE, Palette
from services.color_sampler import sample_pixels
from services.image_decode import ImageDecodeError, decode_image
from services.numeric import round_half_up

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

# --- Quantizer thresholds ---
ALPHA_MIN = 128
BRIGHTNESS_MIN = 60.0
BRIGHTNESS_MAX = 230.0
BIN_SIZE = 32

# --- Morandi band ---
SATURATION_BASE = 0.05
SATURATION_GAIN = 0.20
SATURATION_CAP = 0.5
LIGHTNESS_BASE = 0.75
LIGHTNESS_GAIN = 0.10


def quantize(pixels: bytes) -> Dict[RGB, int]:
    """
    Bin RGBA pixel bytes by color.

    Only pixels with alpha >= ALPHA_MIN and mean brightness within
    [BRIGHTNESS_MIN, BRIGHTNESS_MAX] are counted. Keys are the floored
    (r, g, b) bucket; the dict keeps first-seen order.
    """
    usable = len(pixels) - len(pixels) % 4
    if usable == 0:
        return {}
    arr = np.frombuffer(pixels[:usable], dtype=np.uint8).reshape(-1, 4)
    rgb = arr[:, :3].astype(np.int32)
    brightness = rgb.sum(axis=1) / 3.0
    mask = (arr[:, 3] >= ALPHA_MIN) & (brightness >= BRIGHTNESS_MIN) & (brightness <= BRIGHTNESS_MAX)
    if not mask.any():
        return {}

    binned = (rgb[mask] // BIN_SIZE) * BIN_SIZE
    keys = (binned[:, 0] << 16) | (binned[:, 1] << 8) | binned[:, 2]
    unique_keys, first_index, counts = np.unique(keys, return_index=True, return_counts=True)
    order = np.argsort(first_index, kind="stable")

    bins: Dict[RGB, int] = {}
    for i in order:
        key = int(unique_keys[i])
        bins[((key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF)] = int(counts[i])
    return bins


def rgb_to_hsl(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """Convert 0-255 RGB to HSL, each component in 0..1."""
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    mx = max(r, g, b)
    mn = min(r, g, b)
    lightness = (mx + mn) / 2

    if mx == mn:
        return 0.0, 0.0, lightness  # achromatic

    d = mx - mn
    saturation = d / (2 - mx - mn) if lightness > 0.5 else d / (mx + mn)
    if mx == r:
        hue = (g - b) / d + (6 if g < b else 0)
    elif mx == g:
        hue = (b - r) / d + 2
    else:
        hue = (r - g) / d + 4
    return hue / 6, saturation, lightness


def _hue_to_channel(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def hsl_to_rgb(h: float, s: float, l: float) -> RGB:
    q = l * (1 + s) if l < 0.5 else l + s - l * s
    p = 2 * l - q
    return (
        round_half_up(_hue_to_channel(p, q, h + 1 / 3) * 255),
        round_half_up(_hue_to_channel(p, q, h) * 255),
        round_half_up(_hue_to_channel(p, q, h - 1 / 3) * 255),
    )


def hsl_to_hex(h: float, s: float, l: float) -> str:
    return "#{:02x}{:02x}{:02x}".format(*hsl_to_rgb(h, s, l))


def morandi_hsl(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """
    Muted HSL for a raw color, before rounding to 8-bit channels.

    Hue is preserved; saturation lands in [0.05, 0.15] and lightness in
    [0.75, 0.85] whatever the input.
    """
    h, s, l = rgb_to_hsl(r, g, b)
    new_s = SATURATION_BASE + min(s, SATURATION_CAP) * SATURATION_GAIN
    new_l = LIGHTNESS_BASE + min(l, 1.0) * LIGHTNESS_GAIN
    return h, new_s, new_l


def to_morandi(r: int, g: int, b: int) -> str:
    """Map a raw color to its muted, high-lightness variant as hex."""
    return hsl_to_hex(*morandi_hsl(r, g, b))


def select_distinct(bins: Dict[RGB, int], limit: int = PALETTE_SIZE) -> List[str]:
    """Pick up to `limit` distinct Morandi colors, most frequent first."""
    ranked = sorted(bins.items(), key=lambda item: item[1], reverse=True)
    picked: List[str] = []
    for (r, g, b), _count in ranked:
        if len(picked) >= limit:
            break
        color = to_morandi(r, g, b)
        if color not in picked:
            picked.append(color)
    return picked


def pad_palette(colors: Sequence[str], fallback: Sequence[str] = FALLBACK_PALETTE) -> List[str]:
    """Top `colors` up to PALETTE_SIZE by cycling through `fallback`."""
    padded = list(colors[:PALETTE_SIZE])
    fill_idx = 0
    while len(padded) < PALETTE_SIZE:
        padded.append(fallback[fill_idx % len(fallback)])
        fill_idx += 1
    return padded


def extract_palette(image: Optional[Image.Image]) -> Palette:
    """
    Run the extraction pipeline without the final safety padding on failure.

    When the image is missing or cannot be sampled the result is an empty
    palette with FALLBACK_DOMINANT; callers pad it before use. A sampled
    image always yields exactly PALETTE_SIZE colors.
    """
    pixels = sample_pixels(image)
    if not pixels:
        return Palette(dominant=FALLBACK_DOMINANT, colors=())

    bins = quantize(pixels)
    colors = pad_palette(select_distinct(bins))
    logger.debug("palette: %d bins -> %s", len(bins), colors)
    return Palette(dominant=colors[0], colors=tuple(colors))


def derive_palette(image: Optional[Image.Image]) -> Palette:
    """Extract a palette that always holds exactly PALETTE_SIZE colors."""
    palette = extract_palette(image)
    if palette.is_empty:
        return Palette(dominant=palette.dominant, colors=tuple(pad_palette(())))
    return palette


def derive_palette_from_bytes(
    file_bytes: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> Palette:
    """Decode an upload and derive its palette; decode failures fall back."""
    try:
        decoded = decode_image(file_bytes, filename, content_type)
    except ImageDecodeError:
        logger.warning("palette: could not decode %s; using fallback palette", filename or "<upload>")
        return derive_palette(None)
    return derive_palette(decoded.image)

