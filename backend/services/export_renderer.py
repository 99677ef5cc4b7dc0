"""
Composition renderer using Pillow.

Renders the background, the card with its shadow, and the user's image into
a single RGBA raster at `pixel_ratio` times the layout units, then hands it to
storage as a PNG.
"""
from __future__ import annotations

import logging
import math
import re
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFilter, ImageOps

from domain.models import BackgroundType, ComputedLayout, LayoutSettings, Palette, Size
from services.layout_engine import card_origin, card_outer_radius, compute_layout
from services.mesh import BASE_WASH_OPACITY, BLOB_LAYER_OPACITY, mesh_blobs, shuffle_mesh
from services.numeric import round_half_up
from services.shadow import shadow_descriptor
from storage.file_storage import FileStorage

logger = logging.getLogger(__name__)

DEFAULT_PIXEL_RATIO = 2.0
CARD_COLOR = (255, 255, 255, 255)

# Mesh blobs are blurred heavily, so they are painted on a small canvas and upscaled
MESH_WORK_SIZE = 256
MESH_BLUR_PX = 140  # layout pixels
MESH_SPREAD = 1.25  # blob layer is scaled up around the centre

RGBA = Tuple[int, int, int, int]


class ExportError(RuntimeError):
    """Raised when a composition cannot be rendered or written."""


class LayoutNotReadyError(ExportError):
    """Raised when exporting before the image size is known."""


# ============================================
# Background parsing
# ============================================

_GRADIENT_RE = re.compile(r"^\s*linear-gradient\((.*)\)\s*$", re.IGNORECASE | re.DOTALL)
_ANGLE_RE = re.compile(r"^(-?\d+(?:\.\d+)?)deg$", re.IGNORECASE)
_STOP_RE = re.compile(r"^(.*?)(?:\s+(-?\d+(?:\.\d+)?)%)?$")

_SIDE_ANGLES = {
    "top": 0.0,
    "right": 90.0,
    "bottom": 180.0,
    "left": 270.0,
    "top right": 45.0,
    "right top": 45.0,
    "bottom right": 135.0,
    "right bottom": 135.0,
    "bottom left": 225.0,
    "left bottom": 225.0,
    "top left": 315.0,
    "left top": 315.0,
}


def _split_top_level(text: str) -> List[str]:
    """Split on commas that are not inside parentheses."""
    parts, depth, current = [], 0, []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return [p for p in parts if p]


def parse_color(value: str) -> RGBA:
    """CSS color to RGBA; raises ValueError for unknown formats."""
    value = value.strip()
    if value.lower() == "transparent":
        return (0, 0, 0, 0)
    color = ImageColor.getcolor(value, "RGBA")
    return tuple(color)  # type: ignore[return-value]


def parse_linear_gradient(value: str) -> Optional[Tuple[float, List[Tuple[RGBA, float]]]]:
    """
    Parse `linear-gradient(<direction>?, <color> <pct>%?, ...)`.

    Returns (css angle in degrees, [(color, position 0..1), ...]) or None if
    `value` is not a linear gradient. Missing stop positions are spread
    evenly between their neighbours, as browsers do.
    """
    match = _GRADIENT_RE.match(value)
    if not match:
        return None
    args = _split_top_level(match.group(1))
    if not args:
        raise ValueError(f"Empty gradient: {value!r}")

    angle = 180.0
    first = args[0].lower()
    angle_match = _ANGLE_RE.match(first)
    if angle_match:
        angle = float(angle_match.group(1))
        args = args[1:]
    elif first.startswith("to "):
        side = " ".join(first[3:].split())
        if side not in _SIDE_ANGLES:
            raise ValueError(f"Unknown gradient direction: {args[0]!r}")
        angle = _SIDE_ANGLES[side]
        args = args[1:]

    if len(args) < 2:
        raise ValueError(f"Gradient needs at least two color stops: {value!r}")

    colors: List[RGBA] = []
    positions: List[Optional[float]] = []
    for stop in args:
        stop_match = _STOP_RE.match(stop)
        colors.append(parse_color(stop_match.group(1)))
        pct = stop_match.group(2)
        positions.append(float(pct) / 100 if pct is not None else None)

    if positions[0] is None:
        positions[0] = 0.0
    if positions[-1] is None:
        positions[-1] = 1.0
    # Fill gaps linearly between known positions
    i = 0
    while i < len(positions):
        if positions[i] is None:
            j = i
            while positions[j] is None:
                j += 1
            start, end = positions[i - 1], positions[j]
            span = j - (i - 1)
            for k in range(i, j):
                positions[k] = start + (end - start) * (k - (i - 1)) / span
            i = j
        i += 1
    # Positions never move backwards
    for k in range(1, len(positions)):
        positions[k] = max(positions[k], positions[k - 1])

    return angle, list(zip(colors, positions))


def render_linear_gradient(size: Tuple[int, int], angle: float, stops: Sequence[Tuple[RGBA, float]]) -> Image.Image:
    """Rasterize a CSS linear gradient (0deg points up, clockwise)."""
    width, height = size
    theta = math.radians(angle)
    dir_x, dir_y = math.sin(theta), -math.cos(theta)
    line_length = abs(width * dir_x) + abs(height * dir_y) or 1.0

    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    xs -= (width - 1) / 2
    ys -= (height - 1) / 2
    t = (xs * dir_x + ys * dir_y) / line_length + 0.5

    positions = np.array([p for _, p in stops], dtype=np.float64)
    out = np.empty((height, width, 4), dtype=np.uint8)
    for channel in range(4):
        values = np.array([c[channel] for c, _ in stops], dtype=np.float64)
        out[..., channel] = np.clip(np.rint(np.interp(t, positions, values)), 0, 255).astype(np.uint8)
    return Image.fromarray(out, "RGBA")


def render_css_background(size: Tuple[int, int], value: str) -> Image.Image:
    """Paint a solid color or linear gradient; unknown values paint white."""
    try:
        gradient = parse_linear_gradient(value)
        if gradient is not None:
            angle, stops = gradient
            return render_linear_gradient(size, angle, stops)
        return Image.new("RGBA", size, parse_color(value))
    except ValueError:
        logger.warning("unsupported background %r; painting white", value)
        return Image.new("RGBA", size, (255, 255, 255, 255))


# ============================================
# Mesh background
# ============================================

def render_mesh_background(size: Tuple[int, int], palette: Sequence[str], seed: int, pixel_ratio: float) -> Image.Image:
    """White base, a light wash of the first color, then blurred multiply blobs."""
    width, height = size
    shrink = min(1.0, MESH_WORK_SIZE / max(width, height))
    work_w = max(1, round_half_up(width * shrink))
    work_h = max(1, round_half_up(height * shrink))

    shuffled = shuffle_mesh(palette, seed)
    white = Image.new("RGB", (work_w, work_h), (255, 255, 255))
    wash = Image.new("RGB", (work_w, work_h), ImageColor.getrgb(shuffled[0]))
    base = Image.blend(white, wash, BASE_WASH_OPACITY)

    blobs = base.copy()
    cx, cy = work_w / 2, work_h / 2
    for blob in mesh_blobs(shuffled):
        x0 = cx + (blob.left * work_w - cx) * MESH_SPREAD
        y0 = cy + (blob.top * work_h - cy) * MESH_SPREAD
        x1 = cx + ((blob.left + blob.width) * work_w - cx) * MESH_SPREAD
        y1 = cy + ((blob.top + blob.height) * work_h - cy) * MESH_SPREAD
        layer = Image.new("RGB", (work_w, work_h), (255, 255, 255))
        ImageDraw.Draw(layer).ellipse([x0, y0, x1, y1], fill=ImageColor.getrgb(blob.color))
        blobs = ImageChops.multiply(blobs, layer)

    blur = max(1.0, MESH_BLUR_PX * pixel_ratio * shrink / 2)
    blobs = blobs.filter(ImageFilter.GaussianBlur(blur))
    mesh = Image.blend(base, blobs, BLOB_LAYER_OPACITY)
    return mesh.resize((width, height), Image.Resampling.BICUBIC).convert("RGBA")


def render_background(size: Tuple[int, int], settings: LayoutSettings, palette: Sequence[str], pixel_ratio: float) -> Image.Image:
    if settings.background_type == BackgroundType.MESH:
        return render_mesh_background(size, palette, settings.mesh_seed, pixel_ratio)
    if settings.background_type == BackgroundType.TRANSPARENT:
        return Image.new("RGBA", size, (0, 0, 0, 0))
    return render_css_background(size, settings.background)


# ============================================
# Card
# ============================================

def _rounded_mask(size: Tuple[int, int], radius: float) -> Image.Image:
    mask = Image.new("L", size, 0)
    draw = ImageDraw.Draw(mask)
    draw.rounded_rectangle([0, 0, size[0] - 1, size[1] - 1], radius=max(0, round_half_up(radius)), fill=255)
    return mask


def _paint_shadow(canvas: Image.Image, box: Tuple[float, float, float, float], radius: float, settings: LayoutSettings, pixel_ratio: float) -> None:
    desc = shadow_descriptor(settings.shadow, settings.shadow_angle)
    if settings.shadow == 0:
        return
    spread = desc.spread_radius * pixel_ratio
    x0, y0, x1, y1 = box
    dx, dy = desc.offset_x * pixel_ratio, desc.offset_y * pixel_ratio
    shape = [x0 + dx - spread, y0 + dy - spread, x1 + dx + spread, y1 + dy + spread]
    if shape[2] <= shape[0] or shape[3] <= shape[1]:
        return

    layer = Image.new("L", canvas.size, 0)
    ImageDraw.Draw(layer).rounded_rectangle(
        shape,
        radius=max(0, round_half_up(radius + spread)),
        fill=round_half_up(desc.alpha * 255),
    )
    blur = desc.blur_radius * pixel_ratio / 2
    if blur > 0:
        layer = layer.filter(ImageFilter.GaussianBlur(blur))
    black = Image.new("RGBA", canvas.size, (0, 0, 0, 255))
    black.putalpha(layer)
    canvas.alpha_composite(black)


def render_composition(
    image: Image.Image,
    settings: LayoutSettings,
    palette: Palette,
    pixel_ratio: float = DEFAULT_PIXEL_RATIO,
    layout: Optional[ComputedLayout] = None,
) -> Image.Image:
    """
    Render the full composition to an RGBA image.

    Raises:
        LayoutNotReadyError: if the layout is all-zero
    """
    if layout is None:
        layout = compute_layout(settings, Size(image.width, image.height))
    if not layout.is_ready:
        raise LayoutNotReadyError("Layout is not ready; image size unknown")

    size = (
        max(1, round_half_up(layout.export_width * pixel_ratio)),
        max(1, round_half_up(layout.export_height * pixel_ratio)),
    )
    canvas = render_background(size, settings, palette.colors, pixel_ratio)

    origin_x, origin_y = card_origin(layout, settings)
    x0 = round_half_up(origin_x * pixel_ratio)
    y0 = round_half_up(origin_y * pixel_ratio)
    card_w = max(1, round_half_up(layout.card_width * pixel_ratio))
    card_h = max(1, round_half_up(layout.card_height * pixel_ratio))
    outer_radius = card_outer_radius(settings) * pixel_ratio

    _paint_shadow(canvas, (x0, y0, x0 + card_w, y0 + card_h), outer_radius, settings, pixel_ratio)

    card = Image.new("RGBA", (card_w, card_h), CARD_COLOR)
    inset = round_half_up(settings.inset * pixel_ratio)
    inner_w, inner_h = card_w - 2 * inset, card_h - 2 * inset
    if inner_w > 0 and inner_h > 0:
        photo = ImageOps.fit(image.convert("RGBA"), (inner_w, inner_h), Image.Resampling.LANCZOS)
        inner_mask = _rounded_mask((inner_w, inner_h), settings.border_radius * pixel_ratio)
        card.paste(photo, (inset, inset), inner_mask)

    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    layer.paste(card, (x0, y0), _rounded_mask((card_w, card_h), outer_radius))
    canvas.alpha_composite(layer)
    return canvas


def export_composition(
    image: Image.Image,
    settings: LayoutSettings,
    palette: Palette,
    storage: FileStorage,
    pixel_ratio: float = DEFAULT_PIXEL_RATIO,
) -> str:
    """
    Render and save the composition. Returns the storage-relative path.

    Raises:
        LayoutNotReadyError: if the image size is unknown
        ExportError: if rendering or writing fails (no retry)
    """
    try:
        rendered = render_composition(image, settings, palette, pixel_ratio)
        rel_path = storage.save_export(rendered)
    except ExportError:
        raise
    except Exception as exc:
        logger.error("export failed", exc_info=True)
        raise ExportError(f"Export failed: {exc}") from exc
    logger.info("exported %s (%dx%d)", rel_path, rendered.width, rendered.height)
    return rel_path
