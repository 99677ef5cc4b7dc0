"""
Layout engine service.

Computes the export canvas and card dimensions from the style settings and
the natural size of the source image. Aspect-ratio handling uses a registry
so new sizing modes can be added without touching `compute_layout`.

All values are layout pixels and are left unrounded; the exporter scales
them by its pixel ratio.
"""
import logging
from typing import Callable, Dict, Optional, Tuple

from domain.models import ComputedLayout, LayoutSettings, Size, parse_aspect_ratio

logger = logging.getLogger(__name__)


# Type alias for sizing functions: (min export size, target ratio) -> export size
SizingFunction = Callable[[Size, Optional[float]], Size]


# Registry of sizing functions by mode
_sizing_registry: Dict[str, SizingFunction] = {}


def register_sizing(mode: str):
    """Decorator to register a sizing function for an aspect ratio mode."""
    def decorator(func: SizingFunction) -> SizingFunction:
        _sizing_registry[mode] = func
        return func
    return decorator


def sizing_mode(aspect_ratio: str) -> str:
    return "auto" if aspect_ratio == "auto" else "fixed"


def card_size(settings: LayoutSettings, natural_size: Size) -> Size:
    """Image at the current zoom plus the inset border on every side."""
    display_scale = settings.scale / 100
    return Size(
        width=natural_size.width * display_scale + settings.inset * 2,
        height=natural_size.height * display_scale + settings.inset * 2,
    )


def compute_layout(settings: LayoutSettings, natural_size: Size) -> ComputedLayout:
    """
    Compute the layout for an image.

    Args:
        settings: Current style settings
        natural_size: Decoded pixel size of the source image

    Returns:
        ComputedLayout; all-zero while the image is not decoded yet

    Raises:
        ValueError: If no sizing is registered for the aspect ratio mode
    """
    if natural_size.is_zero:
        return ComputedLayout.empty()

    card = card_size(settings, natural_size)
    min_export = Size(
        width=card.width + settings.padding * 2,
        height=card.height + settings.padding * 2,
    )

    mode = sizing_mode(settings.aspect_ratio)
    sizing_func = _sizing_registry.get(mode)
    if not sizing_func:
        raise ValueError(f"No sizing registered for aspect ratio mode: {mode}")
    export = sizing_func(min_export, parse_aspect_ratio(settings.aspect_ratio))

    return ComputedLayout(
        export_width=export.width,
        export_height=export.height,
        card_width=card.width,
        card_height=card.height,
    )


# ============================================
# Sizing implementations
# ============================================

@register_sizing("auto")
def size_auto(min_export: Size, target_ratio: Optional[float]) -> Size:
    """The export hugs the card plus padding."""
    return min_export


@register_sizing("fixed")
def size_fixed_ratio(min_export: Size, target_ratio: Optional[float]) -> Size:
    """
    Smallest rectangle of `target_ratio` that contains `min_export`.

    Start from the minimum width; if the derived height would clip the card,
    grow from the minimum height instead.
    """
    export_w = min_export.width
    export_h = export_w / target_ratio

    if export_h < min_export.height:
        export_h = min_export.height
        export_w = export_h * target_ratio

    return Size(width=export_w, height=export_h)


# ============================================
# Card geometry helpers
# ============================================

def card_outer_radius(settings: LayoutSettings) -> float:
    """Outer corner radius of the card, concentric with the image corners."""
    if settings.border_radius == 0:
        return 0
    return settings.border_radius + settings.inset


def card_origin(layout: ComputedLayout, settings: LayoutSettings) -> Tuple[float, float]:
    """Top-left of the card inside the export canvas: centred, then panned."""
    x = (layout.export_width - layout.card_width) / 2 + settings.pan_x
    y = (layout.export_height - layout.card_height) / 2 + settings.pan_y
    return x, y
