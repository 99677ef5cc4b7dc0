"""Fit the export canvas into the on-screen preview area."""
from domain.models import ComputedLayout, Size

# Share of the container the preview may use on either axis
FILL = 0.75

# Used while the container or the layout has no size yet
FALLBACK_SCALE = 0.1


def compute_viewport_scale(container: Size, layout: ComputedLayout) -> float:
    """
    Uniform display scale for the live preview.

    The scaled export fits within FILL of the container on both axes and
    touches that bound on at least one. Display only; exports ignore it.
    """
    if container.width == 0 or container.height == 0 or not layout.is_ready:
        return FALLBACK_SCALE
    scale_x = (container.width * FILL) / layout.export_width
    scale_y = (container.height * FILL) / layout.export_height
    return min(scale_x, scale_y)


def preview_size(container: Size, layout: ComputedLayout) -> Size:
    scale = compute_viewport_scale(container, layout)
    return Size(width=layout.export_width * scale, height=layout.export_height * scale)
