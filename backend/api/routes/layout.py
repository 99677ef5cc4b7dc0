"""
Layout API routes.

Stateless: the client sends its current settings and image size with every
request and gets the derived geometry back.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from domain.models import (
    DEFAULT_SETTINGS,
    GRADIENTS,
    RATIOS,
    InvalidSettingsError,
    LayoutSettings,
    Size,
)
from services.layout_engine import card_outer_radius, compute_layout
from services.shadow import light_angle, shadow_descriptor
from services.viewport import compute_viewport_scale

router = APIRouter()


class SizePayload(BaseModel):
    width: float = Field(0, ge=0, allow_inf_nan=False)
    height: float = Field(0, ge=0, allow_inf_nan=False)


class LayoutRequest(BaseModel):
    settings: Dict[str, Any] = {}
    natural_size: SizePayload
    container: Optional[SizePayload] = None


class LayoutResponse(BaseModel):
    ready: bool
    layout: Dict[str, float]
    viewport_scale: Optional[float] = None
    shadow: Dict[str, float]
    shadow_css: str
    light_angle: float
    outer_radius: float
    settings: Dict[str, Any]


class PresetsResponse(BaseModel):
    gradients: List[Dict[str, str]]
    ratios: List[Dict[str, str]]
    defaults: Dict[str, Any]


def settings_from_payload(data: Dict[str, Any]) -> LayoutSettings:
    """Parse wire settings, mapping validation failures to 422."""
    try:
        return LayoutSettings.from_dict(data)
    except (InvalidSettingsError, TypeError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid settings: {e}")


@router.get("/presets", response_model=PresetsResponse)
async def get_presets():
    """Background presets, aspect ratio choices and the default settings."""
    return PresetsResponse(
        gradients=[{"name": g.name, "value": g.value} for g in GRADIENTS],
        ratios=[{"label": r.label, "value": r.value} for r in RATIOS],
        defaults=DEFAULT_SETTINGS.to_dict(),
    )


@router.post("/layout", response_model=LayoutResponse)
async def solve_layout(request: LayoutRequest):
    """
    Compute export/card size, preview scale and card shadow.

    `ready` is false while the natural size is still zero; the layout is
    then all-zero and should not be rendered.
    """
    settings = settings_from_payload(request.settings)
    layout = compute_layout(settings, Size(request.natural_size.width, request.natural_size.height))

    viewport_scale = None
    if request.container is not None:
        viewport_scale = compute_viewport_scale(
            Size(request.container.width, request.container.height), layout
        )

    shadow = shadow_descriptor(settings.shadow, settings.shadow_angle)
    return LayoutResponse(
        ready=layout.is_ready,
        layout=layout.to_dict(),
        viewport_scale=viewport_scale,
        shadow=shadow.to_dict(),
        shadow_css=shadow.to_css(),
        light_angle=light_angle(settings.shadow_angle),
        outer_radius=card_outer_radius(settings),
        settings=settings.to_dict(),
    )
