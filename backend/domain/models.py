"""
Core domain models for the image wrapping editor.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field, fields, replace
from enum import Enum
import math
import re
from typing import Any, Dict, List, Optional, Tuple


class InvalidSettingsError(ValueError):
    """Raised when a settings value falls outside its documented range."""


class BackgroundType(str, Enum):
    """How the area around the card is painted."""
    MESH = "mesh"  # Aurora blobs driven by the palette and mesh seed
    CUSTOM = "custom"
    PRESET = "preset"
    AI = "ai"  # Suggested by the remote style service
    TRANSPARENT = "transparent"


@dataclass(frozen=True)
class Size:
    """A width/height pair in pixels."""
    width: float = 0
    height: float = 0

    @property
    def is_zero(self) -> bool:
        return self.width == 0 or self.height == 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Size":
        return cls(width=data.get("width", 0), height=data.get("height", 0))


@dataclass(frozen=True)
class GradientPreset:
    name: str
    value: str


@dataclass(frozen=True)
class AspectRatioOption:
    label: str
    value: str


GRADIENTS: List[GradientPreset] = [
    GradientPreset("Transparent", "transparent"),
    GradientPreset("Desktop", "linear-gradient(135deg, #FF9A9E 0%, #FECFEF 99%, #FECFEF 100%)"),
    GradientPreset("Cool", "linear-gradient(120deg, #84fab0 0%, #8fd3f4 100%)"),
    GradientPreset("Nice", "linear-gradient(120deg, #e0c3fc 0%, #8ec5fc 100%)"),
    GradientPreset("Morning", "linear-gradient(120deg, #f6d365 0%, #fda085 100%)"),
    GradientPreset("Bright", "linear-gradient(to right, #4facfe 0%, #00f2fe 100%)"),
    GradientPreset("Love", "linear-gradient(to top, #30cfd0 0%, #330867 100%)"),
    GradientPreset("Rain", "linear-gradient(to top, #5f72bd 0%, #9b23ea 100%)"),
    GradientPreset("Sky", "linear-gradient(135deg, #667eea 0%, #764ba2 100%)"),
    GradientPreset("Subtle Gray", "linear-gradient(to bottom, #f3f4f6, #d1d5db)"),
]

RATIOS: List[AspectRatioOption] = [
    AspectRatioOption("Original", "auto"),
    AspectRatioOption("1:1", "1/1"),
    AspectRatioOption("4:3", "4/3"),
    AspectRatioOption("16:9", "16/9"),
    AspectRatioOption("9:16", "9/16"),
]

_ASPECT_RATIO_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")


def parse_aspect_ratio(value: str) -> Optional[float]:
    """
    Parse an aspect ratio setting.

    Returns None for "auto", otherwise W/H as a float.

    Raises:
        InvalidSettingsError: if the value is not "auto" or "W/H" with
            positive integer parts
    """
    if value == "auto":
        return None
    match = _ASPECT_RATIO_RE.match(value or "")
    if not match:
        raise InvalidSettingsError(f"Invalid aspect ratio: {value!r}")
    ratio_w, ratio_h = int(match.group(1)), int(match.group(2))
    if ratio_w == 0 or ratio_h == 0:
        raise InvalidSettingsError(f"Invalid aspect ratio: {value!r}")
    return ratio_w / ratio_h


# (min, max, max_inclusive) for the bounded numeric settings
_RANGES: Dict[str, Tuple[float, float, bool]] = {
    "padding": (0, 400, True),
    "inset": (0, 100, True),
    "border_radius": (0, 100, True),
    "shadow": (0, 100, True),
    "shadow_angle": (0, 360, False),
    "scale": (10, 300, True),
}

_NUMERIC_FIELDS = tuple(_RANGES) + ("pan_x", "pan_y")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# Wire names used by the browser client
_WIRE_NAMES: Dict[str, str] = {
    "padding": "padding",
    "inset": "inset",
    "border_radius": "borderRadius",
    "shadow": "shadow",
    "shadow_angle": "shadowAngle",
    "background_type": "backgroundType",
    "background": "background",
    "aspect_ratio": "aspectRatio",
    "scale": "scale",
    "pan_x": "panX",
    "pan_y": "panY",
    "mesh_seed": "meshSeed",
}


@dataclass(frozen=True)
class LayoutSettings:
    """
    User-tunable style parameters for the composition.

    The value is immutable: every user change produces a new instance via
    `updated`, so readers never observe a half-applied edit.
    """
    padding: float = 64  # Outer margin around the card
    inset: float = 16  # White border between card edge and image
    border_radius: float = 32
    shadow: float = 40  # Intensity 0..100
    shadow_angle: float = 135  # Degrees, direction the shadow falls
    background_type: BackgroundType = BackgroundType.MESH
    background: str = GRADIENTS[9].value
    aspect_ratio: str = "auto"  # "auto" or "W/H"
    scale: float = 100  # Image zoom percent
    pan_x: float = 0
    pan_y: float = 0
    mesh_seed: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.background_type, BackgroundType):
            try:
                object.__setattr__(self, "background_type", BackgroundType(self.background_type))
            except ValueError:
                raise InvalidSettingsError(f"Unknown background type: {self.background_type!r}")
        self.validate()

    def validate(self) -> None:
        for name in _NUMERIC_FIELDS:
            value = getattr(self, name)
            if not _is_number(value) or not math.isfinite(value):
                raise InvalidSettingsError(f"{name} must be a finite number, got {value!r}")
        if isinstance(self.mesh_seed, bool) or not isinstance(self.mesh_seed, int):
            raise InvalidSettingsError(f"mesh_seed must be an integer, got {self.mesh_seed!r}")
        for name, (low, high, inclusive) in _RANGES.items():
            value = getattr(self, name)
            too_high = value > high if inclusive else value >= high
            if value < low or too_high:
                bracket = "]" if inclusive else ")"
                raise InvalidSettingsError(f"{name}={value} outside [{low}, {high}{bracket}")
        parse_aspect_ratio(self.aspect_ratio)

    def updated(self, **changes: Any) -> "LayoutSettings":
        """Return a new settings value with `changes` applied."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            data[_WIRE_NAMES[f.name]] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["LayoutSettings"] = None) -> "LayoutSettings":
        """
        Build settings from wire-format keys.

        Keys missing from `data` are taken from `base` (defaults when omitted).
        Unknown keys are ignored.
        """
        base = base or DEFAULT_SETTINGS
        reverse = {wire: attr for attr, wire in _WIRE_NAMES.items()}
        changes = {reverse[k]: v for k, v in data.items() if k in reverse}
        return base.updated(**changes)


DEFAULT_SETTINGS = LayoutSettings()


@dataclass(frozen=True)
class ComputedLayout:
    """Export and card dimensions in layout pixels (unrounded)."""
    export_width: float = 0.0
    export_height: float = 0.0
    card_width: float = 0.0
    card_height: float = 0.0

    @classmethod
    def empty(cls) -> "ComputedLayout":
        return cls()

    @property
    def is_ready(self) -> bool:
        return self.export_width > 0 and self.export_height > 0

    @property
    def export_size(self) -> Size:
        return Size(self.export_width, self.export_height)

    @property
    def card_size(self) -> Size:
        return Size(self.card_width, self.card_height)

    def to_dict(self) -> Dict[str, float]:
        return {
            "exportWidth": self.export_width,
            "exportHeight": self.export_height,
            "cardWidth": self.card_width,
            "cardHeight": self.card_height,
        }


@dataclass(frozen=True)
class ShadowDescriptor:
    """A directional drop shadow for the card."""
    offset_x: int
    offset_y: int
    blur_radius: float
    spread_radius: float
    alpha: float

    def to_css(self) -> str:
        return (
            f"{self.offset_x}px {self.offset_y}px {self.blur_radius:g}px "
            f"{self.spread_radius:g}px rgba(0,0,0,{self.alpha:g})"
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "offsetX": self.offset_x,
            "offsetY": self.offset_y,
            "blurRadius": self.blur_radius,
            "spreadRadius": self.spread_radius,
            "alpha": self.alpha,
        }


FALLBACK_DOMINANT = "#e5e5e5"
FALLBACK_PALETTE: Tuple[str, ...] = ("#e2e4e9", "#dbeafe", "#f3e8ff", "#fae8ff", "#e0f2fe")
PALETTE_SIZE = 5


@dataclass(frozen=True)
class Palette:
    """
    Colors extracted from the source image.

    `colors` holds exactly PALETTE_SIZE entries after a successful extraction,
    or is empty when the image could not be decoded or sampled.
    """
    dominant: str = FALLBACK_DOMINANT
    colors: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.colors

    def to_dict(self) -> Dict[str, Any]:
        return {"dominant": self.dominant, "palette": list(self.colors)}


@dataclass(frozen=True)
class StyleSuggestion:
    """Background and shadow proposed by the remote style service."""
    background: str
    shadow: float
