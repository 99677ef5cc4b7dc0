"""
Card shadow geometry and the light-direction dial.

The dial shows where the light comes from; the shadow falls the opposite
way, so the two angles always differ by 180 degrees.
"""
import math

from domain.models import ShadowDescriptor
from services.numeric import round_half_up

DISTANCE_PER_UNIT = 0.6
BLUR_PER_UNIT = 1.2
SPREAD_PER_UNIT = -0.1
ALPHA_BASE = 0.15
ALPHA_DIVISOR = 250


def shadow_descriptor(intensity: float, angle_degrees: float) -> ShadowDescriptor:
    """
    Build the card shadow for an intensity in [0, 100] and a direction.

    Offsets are whole pixels; alpha runs from 0.15 at intensity 0 to 0.55
    at intensity 100.
    """
    angle_rad = angle_degrees * math.pi / 180
    distance = intensity * DISTANCE_PER_UNIT
    return ShadowDescriptor(
        offset_x=round_half_up(math.cos(angle_rad) * distance),
        offset_y=round_half_up(math.sin(angle_rad) * distance),
        blur_radius=intensity * BLUR_PER_UNIT,
        spread_radius=intensity * SPREAD_PER_UNIT,
        alpha=ALPHA_BASE + intensity / ALPHA_DIVISOR,
    )


def light_angle(shadow_angle: float) -> float:
    """Where the dial draws the light for a given shadow angle."""
    return (shadow_angle + 180) % 360


def shadow_angle_from_pointer(dx: float, dy: float) -> int:
    """
    Map a pointer offset from the dial centre to a shadow angle.

    The pointer marks the light, so the shadow angle is the opposite one,
    rounded to whole degrees in [0, 360).
    """
    angle = math.degrees(math.atan2(dy, dx))
    if angle < 0:
        angle += 360
    return round_half_up((angle + 180) % 360) % 360
