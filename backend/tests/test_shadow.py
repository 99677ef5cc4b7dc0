"""
Tests for shadow geometry and the light dial.

Run with: pytest tests/test_shadow.py -v
"""
import math

import pytest

from services.numeric import round_half_up
from services.shadow import light_angle, shadow_angle_from_pointer, shadow_descriptor


def test_round_half_up_matches_browser_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(-16.97) == -17
    assert round_half_up(0.49) == 0


def test_default_shadow():
    shadow = shadow_descriptor(40, 135)
    assert shadow.offset_x == -17
    assert shadow.offset_y == 17
    assert shadow.blur_radius == pytest.approx(48)
    assert shadow.spread_radius == pytest.approx(-4)
    assert shadow.alpha == pytest.approx(0.31)
    assert shadow.to_css() == "-17px 17px 48px -4px rgba(0,0,0,0.31)"


def test_zero_intensity():
    shadow = shadow_descriptor(0, 270)
    assert (shadow.offset_x, shadow.offset_y) == (0, 0)
    assert shadow.blur_radius == 0
    assert shadow.alpha == pytest.approx(0.15)


def test_full_intensity_alpha():
    assert shadow_descriptor(100, 0).alpha == pytest.approx(0.55)
    assert shadow_descriptor(100, 0).offset_x == 60


def test_to_dict_wire_names():
    assert set(shadow_descriptor(40, 135).to_dict()) == {
        "offsetX", "offsetY", "blurRadius", "spreadRadius", "alpha",
    }


def test_light_angle_is_opposite():
    assert light_angle(135) == 315
    assert light_angle(270) == 90
    assert light_angle(0) == 180


def test_pointer_to_the_right_casts_shadow_left():
    assert shadow_angle_from_pointer(10, 0) == 180
    assert shadow_angle_from_pointer(0, 10) == 270
    assert shadow_angle_from_pointer(-10, 0) == 0


@pytest.mark.parametrize("angle", range(0, 360, 15))
def test_pointer_at_light_angle_round_trips(angle):
    light = math.radians(light_angle(angle))
    dx, dy = math.cos(light) * 50, math.sin(light) * 50
    assert shadow_angle_from_pointer(dx, dy) == angle
