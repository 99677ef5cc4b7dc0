"""
Tests for the settings value type and its wire format.

Run with: pytest tests/test_domain_settings.py -v
"""
import pytest

from domain.models import (
    DEFAULT_SETTINGS,
    GRADIENTS,
    RATIOS,
    BackgroundType,
    InvalidSettingsError,
    LayoutSettings,
    Palette,
    parse_aspect_ratio,
)


class TestDefaults:
    def test_default_values(self):
        s = DEFAULT_SETTINGS
        assert (s.padding, s.inset, s.border_radius) == (64, 16, 32)
        assert (s.shadow, s.shadow_angle) == (40, 135)
        assert s.background_type == BackgroundType.MESH
        assert s.background == "linear-gradient(to bottom, #f3f4f6, #d1d5db)"
        assert s.aspect_ratio == "auto"
        assert (s.scale, s.pan_x, s.pan_y, s.mesh_seed) == (100, 0, 0, 1)

    def test_presets(self):
        assert len(GRADIENTS) == 10
        assert GRADIENTS[0].value == "transparent"
        assert [r.value for r in RATIOS] == ["auto", "1/1", "4/3", "16/9", "9/16"]


class TestValidation:
    @pytest.mark.parametrize(
        "changes",
        [
            {"padding": -1},
            {"padding": 401},
            {"inset": 101},
            {"border_radius": -5},
            {"shadow": 100.5},
            {"shadow_angle": 360},
            {"scale": 5},
            {"scale": 301},
            {"background_type": "plaid"},
            {"aspect_ratio": "wide"},
            {"aspect_ratio": "0/9"},
            {"padding": float("nan")},
            {"shadow_angle": float("inf")},
            {"pan_x": float("nan")},
            {"scale": "100"},
            {"inset": True},
            {"mesh_seed": "x"},
            {"mesh_seed": 2.5},
            {"mesh_seed": True},
        ],
    )
    def test_out_of_range_rejected(self, changes):
        with pytest.raises(InvalidSettingsError):
            DEFAULT_SETTINGS.updated(**changes)

    def test_bounds_accepted(self):
        s = DEFAULT_SETTINGS.updated(padding=400, inset=0, shadow_angle=359, scale=10)
        assert s.padding == 400
        assert s.shadow_angle == 359

    def test_background_type_from_string(self):
        s = DEFAULT_SETTINGS.updated(background_type="transparent")
        assert s.background_type is BackgroundType.TRANSPARENT

    def test_update_returns_new_value(self):
        s = DEFAULT_SETTINGS.updated(padding=10)
        assert s.padding == 10
        assert DEFAULT_SETTINGS.padding == 64


class TestAspectRatio:
    def test_parse(self):
        assert parse_aspect_ratio("auto") is None
        assert parse_aspect_ratio("16/9") == pytest.approx(16 / 9)
        assert parse_aspect_ratio(" 4 / 3 ") == pytest.approx(4 / 3)

    @pytest.mark.parametrize("value", ["", "16:9", "a/b", "16/0", "1.5/1"])
    def test_malformed(self, value):
        with pytest.raises(InvalidSettingsError):
            parse_aspect_ratio(value)


class TestWireFormat:
    def test_to_dict_uses_camel_case(self):
        data = DEFAULT_SETTINGS.to_dict()
        assert data["borderRadius"] == 32
        assert data["shadowAngle"] == 135
        assert data["backgroundType"] == "mesh"
        assert data["meshSeed"] == 1

    def test_from_dict_round_trip(self):
        s = DEFAULT_SETTINGS.updated(pan_x=12.5, aspect_ratio="4/3", background_type=BackgroundType.AI)
        assert LayoutSettings.from_dict(s.to_dict()) == s

    def test_from_dict_partial_and_unknown_keys(self):
        s = LayoutSettings.from_dict({"padding": 8, "whatever": True})
        assert s.padding == 8
        assert s.inset == DEFAULT_SETTINGS.inset

    def test_from_dict_with_base(self):
        base = DEFAULT_SETTINGS.updated(shadow=90)
        assert LayoutSettings.from_dict({"inset": 0}, base=base).shadow == 90


def test_palette_wire_format():
    palette = Palette(dominant="#aabbcc", colors=("#aabbcc", "#ddeeff"))
    assert palette.to_dict() == {"dominant": "#aabbcc", "palette": ["#aabbcc", "#ddeeff"]}
    assert Palette().is_empty
