import pytest

from pageforge.models import ComputedStyles
from pageforge.style_parsers import (
    format_number,
    gradient_paint,
    is_transparent,
    js_round,
    parse_box_shadow,
    parse_corner_radii,
    parse_css_color,
    parse_float,
    parse_gradient,
    parse_int,
    parse_rotation,
    primary_font_family,
    rgb_to_hex,
    solid_paint,
)


# ============================================================
# Numbers
# ============================================================

def test_js_round_rounds_half_up():
    assert js_round(2.5) == 3
    assert js_round(1.49) == 1
    assert js_round(-0.5) == 0


def test_parse_float_reads_leading_number():
    assert parse_float("16px") == 16.0
    assert parse_float(".5em") == 0.5
    assert parse_float(3) == 3.0
    assert parse_float("normal") is None
    assert parse_float("normal", 0.0) == 0.0
    assert parse_float(None, 1.0) == 1.0


def test_parse_int():
    assert parse_int("700") == 700
    assert parse_int("bold") is None


def test_format_number_drops_trailing_zero():
    assert format_number(16.0) == "16"
    assert format_number(1.5) == "1.5"


# ============================================================
# Colors
# ============================================================

def test_parse_rgb_and_rgba():
    assert parse_css_color("rgb(255, 0, 0)") == {"r": 1.0, "g": 0.0, "b": 0.0, "a": 1.0}
    assert parse_css_color("rgba(0, 0, 0, 0.5)")["a"] == 0.5


def test_parse_hex_forms():
    assert parse_css_color("#fff") == {"r": 1.0, "g": 1.0, "b": 1.0, "a": 1.0}
    assert parse_css_color("#ff0000")["r"] == 1.0
    assert parse_css_color("#00000080")["a"] == pytest.approx(128 / 255)


@pytest.mark.parametrize("value", ["", None, "red", "hsl(0, 100%, 50%)", "#12"])
def test_unsupported_colors_are_none(value):
    assert parse_css_color(value) is None


def test_is_transparent():
    assert is_transparent(None)
    assert is_transparent("transparent")
    assert is_transparent("rgba(10, 10, 10, 0)")
    assert not is_transparent("rgb(0, 0, 0)")


def test_rgb_to_hex():
    assert rgb_to_hex("rgb(255, 128, 0)") == "#ff8000"
    assert rgb_to_hex("#fff") is None


def test_solid_paint_carries_alpha_as_opacity():
    assert solid_paint("rgba(255, 0, 0, 0.5)") == {
        "type": "SOLID",
        "color": {"r": 1.0, "g": 0.0, "b": 0.0},
        "opacity": 0.5,
    }
    assert solid_paint("blue") is None


# ============================================================
# Shadows, radii, transforms
# ============================================================

def test_parse_box_shadow_drop():
    effect = parse_box_shadow("0px 4px 6px rgba(0, 0, 0, 0.1)")
    assert effect["type"] == "DROP_SHADOW"
    assert effect["offset"] == {"x": 0.0, "y": 4.0}
    assert effect["radius"] == 6.0
    assert effect["spread"] == 0.0
    assert effect["color"]["a"] == 0.1


def test_parse_box_shadow_with_spread_and_inset():
    assert parse_box_shadow("2px 4px 6px 8px rgba(0, 0, 0, 0.5)")["spread"] == 8.0
    assert parse_box_shadow("inset 0px 2px 4px rgba(0, 0, 0, 0.2)")["type"] == "INNER_SHADOW"


def test_parse_box_shadow_color_first_computed_form():
    effect = parse_box_shadow("rgba(0, 0, 0, 0.25) 0px 10px 15px -3px")
    assert effect["offset"] == {"x": 0.0, "y": 10.0}
    assert effect["radius"] == 15.0
    assert effect["spread"] == -3.0


def test_parse_box_shadow_uses_first_of_several():
    effect = parse_box_shadow("rgba(0, 0, 0, 0.1) 0px 1px 3px 0px, rgba(0, 0, 0, 0.06) 0px 1px 2px 0px")
    assert effect["radius"] == 3.0
    assert effect["color"]["a"] == 0.1


@pytest.mark.parametrize("value", [None, "none", "some-random-text", "0px 4px 6px hsl(0, 0%, 0%)"])
def test_parse_box_shadow_unparseable(value):
    assert parse_box_shadow(value) is None


def test_corner_radii():
    styles = ComputedStyles(border_top_left_radius="8px", border_bottom_right_radius="4px")
    assert parse_corner_radii(styles) == (8.0, 0.0, 4.0, 0.0)
    assert parse_corner_radii(ComputedStyles(border_top_left_radius="0px")) is None


def test_rotation_flips_sign():
    assert parse_rotation("rotate(45deg)") == -45.0
    assert parse_rotation("rotate(0.5turn)") == -180.0
    assert parse_rotation("matrix(0, 1, -1, 0, 0, 0)") == pytest.approx(-90.0)
    assert parse_rotation("matrix(1, 0, 0, 1, 0, 0)") is None
    assert parse_rotation("none") is None


# ============================================================
# Gradients and fonts
# ============================================================

def test_linear_gradient_with_angle():
    gradient = parse_gradient("linear-gradient(90deg, rgb(255, 0, 0), rgb(0, 0, 255))")
    assert gradient["angle"] == 90
    assert [stop["position"] for stop in gradient["stops"]] == [0.0, 1.0]
    assert gradient["stops"][0]["color"]["r"] == 1.0


def test_linear_gradient_fills_missing_positions():
    gradient = parse_gradient(
        "linear-gradient(rgb(255, 0, 0) 0%, rgb(0, 255, 0), rgb(0, 0, 255) 100%)"
    )
    assert gradient["angle"] == 180
    assert [stop["position"] for stop in gradient["stops"]] == [0.0, 0.5, 1.0]


def test_linear_gradient_side_keyword():
    assert parse_gradient("linear-gradient(to right, #000, #fff)")["angle"] == 90


@pytest.mark.parametrize("value", [
    None,
    "radial-gradient(circle, #000, #fff)",
    "linear-gradient(90deg, #000)",
    "repeating-linear-gradient(45deg, #000 0%, #fff 10%)",
])
def test_unsupported_gradients(value):
    assert parse_gradient(value) is None
    assert gradient_paint(value) is None


def test_gradient_paint_shape():
    paint = gradient_paint("linear-gradient(180deg, #000000, #ffffff)")
    assert paint["type"] == "GRADIENT_LINEAR"
    assert len(paint["gradientStops"]) == 2
    assert len(paint["gradientTransform"]) == 2


def test_primary_font_family():
    assert primary_font_family('"Helvetica Neue", Arial, sans-serif') == "Helvetica Neue"
    assert primary_font_family(None) == ""
    assert primary_font_family(None, "Inter") == "Inter"
