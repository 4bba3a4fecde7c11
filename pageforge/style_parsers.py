"""
Pure parsers for raw computed-style strings.

Every function here is total: unparseable input yields None (or a
documented default), never an exception. Callers treat None as
"omit this property", not as a reason to invent a value.
"""

import math
import re
from typing import Optional


_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_RGBA = re.compile(r"rgba?\(\s*(\d+),\s*(\d+),\s*(\d+)(?:,\s*([\d.]+))?\s*\)")
_RGB_HEX_SOURCE = re.compile(r"rgba?\(\s*(\d+),\s*(\d+),\s*(\d+)")
_HEX = re.compile(r"^#([0-9a-f]{3,8})$", re.IGNORECASE)
_SHADOW = re.compile(
    r"(-?\d+(?:\.\d+)?)px\s+(-?\d+(?:\.\d+)?)px\s+(\d+(?:\.\d+)?)px"
    r"(?:\s+(-?\d+(?:\.\d+)?)px)?\s+(.*)"
)
_LEADING_COLOR = re.compile(r"^(rgba?\([^)]*\)|#[0-9a-f]{3,8})\s+(.*)$", re.IGNORECASE)
_ROTATE = re.compile(r"rotate\(\s*(-?[\d.]+)(deg|turn|rad)\s*\)")
_MATRIX = re.compile(r"matrix\(\s*(-?[\d.eE+-]+)\s*,\s*(-?[\d.eE+-]+)")
_ANGLE = re.compile(r"^(-?[\d.]+)(deg|turn|rad|grad)$")
_STOP_POSITION = re.compile(r"\s+(-?[\d.]+)%\s*$")

_SIDE_ANGLES = {
    "top": 0,
    "top right": 45,
    "right top": 45,
    "right": 90,
    "bottom right": 135,
    "right bottom": 135,
    "bottom": 180,
    "bottom left": 225,
    "left bottom": 225,
    "left": 270,
    "top left": 315,
    "left top": 315,
}


# ============================================================
# Numbers
# ============================================================

def js_round(value: float) -> int:
    """Round half up, the way browsers and canvas hosts round pixel values."""
    return math.floor(value + 0.5)


def parse_float(value, default=None):
    """Leading-number parse: '16px' -> 16.0, 'normal' -> default."""
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return default if isinstance(value, float) and math.isnan(value) else float(value)
    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return default
    return float(match.group(1))


def parse_int(value, default=None):
    if value is None:
        return default
    if isinstance(value, int):
        return value
    match = _INT_PREFIX.match(str(value))
    if not match:
        return default
    return int(match.group(1))


def format_number(value: float) -> str:
    """Render 16.0 as '16' so lookup keys match between scan and generation."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


# ============================================================
# Colors
# ============================================================

def normalize_color(value: str) -> str:
    return value.strip().lower()


def parse_css_color(value: Optional[str]) -> Optional[dict]:
    """rgb()/rgba() and 3/6/8-digit hex -> {r, g, b, a} in [0, 1]."""
    if not value:
        return None

    rgba = _RGBA.search(value)
    if rgba:
        return {
            "r": int(rgba.group(1)) / 255,
            "g": int(rgba.group(2)) / 255,
            "b": int(rgba.group(3)) / 255,
            "a": float(rgba.group(4)) if rgba.group(4) is not None else 1.0,
        }

    hex_match = _HEX.match(value.strip())
    if hex_match:
        digits = hex_match.group(1)
        if len(digits) == 3:
            return {
                "r": int(digits[0] * 2, 16) / 255,
                "g": int(digits[1] * 2, 16) / 255,
                "b": int(digits[2] * 2, 16) / 255,
                "a": 1.0,
            }
        if len(digits) in (6, 8):
            return {
                "r": int(digits[0:2], 16) / 255,
                "g": int(digits[2:4], 16) / 255,
                "b": int(digits[4:6], 16) / 255,
                "a": int(digits[6:8], 16) / 255 if len(digits) == 8 else 1.0,
            }

    return None


def is_transparent(value: Optional[str]) -> bool:
    if not value:
        return True
    if value in ("transparent", "rgba(0, 0, 0, 0)"):
        return True
    parsed = parse_css_color(value)
    return parsed is not None and parsed["a"] == 0


def rgb_to_hex(value: str) -> Optional[str]:
    match = _RGB_HEX_SOURCE.search(value)
    if not match:
        return None
    r, g, b = (min(255, int(match.group(i))) for i in (1, 2, 3))
    return f"#{r:02x}{g:02x}{b:02x}"


def solid_paint(value: Optional[str]) -> Optional[dict]:
    color = parse_css_color(value)
    if not color:
        return None
    return {
        "type": "SOLID",
        "color": {"r": color["r"], "g": color["g"], "b": color["b"]},
        "opacity": color["a"],
    }


# ============================================================
# Shadows, radii, transforms
# ============================================================

def parse_box_shadow(value: Optional[str]) -> Optional[dict]:
    """First shadow of a computed box-shadow -> canvas effect dict."""
    if not value or value == "none":
        return None

    first = _split_top_level(value)[0]
    is_inset = "inset" in first
    clean = first.replace("inset", "").strip()

    # Computed styles list the color first
    leading = _LEADING_COLOR.match(clean)
    if leading:
        clean = f"{leading.group(2)} {leading.group(1)}"

    match = _SHADOW.search(clean)
    if not match:
        return None

    color = parse_css_color(match.group(5).strip())
    if not color:
        return None

    return {
        "type": "INNER_SHADOW" if is_inset else "DROP_SHADOW",
        "visible": True,
        "blendMode": "NORMAL",
        "color": dict(color),
        "offset": {"x": float(match.group(1)), "y": float(match.group(2))},
        "radius": float(match.group(3)),
        "spread": float(match.group(4)) if match.group(4) else 0.0,
    }


def parse_corner_radii(styles) -> Optional[tuple]:
    """(tl, tr, br, bl), or None when every corner is zero."""
    tl = parse_float(styles.border_top_left_radius, 0.0)
    tr = parse_float(styles.border_top_right_radius, 0.0)
    br = parse_float(styles.border_bottom_right_radius, 0.0)
    bl = parse_float(styles.border_bottom_left_radius, 0.0)

    if tl == 0 and tr == 0 and br == 0 and bl == 0:
        return None
    return (tl, tr, br, bl)


def parse_rotation(transform: Optional[str]) -> Optional[float]:
    """
    Canvas rotation in degrees from a CSS transform.
    CSS rotates clockwise, the canvas counter-clockwise, hence the sign flip.
    """
    if not transform or transform == "none":
        return None

    rotate = _ROTATE.search(transform)
    if rotate:
        amount = float(rotate.group(1))
        unit = rotate.group(2)
        if unit == "turn":
            amount *= 360
        elif unit == "rad":
            amount = math.degrees(amount)
        return -amount

    matrix = _MATRIX.search(transform)
    if matrix:
        try:
            a = float(matrix.group(1))
            b = float(matrix.group(2))
        except ValueError:
            return None
        angle = math.degrees(math.atan2(b, a))
        if abs(angle) > 0.01:
            return -angle

    return None


# ============================================================
# Gradients
# ============================================================

def _function_args(value: str, name: str) -> Optional[str]:
    start = value.find(name + "(")
    if start < 0:
        return None
    i = start + len(name) + 1
    depth = 1
    for j in range(i, len(value)):
        if value[j] == "(":
            depth += 1
        elif value[j] == ")":
            depth -= 1
            if depth == 0:
                return value[i:j]
    return None


def _split_top_level(args: str) -> list[str]:
    parts, depth, current = [], 0, []
    for ch in args:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    if current:
        parts.append("".join(current).strip())
    return parts


def _parse_angle(token: str) -> Optional[float]:
    match = _ANGLE.match(token)
    if match:
        amount = float(match.group(1))
        unit = match.group(2)
        if unit == "turn":
            return amount * 360
        if unit == "rad":
            return math.degrees(amount)
        if unit == "grad":
            return amount * 0.9
        return amount
    if token.startswith("to "):
        return _SIDE_ANGLES.get(" ".join(token[3:].split()))
    return None


def _fill_positions(positions: list) -> list[float]:
    # Missing stop positions are spread evenly between their known neighbours
    filled = list(positions)
    if filled[0] is None:
        filled[0] = 0.0
    if filled[-1] is None:
        filled[-1] = 1.0
    i = 0
    while i < len(filled):
        if filled[i] is not None:
            i += 1
            continue
        start = i - 1
        end = i
        while filled[end] is None:
            end += 1
        step = (filled[end] - filled[start]) / (end - start)
        for k in range(start + 1, end):
            filled[k] = filled[start] + step * (k - start)
        i = end
    return filled


def gradient_transform(angle: float) -> list[list[float]]:
    """Affine transform for a CSS angle (0deg = to top, 90deg = to right)."""
    rad = math.radians(angle - 90)
    cos, sin = math.cos(rad), math.sin(rad)
    return [
        [cos, sin, 0.5 - cos / 2 - sin / 2],
        [-sin, cos, 0.5 + sin / 2 - cos / 2],
    ]


def parse_gradient(value: Optional[str]) -> Optional[dict]:
    """linear-gradient(...) -> {angle, stops, transform}; other kinds -> None."""
    if not value:
        return None
    args = _function_args(value, "linear-gradient")
    if args is None or "repeating-linear-gradient(" in value:
        return None

    parts = _split_top_level(args)
    if not parts:
        return None

    angle = 180.0
    first_angle = _parse_angle(parts[0])
    if first_angle is not None:
        angle = first_angle
        parts = parts[1:]
    elif parts[0].startswith("to "):
        return None

    colors, positions = [], []
    for part in parts:
        position = None
        color_text = part
        pos_match = _STOP_POSITION.search(part)
        if pos_match:
            position = float(pos_match.group(1)) / 100
            color_text = part[:pos_match.start()]
        color = parse_css_color(color_text.strip())
        if not color:
            continue
        colors.append(color)
        positions.append(position)

    if len(colors) < 2:
        return None

    stops = [
        {"color": color, "position": min(1.0, max(0.0, pos))}
        for color, pos in zip(colors, _fill_positions(positions))
    ]
    return {"angle": angle, "stops": stops, "transform": gradient_transform(angle)}


def gradient_paint(value: Optional[str]) -> Optional[dict]:
    gradient = parse_gradient(value)
    if not gradient:
        return None
    return {
        "type": "GRADIENT_LINEAR",
        "gradientStops": gradient["stops"],
        "gradientTransform": gradient["transform"],
    }


# ============================================================
# Fonts
# ============================================================

def primary_font_family(value: Optional[str], default: str = "") -> str:
    """First family of a font-family stack, unquoted."""
    if not value:
        return default
    first = value.split(",")[0].strip().replace('"', "").replace("'", "")
    return first or default
