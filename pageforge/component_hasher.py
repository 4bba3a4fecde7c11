"""
Depth-bounded structural signatures for repeated-pattern detection.

Only layout-affecting properties take part (no colors, no text, no exact
pixel sizes), so visually different repeats of one structure hash alike.
Collisions are tolerated as false-positive component matches.
"""

import math

from pageforge.style_parsers import js_round, parse_float

DEFAULT_HASH_DEPTH = 5
SIZE_STEP = 4


def round_to_step(value, step: int = SIZE_STEP) -> int:
    if value is None or math.isnan(value):
        return 0
    return js_round(value / step) * step


def structural_style_key(styles: dict) -> str:
    """Fixed ordered tuple of layout-affecting properties, joined with '|'."""
    return "|".join([
        styles.get("display") or "",
        styles.get("flexDirection") or "",
        styles.get("position") or "",
        styles.get("fontWeight") or "",
        str(round_to_step(parse_float(styles.get("fontSize")))),
        styles.get("textAlign") or "",
        str(round_to_step(parse_float(styles.get("borderRadius")))),
        styles.get("overflow") or "",
    ])


def build_signature(element: dict, depth: int = 0, max_depth: int = DEFAULT_HASH_DEPTH) -> str:
    """
    Signature of a raw snapshot element:
    tag[styleKey](childCount){child signatures...}
    """
    children = element.get("children") or []
    child_count = element.get("childCount", len(children))

    signature = f"{element['tag']}[{structural_style_key(element.get('styles') or {})}]({child_count})"

    if depth < max_depth:
        child_sigs = [build_signature(child, depth + 1, max_depth) for child in children]
        signature += "{" + ",".join(child_sigs) + "}"

    return signature


def utf16_units(text: str):
    """Code units as a browser's charCodeAt would see them."""
    data = text.encode("utf-16-le", "surrogatepass")
    return memoryview(data).cast("H")


def to_base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def djb2(text: str) -> str:
    """32-bit DJB2 string hash, base-36 encoded."""
    value = 5381
    for unit in utf16_units(text):
        value = (value * 33 + unit) & 0xFFFFFFFF
    return to_base36(value)


def hash_component(element: dict, max_depth: int = DEFAULT_HASH_DEPTH) -> str:
    return djb2(build_signature(element, 0, max_depth))
