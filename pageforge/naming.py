"""
Path-style names for generated styles, variables and effects.

A NameRegistry is created per conversion run and threaded through the
token creators, so names are unique inside one run and never leak into
the next.
"""

import re
from typing import Optional

from pageforge.style_parsers import js_round, rgb_to_hex

_NON_ALNUM = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def weight_bucket(weight: int) -> str:
    if weight >= 700:
        return "bold"
    if weight >= 500:
        return "medium"
    return "regular"


def typography_base_name(font_size: float, font_weight: int) -> str:
    return f"text/{js_round(font_size)}-{weight_bucket(font_weight)}"


def color_base_name(value: str) -> str:
    hex_value = rgb_to_hex(value)
    suffix = hex_value[1:] if hex_value else _NON_ALNUM.sub("-", value)
    return f"color/{suffix}"


def css_var_path(css_var_name: str) -> str:
    """'--color-brand-primary' -> 'color/brand/primary'"""
    stripped = css_var_name.lstrip("-")
    return "/".join(segment for segment in stripped.split("-") if segment)


class NameRegistry:
    """Tracks names handed out during one conversion run."""

    def __init__(self):
        self._used = set()

    def reset(self):
        self._used.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._used

    def unique(self, name: str) -> str:
        if name not in self._used:
            self._used.add(name)
            return name
        i = 2
        while f"{name}-{i}" in self._used:
            i += 1
        unique = f"{name}-{i}"
        self._used.add(unique)
        return unique

    def css_var(self, css_var_name: str) -> str:
        return self.unique(css_var_path(css_var_name))

    def color(self, value: str, css_variable: Optional[str] = None) -> str:
        if css_variable:
            return self.css_var(css_variable)
        return self.unique(color_base_name(value))

    def typography(self, font_size: float, font_weight: int) -> str:
        return self.unique(typography_base_name(font_size, font_weight))

    def effect(self, effect_type: str, index: int) -> str:
        return self.unique(f"effect/{effect_type}-{index + 1}")
