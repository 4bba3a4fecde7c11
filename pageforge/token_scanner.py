"""
Design-token scan over a page snapshot.

Independent passes per category. Colors, typography and effects are
deduplicated by exact normalized value and sorted by usage; custom
properties come from readable stylesheets, first declaration wins.
"""

import re
from urllib.parse import parse_qs, urlparse

from pageforge.models import (
    ColorToken,
    DesignTokens,
    DetectedFont,
    EffectToken,
    TypographyToken,
    VariableToken,
)
from pageforge.naming import color_base_name, typography_base_name
from pageforge.style_parsers import (
    normalize_color,
    parse_css_color,
    parse_float,
    parse_int,
    primary_font_family,
)

TEXT_TAGS = ("p", "h1", "h2", "h3", "h4", "h5", "h6", "span", "a", "li", "td", "th", "label", "button")
COLOR_PROPERTIES = ("color", "backgroundColor", "borderColor")
NUMBER_VALUE = re.compile(r"^-?\d+(\.\d+)?(px|rem|em|%|vh|vw)?$")

GOOGLE_FONTS_HOST = "fonts.googleapis.com"

# System stacks the canvas cannot load by name
CANVAS_FONT_EQUIVALENTS = {
    "-apple-system": "Inter",
    "blinkmacsystemfont": "Inter",
    "system-ui": "Inter",
    "segoe ui": "Inter",
    "sans-serif": "Inter",
    "helvetica neue": "Helvetica",
    "arial": "Arial",
    "serif": "Times New Roman",
    "monospace": "Roboto Mono",
}


def iter_elements(root: dict):
    """Pre-order (document order) walk over a snapshot element tree."""
    stack = [root]
    while stack:
        el = stack.pop()
        yield el
        stack.extend(reversed(el.get("children") or []))


def is_token_transparent(value) -> bool:
    if not value or value in ("transparent", "rgba(0, 0, 0, 0)", "initial", "inherit"):
        return True
    parsed = parse_css_color(value)
    return parsed is not None and parsed["a"] == 0


def token_elements(snapshot: dict) -> list:
    """Every element of the document: the body tree plus the flat list past the walk depth."""
    elements = list(iter_elements(snapshot["body"])) if snapshot.get("body") else []
    return elements + list(snapshot.get("deepElements") or [])


def scan_tokens(snapshot: dict) -> DesignTokens:
    elements = token_elements(snapshot)

    variables = scan_css_variables(snapshot.get("stylesheets") or [])
    return DesignTokens(
        colors=scan_colors(elements, variables),
        typography=scan_typography(elements),
        effects=scan_effects(elements),
        variables=variables,
    )


# ============================================================
# Colors
# ============================================================

def _color_identity(value: str):
    parsed = parse_css_color(value)
    if not parsed:
        return None
    return (
        round(parsed["r"] * 255),
        round(parsed["g"] * 255),
        round(parsed["b"] * 255),
        round(parsed["a"], 3),
    )


def scan_colors(elements: list, variables: list[VariableToken] | None = None) -> list[ColorToken]:
    counts = {}
    for el in elements:
        styles = el.get("styles") or {}
        for prop in COLOR_PROPERTIES:
            value = styles.get(prop)
            if is_token_transparent(value) or parse_css_color(value) is None:
                continue
            key = normalize_color(value)
            counts[key] = counts.get(key, 0) + 1

    # Link colors to the first color variable resolving to the same value
    var_by_color = {}
    for var in variables or []:
        if var.type != "color":
            continue
        identity = _color_identity(var.resolved_value)
        if identity is not None and identity not in var_by_color:
            var_by_color[identity] = var.name

    tokens = [
        ColorToken(
            name=color_base_name(value),
            value=value,
            usage_count=count,
            css_variable=var_by_color.get(_color_identity(value)),
        )
        for value, count in counts.items()
    ]
    return sorted(tokens, key=lambda t: t.usage_count, reverse=True)


# ============================================================
# Typography
# ============================================================

def typography_signature(styles: dict) -> str:
    return "|".join(
        styles.get(prop) or ""
        for prop in ("fontFamily", "fontSize", "fontWeight", "lineHeight", "letterSpacing")
    )


def scan_typography(elements: list) -> list[TypographyToken]:
    found = {}
    for el in elements:
        if el.get("tag") not in TEXT_TAGS:
            continue
        styles = el.get("styles") or {}
        key = typography_signature(styles)
        if key in found:
            found[key]["count"] += 1
            continue

        font_size = parse_float(styles.get("fontSize")) or 16.0
        font_weight = parse_int(styles.get("fontWeight")) or 400
        found[key] = {
            "count": 1,
            "token": TypographyToken(
                name=typography_base_name(font_size, font_weight),
                font_family=primary_font_family(styles.get("fontFamily")),
                font_size=font_size,
                font_weight=font_weight,
                line_height=parse_float(styles.get("lineHeight")) or 0.0,
                letter_spacing=parse_float(styles.get("letterSpacing")) or 0.0,
            ),
        }

    tokens = []
    for entry in found.values():
        token = entry["token"]
        token.usage_count = entry["count"]
        tokens.append(token)
    return sorted(tokens, key=lambda t: t.usage_count, reverse=True)


# ============================================================
# Effects
# ============================================================

def scan_effects(elements: list) -> list[EffectToken]:
    found = {}
    for el in elements:
        shadow = (el.get("styles") or {}).get("boxShadow")
        if not shadow or shadow == "none":
            continue
        key = shadow.strip()
        if key in found:
            found[key]["count"] += 1
        else:
            found[key] = {"count": 1, "type": "inner-shadow" if "inset" in key else "drop-shadow"}

    ordinals = {}
    tokens = []
    for value, entry in found.items():
        ordinals[entry["type"]] = ordinals.get(entry["type"], 0) + 1
        tokens.append(EffectToken(
            name=f"effect/{entry['type']}-{ordinals[entry['type']]}",
            type=entry["type"],
            value=value,
            usage_count=entry["count"],
        ))
    return sorted(tokens, key=lambda t: t.usage_count, reverse=True)


# ============================================================
# CSS custom properties
# ============================================================

def infer_variable_type(value: str) -> str:
    if value.startswith("#") or value.startswith("rgb") or value.startswith("hsl"):
        return "color"
    if NUMBER_VALUE.match(value):
        return "number"
    return "string"


def scan_css_variables(stylesheets: list) -> list[VariableToken]:
    variables = []
    seen = set()
    for sheet in stylesheets:
        if not sheet.get("accessible", True):
            print(f"  [tokens] Skipping unreadable stylesheet {sheet.get('href') or '<inline>'}")
            continue
        for name, value in sheet.get("variables") or []:
            value = (value or "").strip()
            if not name.startswith("--") or not value or name in seen:
                continue
            seen.add(name)
            variables.append(VariableToken(
                name=name,
                css_property=name,
                resolved_value=value,
                type=infer_variable_type(value),
            ))
    return variables


# ============================================================
# Fonts
# ============================================================

def parse_google_fonts_url(url: str) -> dict[str, list[int]]:
    """family -> weights declared by a fonts.googleapis.com stylesheet link."""
    parsed = urlparse(url)
    if GOOGLE_FONTS_HOST not in parsed.netloc:
        return {}

    families = {}
    for spec in parse_qs(parsed.query).get("family", []):
        for entry in spec.split("|"):
            name, _, axes = entry.partition(":")
            name = name.replace("+", " ").strip()
            if not name:
                continue
            weights = []
            if "@" in axes:
                # css2: wght@400;700 or ital,wght@0,400;1,700
                tags, _, values = axes.partition("@")
                tag_list = tags.split(",")
                weight_index = tag_list.index("wght") if "wght" in tag_list else None
                if weight_index is not None:
                    for tuple_text in values.split(";"):
                        parts = tuple_text.split(",")
                        if weight_index < len(parts):
                            weight = parse_int(parts[weight_index].split("..")[0])
                            if weight:
                                weights.append(weight)
            elif axes:
                # css1: Roboto:400,700italic
                for part in axes.split(","):
                    weight = parse_int(part)
                    if weight:
                        weights.append(weight)
            families[name] = sorted(set(families.get(name, []) + weights))
    return families


def scan_fonts(snapshot: dict) -> list[DetectedFont]:
    used = {}
    for el in token_elements(snapshot):
        if el.get("tag") not in TEXT_TAGS and el.get("ownText") is None:
            continue
        styles = el.get("styles") or {}
        family = primary_font_family(styles.get("fontFamily"))
        if not family:
            continue
        weight = parse_int(styles.get("fontWeight")) or 400
        used.setdefault(family, set()).add(weight)

    google = {}
    for href in snapshot.get("links") or []:
        for family, weights in parse_google_fonts_url(href).items():
            google.setdefault(family.lower(), (family, set()))[1].update(weights)

    fonts = []
    for family, weights in used.items():
        google_entry = google.pop(family.lower(), None)
        fonts.append(DetectedFont(
            family=family,
            weights=sorted(weights),
            is_google_font=google_entry is not None,
            canvas_equivalent=CANVAS_FONT_EQUIVALENTS.get(family.lower()),
        ))

    # Loaded from Google Fonts but not seen on a text element
    for family, weights in google.values():
        fonts.append(DetectedFont(family=family, weights=sorted(weights), is_google_font=True))

    return fonts
