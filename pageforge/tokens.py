"""
Shared styles and variables from DesignTokens.

Creates paint/text/effect styles and variables on the canvas host and
returns a StyleMap the node creators use to link fills, shadows and text
to a shared style instead of duplicating raw values.

Related:
- Names: pageforge/naming.py
- Scan side: pageforge/token_scanner.py
"""

import re
from dataclasses import dataclass, field

from pageforge.canvas import CapabilityUnavailable
from pageforge.models import DesignTokens
from pageforge.style_parsers import (
    format_number,
    normalize_color,
    parse_box_shadow,
    parse_css_color,
    parse_float,
    parse_int,
    primary_font_family,
)

COLLECTION_PREFIXES = {
    "color": "Colors",
    "bg": "Colors",
    "background": "Colors",
    "spacing": "Spacing",
    "gap": "Spacing",
    "padding": "Spacing",
    "margin": "Spacing",
    "font": "Typography",
    "text": "Typography",
    "radius": "Border",
    "border": "Border",
    "shadow": "Effects",
}

VARIABLE_TYPES = {"color": "COLOR", "number": "FLOAT", "string": "STRING"}


# ============================================================
# Style map
# ============================================================

@dataclass
class ColorStyleMap:
    by_value: dict = field(default_factory=dict)  # normalized css color -> paint style id

    @property
    def count(self) -> int:
        return len(self.by_value)


@dataclass
class TypographyStyleMap:
    by_key: dict = field(default_factory=dict)  # typography key -> text style id

    @property
    def count(self) -> int:
        return len(self.by_key)


@dataclass
class EffectStyleMap:
    by_value: dict = field(default_factory=dict)  # trimmed box-shadow -> effect style id

    @property
    def count(self) -> int:
        return len(self.by_value)


@dataclass
class VariableMap:
    by_name: dict = field(default_factory=dict)  # css variable name -> variable id

    @property
    def count(self) -> int:
        return len(self.by_name)


@dataclass
class StyleMap:
    colors: ColorStyleMap = field(default_factory=ColorStyleMap)
    typography: TypographyStyleMap = field(default_factory=TypographyStyleMap)
    effects: EffectStyleMap = field(default_factory=EffectStyleMap)
    variables: VariableMap = field(default_factory=VariableMap)

    @property
    def count(self) -> int:
        return self.colors.count + self.typography.count + self.effects.count + self.variables.count


# ============================================================
# Keys
# ============================================================

def typography_key(font_family: str, font_size: float, font_weight: int,
                   line_height: float, letter_spacing: float) -> str:
    return "|".join([
        font_family,
        format_number(font_size),
        str(font_weight),
        format_number(line_height),
        format_number(letter_spacing),
    ])


def token_typography_key(token) -> str:
    return typography_key(
        token.font_family, token.font_size, token.font_weight,
        token.line_height, token.letter_spacing,
    )


def styles_typography_key(styles) -> str:
    """Same key as token_typography_key, computed from a node's computed styles."""
    return typography_key(
        primary_font_family(styles.font_family),
        parse_float(styles.font_size) or 16.0,
        parse_int(styles.font_weight) or 400,
        parse_float(styles.line_height) or 0.0,
        parse_float(styles.letter_spacing) or 0.0,
    )


def collection_name(var_name: str) -> str:
    prefix = re.split(r"[-/]", var_name.lstrip("-"))[0].lower()
    return COLLECTION_PREFIXES.get(prefix, "Tokens")


# ============================================================
# Creators
# ============================================================

def find_style(styles, name: str, **values):
    """An existing host style with this name and these exact values, if any."""
    for style in styles:
        if style.name == name and all(getattr(style, attr) == value for attr, value in values.items()):
            return style
    return None


async def create_color_styles(tokens, ctx, reuse: bool = False) -> ColorStyleMap:
    result = ColorStyleMap()
    for token in tokens[:ctx.config.max_color_styles]:
        normalized = normalize_color(token.value)
        if normalized in result.by_value:
            continue
        parsed = parse_css_color(token.value)
        if not parsed:
            continue

        name = ctx.names.color(token.value, token.css_variable)
        paints = [{
            "type": "SOLID",
            "color": {"r": parsed["r"], "g": parsed["g"], "b": parsed["b"]},
            "opacity": parsed["a"],
        }]
        style = find_style(ctx.host.paint_styles, name, paints=paints) if reuse else None
        if style is None:
            style = ctx.host.create_paint_style()
            style.name = name
            style.paints = paints
        result.by_value[normalized] = style.id
    return result


async def create_typography_styles(tokens, ctx, reuse: bool = False) -> TypographyStyleMap:
    result = TypographyStyleMap()
    for token in tokens[:ctx.config.max_typography_styles]:
        key = token_typography_key(token)
        if key in result.by_key:
            continue
        try:
            font = await ctx.fonts.load(token.font_family, token.font_weight)
            name = ctx.names.typography(token.font_size, token.font_weight)
            line_height = {"value": token.line_height, "unit": "PIXELS"} if token.line_height > 0 else None
            letter_spacing = {"value": token.letter_spacing, "unit": "PIXELS"} if token.letter_spacing != 0 else None
            style = None
            if reuse:
                style = find_style(
                    ctx.host.text_styles, name, font_name=font, font_size=token.font_size,
                    line_height=line_height, letter_spacing=letter_spacing,
                )
            if style is None:
                style = ctx.host.create_text_style()
                style.name = name
                style.font_name = font
                style.font_size = token.font_size
                style.line_height = line_height
                style.letter_spacing = letter_spacing
        except Exception as e:
            print(f"  [tokens] Skipping text style {token.name}: {e}")
            continue
        result.by_key[key] = style.id
    return result


async def create_effect_styles(tokens, ctx, reuse: bool = False) -> EffectStyleMap:
    result = EffectStyleMap()
    ordinals = {}
    for token in tokens[:ctx.config.max_effect_styles]:
        key = token.value.strip()
        if key in result.by_value:
            continue
        effect = parse_box_shadow(key)
        if not effect:
            continue

        name = ctx.names.effect(token.type, ordinals.get(token.type, 0))
        style = find_style(ctx.host.effect_styles, name, effects=[effect]) if reuse else None
        if style is None:
            style = ctx.host.create_effect_style()
            style.name = name
            style.effects = [effect]
        ordinals[token.type] = ordinals.get(token.type, 0) + 1
        result.by_value[key] = style.id
    return result


def variable_value(token):
    """Host value for a variable token, or None when it does not parse."""
    if token.type == "color":
        color = parse_css_color(token.resolved_value)
        return dict(color) if color else None
    if token.type == "number":
        return parse_float(token.resolved_value)
    return token.resolved_value


async def create_variables(tokens, ctx, reuse: bool = False) -> VariableMap:
    result = VariableMap()

    groups = {}
    for token in tokens[:ctx.config.max_variables]:
        groups.setdefault(collection_name(token.name), []).append(token)

    try:
        for name, group in groups.items():
            collection = None
            if reuse:
                collection = next((c for c in ctx.host.variable_collections if c.name == name), None)
            if collection is None:
                collection = ctx.host.create_variable_collection(name)
            mode_id = collection.modes[0]["modeId"]
            for token in group:
                value = variable_value(token)
                if value is None:
                    continue
                var_name = ctx.names.css_var(token.name)
                resolved_type = VARIABLE_TYPES[token.type]
                variable = None
                if reuse:
                    variable = next((
                        v for v in ctx.host.variables
                        if v.name == var_name and v.collection_id == collection.id
                        and v.resolved_type == resolved_type
                    ), None)
                try:
                    if variable is None:
                        variable = ctx.host.create_variable(var_name, collection.id, resolved_type)
                    variable.set_value_for_mode(mode_id, value)
                except ValueError as e:
                    print(f"  [tokens] Skipping variable {token.name}: {e}")
                    continue
                result.by_name[token.name] = variable.id
    except CapabilityUnavailable as e:
        print(f"  [tokens] Variables unavailable, skipping: {e}")

    return result


async def create_all_styles(tokens: DesignTokens, ctx, on_progress=None, reuse: bool = False) -> StyleMap:
    """
    One token pass for a conversion. Names restart from scratch every call.
    With create_styles off only variables (when enabled) are created.
    With reuse, host styles and variables that already carry the same name
    and value are linked instead of created again (re-imports).
    """
    def progress(value, message):
        if on_progress:
            on_progress("creating-styles", value, message)

    ctx.names.reset()
    settings = ctx.settings
    style_map = StyleMap()

    if not settings.create_styles:
        if settings.create_variables:
            style_map.variables = await create_variables(tokens.variables, ctx, reuse)
        return style_map

    progress(0, f"Creating {len(tokens.colors)} color styles...")
    style_map.colors = await create_color_styles(tokens.colors, ctx, reuse)

    progress(0.25, f"Creating {len(tokens.typography)} text styles...")
    style_map.typography = await create_typography_styles(tokens.typography, ctx, reuse)

    progress(0.5, f"Creating {len(tokens.effects)} effect styles...")
    style_map.effects = await create_effect_styles(tokens.effects, ctx, reuse)

    if settings.create_variables:
        progress(0.75, f"Creating {len(tokens.variables)} variables...")
        style_map.variables = await create_variables(tokens.variables, ctx, reuse)

    progress(1, "Design tokens created")
    return style_map
