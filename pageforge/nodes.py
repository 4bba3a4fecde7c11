"""
BridgeNode -> canvas node creators, one per node type.

Frames carry background, border, radii, shadow, rotation and auto layout.
Text resolves and loads its font before any content is set. Images try
the inlined bytes first, then the fetch capability, and fall back to a
dashed placeholder. Inputs are frames with a synthesized placeholder label.

Related:
- Value parsers: pageforge/style_parsers.py
- Style links: pageforge/tokens.py (StyleMap)
- Dispatch: pageforge/converter.py
"""

import asyncio

from pageforge.fonts import DEFAULT_FONT
from pageforge.image_utils import decode_data_uri, optimize_image
from pageforge.style_parsers import (
    gradient_paint,
    is_transparent,
    js_round,
    normalize_color,
    parse_box_shadow,
    parse_corner_radii,
    parse_float,
    parse_int,
    parse_rotation,
    primary_font_family,
    solid_paint,
)
from pageforge.tokens import styles_typography_key

TEXT_ALIGN = {
    "center": "CENTER",
    "right": "RIGHT",
    "justify": "JUSTIFIED",
}

PRIMARY_ALIGN = {
    "center": "CENTER",
    "end": "MAX",
    "space-between": "SPACE_BETWEEN",
}

COUNTER_ALIGN = {
    "center": "CENTER",
    "end": "MAX",
}


def _gray(level: float, opacity: float = 1) -> dict:
    return {"type": "SOLID", "color": {"r": level, "g": level, "b": level}, "opacity": opacity}


def node_size(node) -> tuple[int, int]:
    return (
        max(1, js_round(node.bounds.width)),
        max(1, js_round(node.bounds.height)),
    )


def position_node(target, node, parent_node=None):
    """Place a canvas node relative to its source parent's page bounds."""
    origin_x = parent_node.bounds.x if parent_node is not None else 0
    origin_y = parent_node.bounds.y if parent_node is not None else 0
    target.x = node.bounds.x - origin_x
    target.y = node.bounds.y - origin_y


# ============================================================
# Shared paint helpers
# ============================================================

def apply_background(target, styles, style_map):
    bg_image = styles.background_image or ""
    if "gradient(" in bg_image:
        paint = gradient_paint(bg_image)
        target.fills = [paint] if paint else []
        return

    bg_color = styles.background_color
    if bg_color and not is_transparent(bg_color):
        style_id = style_map.colors.by_value.get(normalize_color(bg_color))
        if style_id:
            target.fill_style_id = style_id
            return
        paint = solid_paint(bg_color)
        if paint:
            target.fills = [paint]
            return

    target.fills = []


def apply_border(target, styles):
    width = parse_float(styles.border_width, 0.0)
    if width <= 0 or is_transparent(styles.border_color):
        return
    paint = solid_paint(styles.border_color)
    if paint:
        target.strokes = [paint]
        target.stroke_weight = width


def apply_shadow(target, styles, style_map):
    shadow = styles.box_shadow
    if not shadow or shadow == "none":
        return
    style_id = style_map.effects.by_value.get(shadow.strip())
    if style_id:
        target.effect_style_id = style_id
        return
    effect = parse_box_shadow(shadow)
    if effect:
        target.effects = [effect]


def apply_text_color(target, color, style_map):
    if not color:
        return
    style_id = style_map.colors.by_value.get(normalize_color(color))
    if style_id:
        target.fill_style_id = style_id
        return
    paint = solid_paint(color)
    if paint:
        target.fills = [paint]


# ============================================================
# Frames
# ============================================================

def apply_auto_layout(frame, layout):
    frame.layout_mode = "VERTICAL" if layout.direction == "vertical" else "HORIZONTAL"
    frame.item_spacing = layout.gap

    frame.padding_top = layout.padding.top
    frame.padding_right = layout.padding.right
    frame.padding_bottom = layout.padding.bottom
    frame.padding_left = layout.padding.left

    frame.primary_axis_align_items = PRIMARY_ALIGN.get(layout.main_axis_alignment, "MIN")
    frame.counter_axis_align_items = COUNTER_ALIGN.get(layout.cross_axis_alignment, "MIN")

    # Primary axis follows the layout direction
    width_mode = "AUTO" if layout.sizing.width == "hug" else "FIXED"
    height_mode = "AUTO" if layout.sizing.height == "hug" else "FIXED"
    if frame.layout_mode == "HORIZONTAL":
        frame.primary_axis_sizing_mode = width_mode
        frame.counter_axis_sizing_mode = height_mode
    else:
        frame.primary_axis_sizing_mode = height_mode
        frame.counter_axis_sizing_mode = width_mode

    if layout.wrap:
        frame.layout_wrap = "WRAP"


def create_frame_node(node, ctx, framer_name=None):
    styles = node.styles
    frame = ctx.host.create_frame()
    frame.name = framer_name or node.tag
    frame.resize(*node_size(node))

    apply_background(frame, styles, ctx.style_map)

    opacity = parse_float(styles.opacity)
    if opacity is not None and opacity < 1:
        frame.opacity = opacity

    apply_border(frame, styles)

    radii = parse_corner_radii(styles)
    if radii:
        (frame.top_left_radius, frame.top_right_radius,
         frame.bottom_right_radius, frame.bottom_left_radius) = radii

    apply_shadow(frame, styles, ctx.style_map)

    rotation = parse_rotation(styles.transform)
    if rotation is not None:
        frame.rotation = rotation

    frame.clips_content = styles.overflow == "hidden"

    if node.layout.is_auto_layout:
        apply_auto_layout(frame, node.layout)

    return frame


# ============================================================
# Text
# ============================================================

async def create_text_node(node, ctx, framer_name=None):
    styles = node.styles
    text_node = ctx.host.create_text()

    # Font first: the host refuses content on an unloaded font
    font = await ctx.fonts.load(
        primary_font_family(styles.font_family, "Inter"),
        parse_int(styles.font_weight) or 400,
    )
    text_node.font_name = font
    text_node.characters = node.text or ""

    text = node.text or ""
    text_node.name = framer_name or text[:40] or node.tag

    font_size = parse_float(styles.font_size, 0.0)
    if font_size > 0:
        text_node.font_size = font_size

    letter_spacing = parse_float(styles.letter_spacing)
    if letter_spacing:
        text_node.letter_spacing = {"value": letter_spacing, "unit": "PIXELS"}

    if styles.line_height and styles.line_height != "normal":
        line_height = parse_float(styles.line_height, 0.0)
        if line_height > 0:
            text_node.line_height = {"value": line_height, "unit": "PIXELS"}

    text_node.text_align_horizontal = TEXT_ALIGN.get(styles.text_align, "LEFT")

    apply_text_color(text_node, styles.color, ctx.style_map)

    decoration = styles.text_decoration or ""
    if "underline" in decoration:
        text_node.text_decoration = "UNDERLINE"
    elif "line-through" in decoration:
        text_node.text_decoration = "STRIKETHROUGH"

    text_node.text_auto_resize = "WIDTH_AND_HEIGHT"

    style_id = ctx.style_map.typography.by_key.get(styles_typography_key(styles))
    if style_id:
        text_node.text_style_id = style_id

    return text_node


# ============================================================
# Inputs
# ============================================================

async def add_placeholder_text(frame, node, ctx):
    label = ctx.host.create_text()
    label.name = "placeholder"

    await ctx.host.load_font(DEFAULT_FONT)
    label.font_name = DEFAULT_FONT
    label.characters = node.text

    font_size = parse_float(node.styles.font_size, 14.0)
    if font_size > 0:
        label.font_size = font_size

    paint = solid_paint(node.styles.color)
    label.fills = [paint] if paint else [_gray(0.6)]
    label.text_auto_resize = "WIDTH_AND_HEIGHT"
    label.x = node.layout.padding.left
    label.y = node.layout.padding.top

    frame.append_child(label)


async def create_input_node(node, ctx, framer_name=None):
    frame = create_frame_node(node, ctx, framer_name)

    if not frame.strokes:
        border_color = node.styles.border_color
        if border_color:
            paint = solid_paint(border_color)
            if paint:
                frame.strokes = [paint]
                frame.stroke_weight = parse_float(node.styles.border_width, 0.0) or 1
        else:
            frame.strokes = [_gray(0.8)]
            frame.stroke_weight = 1

    if node.text:
        await add_placeholder_text(frame, node, ctx)

    return frame


# ============================================================
# Images
# ============================================================

def apply_image_placeholder(rect):
    rect.fills = [_gray(0.9)]
    rect.strokes = [_gray(0.7)]
    rect.stroke_weight = 1
    rect.dash_pattern = [4, 4]


async def load_image_bytes(node, ctx):
    """Inlined bytes first, then the fetch capability (time-bounded). None on any failure."""
    if node.image_data_uri:
        data = decode_data_uri(node.image_data_uri)
        if data:
            return data

    url = node.image_url
    if not url or url.startswith("data:"):
        return None

    try:
        return await asyncio.wait_for(ctx.fetch_bytes(url), ctx.config.image_fetch_timeout)
    except asyncio.TimeoutError:
        print(f"  [images] Timed out fetching {url[:80]}")
    except Exception as e:
        print(f"  [images] Fetch failed for {url[:80]}: {e}")
    return None


async def create_image_node(node, ctx, framer_name=None):
    rect = ctx.host.create_rectangle()
    if framer_name:
        rect.name = framer_name
    elif node.tag == "img":
        rect.name = node.text or "Image"
    else:
        rect.name = node.tag
    rect.resize(*node_size(node))

    data = await load_image_bytes(node, ctx)
    if data:
        try:
            image = ctx.host.create_image(optimize_image(data, ctx.settings.image_quality))
            rect.fills = [{"type": "IMAGE", "imageHash": image.hash, "scaleMode": "FILL"}]
            return rect
        except Exception as e:
            print(f"  [images] Could not create image for {node.image_url or node.tag}: {e}")

    apply_image_placeholder(rect)
    return rect


# ============================================================
# Vectors
# ============================================================

def create_svg_placeholder(node, ctx, framer_name=None):
    rect = ctx.host.create_rectangle()
    rect.name = framer_name or "SVG (placeholder)"
    rect.resize(
        max(1, js_round(node.bounds.width or 24)),
        max(1, js_round(node.bounds.height or 24)),
    )
    rect.fills = [{"type": "SOLID", "color": {"r": 0.85, "g": 0.85, "b": 0.95}, "opacity": 1}]
    rect.strokes = [{"type": "SOLID", "color": {"r": 0.6, "g": 0.6, "b": 0.8}, "opacity": 1}]
    rect.stroke_weight = 1
    rect.dash_pattern = [3, 3]
    return rect


def create_vector_node(node, ctx, framer_name=None):
    if node.svg_data:
        try:
            vector = ctx.host.create_node_from_svg(node.svg_data)
            vector.name = framer_name or ("SVG" if node.tag == "svg" else node.tag)
            if node.bounds.width > 0 and node.bounds.height > 0:
                vector.resize(*node_size(node))
            return vector
        except Exception as e:
            print(f"  [images] SVG import failed for <{node.tag}>: {e}")
    return create_svg_placeholder(node, ctx, framer_name)


async def create_leaf_node(node, ctx, framer_name=None):
    """Canvas node for a non-container type, or None for frame-like nodes."""
    if node.type == "text":
        return await create_text_node(node, ctx, framer_name)
    if node.type == "image":
        return await create_image_node(node, ctx, framer_name)
    if node.type == "svg":
        return create_vector_node(node, ctx, framer_name)
    if node.type == "input":
        return await create_input_node(node, ctx, framer_name)
    return None
