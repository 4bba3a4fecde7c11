"""
Maps a box's computed flow properties to an auto-layout descriptor.

Grid containers are approximated: a template with more than one column
track becomes a horizontal wrapping row, anything else a vertical stack.
"""

from pageforge.models import ComputedStyles, LayoutInfo, Sizing, Spacing
from pageforge.style_parsers import parse_float

HUG_VALUES = ("auto", "fit-content", "min-content", "max-content")


def analyze_layout(styles: ComputedStyles) -> LayoutInfo:
    display = styles.display or ""
    is_flex = display in ("flex", "inline-flex")
    is_grid = display in ("grid", "inline-grid")

    if not is_flex and not is_grid:
        return LayoutInfo(padding=extract_padding(styles))

    if is_flex:
        direction = map_flex_direction(styles.flex_direction or "")
        wrap = styles.flex_wrap in ("wrap", "wrap-reverse")
    else:
        columns = [
            track for track in (styles.grid_template_columns or "").split()
            if track and track != "none"
        ]
        direction = "horizontal" if len(columns) > 1 else "vertical"
        wrap = len(columns) > 1

    gap = (
        parse_float(styles.gap, 0.0)
        or parse_float(styles.row_gap, 0.0)
        or parse_float(styles.column_gap, 0.0)
        or 0.0
    )

    return LayoutInfo(
        is_auto_layout=True,
        direction=direction,
        wrap=wrap,
        gap=gap,
        padding=extract_padding(styles),
        sizing=infer_sizing(styles),
        main_axis_alignment=map_justify_content(styles.justify_content or ""),
        cross_axis_alignment=map_align_items(styles.align_items or ""),
    )


def extract_padding(styles: ComputedStyles) -> Spacing:
    return Spacing(
        top=parse_float(styles.padding_top, 0.0),
        right=parse_float(styles.padding_right, 0.0),
        bottom=parse_float(styles.padding_bottom, 0.0),
        left=parse_float(styles.padding_left, 0.0),
    )


def map_flex_direction(value: str) -> str:
    if value in ("column", "column-reverse"):
        return "vertical"
    return "horizontal"


def map_justify_content(value: str) -> str:
    if "center" in value:
        return "center"
    if "end" in value or "right" in value:
        return "end"
    if "space-between" in value:
        return "space-between"
    return "start"


def map_align_items(value: str) -> str:
    if "center" in value:
        return "center"
    if "end" in value:
        return "end"
    if "stretch" in value:
        return "stretch"
    return "start"


def infer_sizing(styles: ComputedStyles) -> Sizing:
    # flex-grow only stretches along the width axis
    return Sizing(
        width=infer_dimension(styles.width, styles.flex_grow),
        height=infer_dimension(styles.height, "0"),
    )


def infer_dimension(value, flex_grow) -> str:
    if value == "100%" or parse_float(flex_grow, 0.0) > 0:
        return "fill"
    if value in HUG_VALUES:
        return "hug"
    return "fixed"
