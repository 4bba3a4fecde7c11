"""
Bridge format: the JSON contract between page capture and canvas generation.

The capture side produces ExtractionResult / MultiViewportResult payloads,
the generation side consumes them. Field names on the wire are camelCase,
Python attributes are snake_case.
"""

import json
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel


NodeType = Literal["frame", "text", "image", "svg", "input", "video", "unknown"]
Framework = Literal["framer", "generic", "webflow", "wordpress", "unknown"]


class PayloadError(ValueError):
    """Raised once per conversion attempt when the bridge payload is unusable."""


class BridgeModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ============================================================
# Tree nodes
# ============================================================

class ComputedStyles(BridgeModel):
    color: Optional[str] = None
    background_color: Optional[str] = None
    border_color: Optional[str] = None
    font_family: Optional[str] = None
    font_size: Optional[str] = None
    font_weight: Optional[str] = None
    font_style: Optional[str] = None
    line_height: Optional[str] = None
    letter_spacing: Optional[str] = None
    text_align: Optional[str] = None
    text_decoration: Optional[str] = None
    text_transform: Optional[str] = None
    display: Optional[str] = None
    position: Optional[str] = None
    visibility: Optional[str] = None
    flex_direction: Optional[str] = None
    flex_wrap: Optional[str] = None
    flex_grow: Optional[str] = None
    justify_content: Optional[str] = None
    align_items: Optional[str] = None
    align_self: Optional[str] = None
    gap: Optional[str] = None
    row_gap: Optional[str] = None
    column_gap: Optional[str] = None
    grid_template_columns: Optional[str] = None
    padding_top: Optional[str] = None
    padding_right: Optional[str] = None
    padding_bottom: Optional[str] = None
    padding_left: Optional[str] = None
    width: Optional[str] = None
    height: Optional[str] = None
    min_width: Optional[str] = None
    max_width: Optional[str] = None
    border_radius: Optional[str] = None
    border_top_left_radius: Optional[str] = None
    border_top_right_radius: Optional[str] = None
    border_bottom_right_radius: Optional[str] = None
    border_bottom_left_radius: Optional[str] = None
    border_width: Optional[str] = None
    border_style: Optional[str] = None
    box_shadow: Optional[str] = None
    opacity: Optional[str] = None
    overflow: Optional[str] = None
    background_image: Optional[str] = None
    transform: Optional[str] = None
    css_variables: Optional[dict[str, str]] = None


class Spacing(BridgeModel):
    top: float = 0
    right: float = 0
    bottom: float = 0
    left: float = 0


class Sizing(BridgeModel):
    width: Literal["fixed", "hug", "fill"] = "fixed"
    height: Literal["fixed", "hug", "fill"] = "fixed"


class LayoutInfo(BridgeModel):
    is_auto_layout: bool = False
    direction: Literal["horizontal", "vertical", "none"] = "none"
    wrap: bool = False
    gap: float = 0
    padding: Spacing = Field(default_factory=Spacing)
    sizing: Sizing = Field(default_factory=Sizing)
    main_axis_alignment: Literal["start", "center", "end", "space-between"] = "start"
    cross_axis_alignment: Literal["start", "center", "end", "stretch"] = "start"


class BoundingBox(BridgeModel):
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0


class BridgeNode(BridgeModel):
    tag: str
    type: NodeType = "frame"
    children: list["BridgeNode"] = Field(default_factory=list)
    text: Optional[str] = None
    styles: ComputedStyles = Field(default_factory=ComputedStyles)
    layout: LayoutInfo = Field(default_factory=LayoutInfo)
    bounds: BoundingBox = Field(default_factory=BoundingBox)
    visible: bool = True
    image_url: Optional[str] = None
    image_data_uri: Optional[str] = None
    svg_data: Optional[str] = None
    component_hash: Optional[str] = None
    class_names: Optional[list[str]] = None
    aria_role: Optional[str] = None
    data_attributes: Optional[dict[str, str]] = None


# ============================================================
# Design tokens
# ============================================================

class ColorToken(BridgeModel):
    name: str
    value: str
    usage_count: int = 0
    css_variable: Optional[str] = None


class TypographyToken(BridgeModel):
    name: str
    font_family: str
    font_size: float = 16
    font_weight: int = 400
    line_height: float = 0
    letter_spacing: float = 0
    usage_count: int = 0


class EffectToken(BridgeModel):
    name: str
    type: Literal["drop-shadow", "inner-shadow", "blur"] = "drop-shadow"
    value: str
    usage_count: int = 0


class VariableToken(BridgeModel):
    name: str
    css_property: str
    resolved_value: str
    type: Literal["color", "number", "string"] = "string"


class DesignTokens(BridgeModel):
    colors: list[ColorToken] = Field(default_factory=list)
    typography: list[TypographyToken] = Field(default_factory=list)
    effects: list[EffectToken] = Field(default_factory=list)
    variables: list[VariableToken] = Field(default_factory=list)


# ============================================================
# Components, fonts, metadata
# ============================================================

class DetectedComponent(BridgeModel):
    hash: str
    name: str
    instances: list[BridgeNode] = Field(default_factory=list)
    representative_node: BridgeNode


class DetectedFont(BridgeModel):
    family: str
    weights: list[int] = Field(default_factory=list)
    is_google_font: bool = False
    canvas_equivalent: Optional[str] = None


class SiteMetadata(BridgeModel):
    title: str = ""
    description: Optional[str] = None
    favicon: Optional[str] = None
    og_image: Optional[str] = None
    is_framer_site: bool = False
    framer_project_id: Optional[str] = None


class Viewport(BridgeModel):
    width: int
    height: int


# ============================================================
# Extraction payloads
# ============================================================

class ExtractionResult(BridgeModel):
    url: str
    viewport: Viewport
    timestamp: int
    framework: Framework = "unknown"
    root_node: BridgeNode
    tokens: DesignTokens = Field(default_factory=DesignTokens)
    components: list[DetectedComponent] = Field(default_factory=list)
    fonts: list[DetectedFont] = Field(default_factory=list)
    metadata: SiteMetadata = Field(default_factory=SiteMetadata)


class ViewportExtraction(BridgeModel):
    viewport_key: str
    label: str
    width: int
    height: int
    result: ExtractionResult


class MultiViewportResult(BridgeModel):
    type: Literal["multi-viewport"] = "multi-viewport"
    url: str
    timestamp: int
    extractions: list[ViewportExtraction] = Field(default_factory=list)


# ============================================================
# Import settings and diff output
# ============================================================

class ImportSettings(BridgeModel):
    create_styles: bool = True
    create_components: bool = True
    create_variables: bool = True
    framer_aware_mode: bool = True
    include_hidden_elements: bool = False
    max_depth: int = Field(default=50, ge=0)
    image_quality: Literal["low", "medium", "high"] = "high"


class DiffChange(BridgeModel):
    id: str
    type: Literal["modified", "added", "removed"]
    path: str
    node_type: str
    description: str
    selected: bool = True


class DiffSummary(BridgeModel):
    total_nodes: int = 0
    modified_count: int = 0
    added_count: int = 0
    removed_count: int = 0
    unchanged_count: int = 0


Payload = Union[ExtractionResult, MultiViewportResult]


def is_multi_viewport(data) -> bool:
    if isinstance(data, MultiViewportResult):
        return True
    return isinstance(data, dict) and data.get("type") == "multi-viewport"


def parse_payload(payload) -> Payload:
    """
    Parse bridge JSON (text, bytes or an already-decoded dict).
    Any problem surfaces as a single PayloadError.
    """
    if isinstance(payload, (str, bytes, bytearray)):
        try:
            data = json.loads(payload)
        except ValueError as e:
            raise PayloadError(f"Invalid JSON: {e}") from e
    else:
        data = payload

    if not isinstance(data, dict):
        raise PayloadError("Bridge payload must be a JSON object")

    try:
        if is_multi_viewport(data):
            return MultiViewportResult.model_validate(data)
        return ExtractionResult.model_validate(data)
    except ValidationError as e:
        raise PayloadError(
            f"Payload does not match the bridge schema ({e.error_count()} errors): {e.errors()[0]['msg']}"
        ) from e
