"""
In-memory design canvas.

Implements the host boundary the generator writes to: node creation,
shared paint/text/effect styles, an optional variables API, a font
catalog whose fonts must be loaded before text is set, an image store,
and per-node plugin data. The whole document serialises to a dict.

Missing host features raise CapabilityUnavailable so callers can degrade.
"""

import hashlib
import io
import itertools
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image, UnidentifiedImageError


class CapabilityUnavailable(RuntimeError):
    """The host does not offer this API (variables, sections)."""


class FontNotLoaded(RuntimeError):
    pass


def _font_list(family: str, styles: list[str]) -> list[dict]:
    return [{"family": family, "style": style} for style in styles]


DEFAULT_FONTS = (
    _font_list("Inter", [
        "Thin", "Extra Light", "Light", "Regular", "Medium",
        "Semi Bold", "Bold", "Extra Bold", "Black",
    ])
    + _font_list("Roboto", ["Thin", "Light", "Regular", "Medium", "Bold", "Black"])
    + _font_list("Roboto Mono", ["Regular", "Bold"])
    + _font_list("Helvetica", ["Regular", "Bold"])
    + _font_list("Arial", ["Regular", "Bold"])
    + _font_list("Times New Roman", ["Regular", "Bold"])
)

VARIABLE_TYPES = ("COLOR", "FLOAT", "STRING", "BOOLEAN")


def font_key(font_name: dict) -> tuple:
    return (font_name["family"], font_name["style"])


# ============================================================
# Styles and variables
# ============================================================

@dataclass
class PaintStyle:
    id: str
    name: str = ""
    paints: list = field(default_factory=list)


@dataclass
class TextStyle:
    id: str
    name: str = ""
    font_name: dict = field(default_factory=lambda: {"family": "Inter", "style": "Regular"})
    font_size: float = 12
    line_height: Optional[dict] = None
    letter_spacing: Optional[dict] = None


@dataclass
class EffectStyle:
    id: str
    name: str = ""
    effects: list = field(default_factory=list)


@dataclass
class VariableCollection:
    id: str
    name: str
    modes: list = field(default_factory=list)


@dataclass
class Variable:
    id: str
    name: str
    collection_id: str
    resolved_type: str
    values_by_mode: dict = field(default_factory=dict)

    def set_value_for_mode(self, mode_id: str, value):
        self.values_by_mode[mode_id] = value


@dataclass
class ImageHandle:
    hash: str
    width: int
    height: int


# ============================================================
# Nodes
# ============================================================

class SceneNode:
    type = "NODE"

    def __init__(self, document, node_id: str):
        self.document = document
        self.id = node_id
        self.name = ""
        self.x = 0.0
        self.y = 0.0
        self.width = 100.0
        self.height = 100.0
        self.rotation = 0.0
        self.opacity = 1.0
        self.visible = True
        self.parent = None
        self.removed = False
        self._plugin_data = {}

    def resize(self, width: float, height: float):
        if width < 0.01 or height < 0.01:
            raise ValueError(f"Cannot resize {self.type} to {width}x{height}")
        self.width = float(width)
        self.height = float(height)

    def set_plugin_data(self, key: str, value: str):
        if not isinstance(value, str):
            raise TypeError("Plugin data values must be strings")
        self._plugin_data[key] = value

    def get_plugin_data(self, key: str) -> str:
        return self._plugin_data.get(key, "")

    def remove(self):
        if self.parent is not None:
            self.parent._detach(self)
        self.document._unregister(self)

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }
        if self.rotation:
            out["rotation"] = self.rotation
        if self.opacity != 1:
            out["opacity"] = self.opacity
        if self._plugin_data:
            out["pluginData"] = dict(self._plugin_data)
        return out


class ShapeNode(SceneNode):
    def __init__(self, document, node_id: str):
        super().__init__(document, node_id)
        self.fills = []
        self.strokes = []
        self.stroke_weight = 0.0
        self.dash_pattern = []
        self.effects = []
        self._fill_style_id = ""
        self._effect_style_id = ""
        self.top_left_radius = 0.0
        self.top_right_radius = 0.0
        self.bottom_right_radius = 0.0
        self.bottom_left_radius = 0.0

    # Linking a shared style copies its paints/effects onto the node
    @property
    def fill_style_id(self) -> str:
        return self._fill_style_id

    @fill_style_id.setter
    def fill_style_id(self, style_id: str):
        style = self.document.get_style_by_id(style_id) if style_id else None
        if style_id and not isinstance(style, PaintStyle):
            raise ValueError(f"{style_id} is not a paint style")
        self._fill_style_id = style_id
        if style is not None:
            self.fills = [dict(paint) for paint in style.paints]

    @property
    def effect_style_id(self) -> str:
        return self._effect_style_id

    @effect_style_id.setter
    def effect_style_id(self, style_id: str):
        style = self.document.get_style_by_id(style_id) if style_id else None
        if style_id and not isinstance(style, EffectStyle):
            raise ValueError(f"{style_id} is not an effect style")
        self._effect_style_id = style_id
        if style is not None:
            self.effects = [dict(effect) for effect in style.effects]

    def to_dict(self) -> dict:
        out = super().to_dict()
        for key, value in (
            ("fills", self.fills),
            ("strokes", self.strokes),
            ("effects", self.effects),
            ("dashPattern", self.dash_pattern),
            ("fillStyleId", self.fill_style_id),
            ("effectStyleId", self.effect_style_id),
        ):
            if value:
                out[key] = value
        if self.strokes:
            out["strokeWeight"] = self.stroke_weight
        radii = [self.top_left_radius, self.top_right_radius, self.bottom_right_radius, self.bottom_left_radius]
        if any(radii):
            out["cornerRadii"] = radii
        return out


class ContainerNode(ShapeNode):
    def __init__(self, document, node_id: str):
        super().__init__(document, node_id)
        self.children = []

    def _check_child(self, child):
        ancestor = self
        while ancestor is not None:
            if ancestor is child:
                raise ValueError("A node cannot be appended inside itself")
            ancestor = ancestor.parent
        if child.removed:
            raise ValueError(f"Node {child.id} has been removed")

    def append_child(self, child):
        self._check_child(child)
        if child.parent is not None:
            child.parent._detach(child)
        child.parent = self
        self.children.append(child)

    def insert_child(self, index: int, child):
        self._check_child(child)
        if child.parent is not None:
            child.parent._detach(child)
        child.parent = self
        self.children.insert(index, child)

    def _detach(self, child):
        self.children.remove(child)
        child.parent = None

    def find_all(self, predicate=None) -> list:
        found = []
        for child in self.children:
            if predicate is None or predicate(child):
                found.append(child)
            if isinstance(child, ContainerNode):
                found.extend(child.find_all(predicate))
        return found

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["children"] = [child.to_dict() for child in self.children]
        return out


class FrameNode(ContainerNode):
    type = "FRAME"

    def __init__(self, document, node_id: str):
        super().__init__(document, node_id)
        self.fills = [{"type": "SOLID", "color": {"r": 1, "g": 1, "b": 1}, "opacity": 1}]
        self.clips_content = False
        self.layout_mode = "NONE"
        self.layout_wrap = "NO_WRAP"
        self.item_spacing = 0.0
        self.padding_top = 0.0
        self.padding_right = 0.0
        self.padding_bottom = 0.0
        self.padding_left = 0.0
        self.primary_axis_align_items = "MIN"
        self.counter_axis_align_items = "MIN"
        self.primary_axis_sizing_mode = "FIXED"
        self.counter_axis_sizing_mode = "FIXED"

    def to_dict(self) -> dict:
        out = super().to_dict()
        if self.clips_content:
            out["clipsContent"] = True
        if self.layout_mode != "NONE":
            out["autoLayout"] = {
                "layoutMode": self.layout_mode,
                "layoutWrap": self.layout_wrap,
                "itemSpacing": self.item_spacing,
                "padding": [self.padding_top, self.padding_right, self.padding_bottom, self.padding_left],
                "primaryAxisAlignItems": self.primary_axis_align_items,
                "counterAxisAlignItems": self.counter_axis_align_items,
                "primaryAxisSizingMode": self.primary_axis_sizing_mode,
                "counterAxisSizingMode": self.counter_axis_sizing_mode,
            }
        return out


class ComponentNode(FrameNode):
    type = "COMPONENT"

    def create_instance(self):
        instance = self.document._register(InstanceNode, main_component=self)
        instance.name = self.name
        instance.resize(self.width, self.height)
        return instance


class ComponentSetNode(FrameNode):
    type = "COMPONENT_SET"


class InstanceNode(ShapeNode):
    type = "INSTANCE"

    def __init__(self, document, node_id: str, main_component=None):
        super().__init__(document, node_id)
        self.main_component = main_component

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["mainComponentId"] = self.main_component.id if self.main_component else None
        return out


class SectionNode(ContainerNode):
    type = "SECTION"

    def resize_sans_constraints(self, width: float, height: float):
        self.resize(width, height)


class PageNode(ContainerNode):
    type = "PAGE"


class RectangleNode(ShapeNode):
    type = "RECTANGLE"


class VectorNode(ShapeNode):
    type = "VECTOR"

    def __init__(self, document, node_id: str, svg: str = ""):
        super().__init__(document, node_id)
        self.svg = svg


class TextNode(ShapeNode):
    type = "TEXT"

    def __init__(self, document, node_id: str):
        super().__init__(document, node_id)
        self.fills = [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 0}, "opacity": 1}]
        self._font_name = {"family": "Inter", "style": "Regular"}
        self._characters = ""
        self.font_size = 12.0
        self.letter_spacing = {"value": 0, "unit": "PIXELS"}
        self.line_height = {"unit": "AUTO"}
        self.text_align_horizontal = "LEFT"
        self.text_decoration = "NONE"
        self.text_auto_resize = "NONE"
        self.text_style_id = ""

    @property
    def font_name(self) -> dict:
        return self._font_name

    @font_name.setter
    def font_name(self, value: dict):
        if not self.document.is_font_loaded(value):
            raise FontNotLoaded(f"Font {value['family']} {value['style']} must be loaded first")
        self._font_name = dict(value)

    @property
    def characters(self) -> str:
        return self._characters

    @characters.setter
    def characters(self, value: str):
        if not self.document.is_font_loaded(self._font_name):
            raise FontNotLoaded(
                f"Font {self._font_name['family']} {self._font_name['style']} must be loaded first"
            )
        self._characters = value

    def to_dict(self) -> dict:
        out = super().to_dict()
        out.update({
            "characters": self._characters,
            "fontName": self._font_name,
            "fontSize": self.font_size,
            "textAlignHorizontal": self.text_align_horizontal,
            "textAutoResize": self.text_auto_resize,
        })
        if self.letter_spacing.get("value"):
            out["letterSpacing"] = self.letter_spacing
        if self.line_height.get("unit") != "AUTO":
            out["lineHeight"] = self.line_height
        if self.text_decoration != "NONE":
            out["textDecoration"] = self.text_decoration
        if self.text_style_id:
            out["textStyleId"] = self.text_style_id
        return out


# ============================================================
# Document
# ============================================================

class CanvasDocument:
    """
    One design file with a single current page.
    New nodes start on the current page, like they do in a real editor.
    """

    def __init__(self, fonts=None, variables_enabled: bool = True, sections_enabled: bool = True):
        self._counter = itertools.count(1)
        self._nodes = {}
        self._loaded_fonts = set()
        self.available_fonts = [dict(f) for f in (fonts if fonts is not None else DEFAULT_FONTS)]
        self.variables_enabled = variables_enabled
        self.sections_enabled = sections_enabled

        self.paint_styles = []
        self.text_styles = []
        self.effect_styles = []
        self.variable_collections = []
        self.variables = []
        self.images = {}

        self.current_page = PageNode(self, "0:1")
        self.current_page.name = "Page 1"
        self._nodes[self.current_page.id] = self.current_page

    # --- node registry ---

    def _next_id(self, prefix: str = "1") -> str:
        return f"{prefix}:{next(self._counter)}"

    def _register(self, cls, **kwargs):
        node = cls(self, self._next_id(), **kwargs)
        self._nodes[node.id] = node
        self.current_page.append_child(node)
        return node

    def _unregister(self, node):
        node.removed = True
        self._nodes.pop(node.id, None)
        for child in getattr(node, "children", []):
            self._unregister(child)

    def get_node_by_id(self, node_id: str):
        return self._nodes.get(node_id)

    # --- node creation ---

    def create_frame(self) -> FrameNode:
        return self._register(FrameNode)

    def create_component(self) -> ComponentNode:
        return self._register(ComponentNode)

    def create_rectangle(self) -> RectangleNode:
        return self._register(RectangleNode)

    def create_text(self) -> TextNode:
        return self._register(TextNode)

    def create_section(self) -> SectionNode:
        if not self.sections_enabled:
            raise CapabilityUnavailable("Sections are not supported by this host")
        section = self._register(SectionNode)
        section.fills = []
        return section

    def create_node_from_svg(self, svg: str) -> VectorNode:
        try:
            root = ET.fromstring(svg)
        except ET.ParseError as e:
            raise ValueError(f"Invalid SVG markup: {e}") from e
        if root.tag.rsplit("}", 1)[-1] != "svg":
            raise ValueError(f"Expected an <svg> root, got <{root.tag}>")

        node = self._register(VectorNode, svg=svg)
        width, height = _svg_size(root)
        node.resize(width, height)
        return node

    def combine_as_variants(self, components: list, parent=None) -> ComponentSetNode:
        if not components:
            raise ValueError("At least one component is required")
        for component in components:
            if not isinstance(component, ComponentNode):
                raise ValueError(f"{component.type} {component.id} is not a component")

        component_set = self._register(ComponentSetNode)
        component_set.fills = []
        x = 0.0
        for component in components:
            component.x = x
            component.y = 0.0
            component_set.append_child(component)
            x += component.width + 40
        component_set.resize(
            max(1.0, x - 40),
            max(1.0, max(c.height for c in components)),
        )
        (parent or self.current_page).append_child(component_set)
        return component_set

    # --- images ---

    def create_image(self, data: bytes) -> ImageHandle:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.verify()
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValueError(f"Unsupported image data: {e}") from e
        image_hash = hashlib.sha1(data).hexdigest()
        self.images[image_hash] = data
        return ImageHandle(hash=image_hash, width=width, height=height)

    # --- shared styles ---

    def create_paint_style(self) -> PaintStyle:
        style = PaintStyle(id=self._next_id("S"))
        self.paint_styles.append(style)
        return style

    def create_text_style(self) -> TextStyle:
        style = TextStyle(id=self._next_id("S"))
        self.text_styles.append(style)
        return style

    def create_effect_style(self) -> EffectStyle:
        style = EffectStyle(id=self._next_id("S"))
        self.effect_styles.append(style)
        return style

    def get_style_by_id(self, style_id: str):
        for style in self.paint_styles + self.text_styles + self.effect_styles:
            if style.id == style_id:
                return style
        return None

    # --- variables ---

    def create_variable_collection(self, name: str) -> VariableCollection:
        if not self.variables_enabled:
            raise CapabilityUnavailable("Variables API is not available")
        collection = VariableCollection(
            id=self._next_id("VariableCollectionId"),
            name=name,
            modes=[{"modeId": self._next_id("Mode"), "name": "Mode 1"}],
        )
        self.variable_collections.append(collection)
        return collection

    def create_variable(self, name: str, collection_id: str, resolved_type: str) -> Variable:
        if not self.variables_enabled:
            raise CapabilityUnavailable("Variables API is not available")
        if resolved_type not in VARIABLE_TYPES:
            raise ValueError(f"Unknown variable type {resolved_type}")
        if not any(c.id == collection_id for c in self.variable_collections):
            raise ValueError(f"Unknown variable collection {collection_id}")
        variable = Variable(
            id=self._next_id("VariableID"),
            name=name,
            collection_id=collection_id,
            resolved_type=resolved_type,
        )
        self.variables.append(variable)
        return variable

    # --- fonts ---

    async def list_available_fonts(self) -> list[dict]:
        return [dict(f) for f in self.available_fonts]

    async def load_font(self, font_name: dict):
        key = font_key(font_name)
        if not any(font_key(f) == key for f in self.available_fonts):
            raise ValueError(f"Font {key[0]} {key[1]} is not available")
        self._loaded_fonts.add(key)

    def is_font_loaded(self, font_name: dict) -> bool:
        return font_key(font_name) in self._loaded_fonts

    # --- serialisation ---

    def to_dict(self) -> dict:
        return {
            "page": self.current_page.to_dict(),
            "styles": {
                "paint": [{"id": s.id, "name": s.name, "paints": s.paints} for s in self.paint_styles],
                "text": [
                    {"id": s.id, "name": s.name, "fontName": s.font_name, "fontSize": s.font_size}
                    for s in self.text_styles
                ],
                "effect": [{"id": s.id, "name": s.name, "effects": s.effects} for s in self.effect_styles],
            },
            "variables": [
                {
                    "id": v.id,
                    "name": v.name,
                    "collection": next(
                        (c.name for c in self.variable_collections if c.id == v.collection_id), None
                    ),
                    "type": v.resolved_type,
                    "values": v.values_by_mode,
                }
                for v in self.variables
            ],
        }


def _svg_size(root) -> tuple[float, float]:
    def length(attr):
        raw = (root.get(attr) or "").strip().removesuffix("px")
        try:
            value = float(raw)
        except ValueError:
            return None
        return value if value > 0 else None

    width, height = length("width"), length("height")
    view_box = (root.get("viewBox") or "").replace(",", " ").split()
    if (width is None or height is None) and len(view_box) == 4:
        try:
            vb_w, vb_h = float(view_box[2]), float(view_box[3])
        except ValueError:
            vb_w = vb_h = 0
        if vb_w > 0 and vb_h > 0:
            width = width or vb_w
            height = height or vb_h
    return width or 100.0, height or 100.0
