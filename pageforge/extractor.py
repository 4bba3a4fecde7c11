"""
Page extraction: snapshot dict -> ExtractionResult.

Walks the body snapshot depth-first in document order. Each element gets
its computed styles, layout inference, structural hash and geometry;
single-text-child elements have their text lifted; images are collected
(small same-origin ones inlined); SVG markup is kept verbatim; visible
::before/::after content becomes extra first/last children.

Related:
- Browser walker: pageforge/dom_snapshot.py
- Layout inference: pageforge/layout_analyzer.py
- Structural hash: pageforge/component_hasher.py
- Tokens and fonts: pageforge/token_scanner.py
"""

import time
from typing import Optional

from pageforge.component_hasher import hash_component
from pageforge.config import get_settings
from pageforge.framework_detector import detect_framework
from pageforge.image_collector import FetchBytes, collect_image_data
from pageforge.layout_analyzer import analyze_layout
from pageforge.models import (
    BoundingBox,
    BridgeNode,
    ComputedStyles,
    ExtractionResult,
    SiteMetadata,
    Viewport,
)
from pageforge.style_parsers import is_transparent, parse_float
from pageforge.token_scanner import TEXT_TAGS, scan_fonts, scan_tokens

TEXT_INPUT_TYPES = ("text", "email", "password", "search", "url", "tel", "number")


def build_styles(raw_styles: Optional[dict]) -> ComputedStyles:
    cleaned = {
        key: value for key, value in (raw_styles or {}).items()
        if isinstance(value, str) and value != ""
    }
    return ComputedStyles.model_validate(cleaned)


def is_visible(styles: ComputedStyles) -> bool:
    return (
        styles.display != "none"
        and styles.visibility != "hidden"
        and styles.opacity != "0"
    )


def infer_node_type(element: dict) -> str:
    tag = element["tag"]
    if tag in ("img", "picture"):
        return "image"
    if tag == "svg":
        return "svg"
    if tag in ("input", "textarea", "select"):
        return "input"
    if tag == "video":
        return "video"
    if tag in TEXT_TAGS:
        if element.get("childCount", 0) == 0 or element.get("ownText") is not None:
            return "text"
    return "frame"


def input_text(element: dict) -> Optional[str]:
    """Label shown inside a form control: current value, else placeholder."""
    tag = element["tag"]
    attrs = element.get("attributes") or {}
    if tag == "input" and attrs.get("type", "text").lower() not in TEXT_INPUT_TYPES:
        return None
    text = (element.get("value") or attrs.get("placeholder") or "").strip()
    return text or None


def pseudo_content_text(content: str) -> str:
    content = (content or "").strip()
    if len(content) >= 2 and content[0] == content[-1] and content[0] in ("'", '"'):
        return content[1:-1].replace('\\"', '"').replace("\\'", "'").strip()
    return ""


def build_pseudo_node(which: str, pseudo: dict, parent_bounds: BoundingBox) -> Optional[BridgeNode]:
    """A decorative ::before/::after child, or None when nothing would be visible."""
    content = pseudo.get("content") or ""
    if content in ("", "none", "normal"):
        return None

    styles = build_styles(pseudo.get("styles"))
    text = pseudo_content_text(content)
    has_background = not is_transparent(styles.background_color)
    has_image = bool(styles.background_image) and styles.background_image != "none"
    if not text and not has_background and not has_image:
        return None

    return BridgeNode(
        tag=f"::{which}",
        type="text" if text else "frame",
        text=text or None,
        styles=styles,
        layout=analyze_layout(styles),
        bounds=BoundingBox(
            x=parent_bounds.x,
            y=parent_bounds.y,
            width=parse_float(pseudo.get("width"), 0.0),
            height=parse_float(pseudo.get("height"), 0.0),
        ),
        visible=is_visible(styles),
    )


async def build_node(
    element: dict,
    depth: int,
    page_url: str,
    fetch_bytes: Optional[FetchBytes],
    settings,
) -> BridgeNode:
    styles = build_styles(element.get("styles"))
    rect = element.get("rect") or {}
    attrs = element.get("attributes") or {}
    node_type = infer_node_type(element)

    data_attributes = {name: value for name, value in attrs.items() if name.startswith("data-")}

    node = BridgeNode(
        tag=element["tag"],
        type=node_type,
        styles=styles,
        layout=analyze_layout(styles),
        bounds=BoundingBox(
            x=rect.get("x", 0),
            y=rect.get("y", 0),
            width=rect.get("width", 0),
            height=rect.get("height", 0),
        ),
        visible=is_visible(styles),
        component_hash=hash_component(element, settings.hash_depth),
        class_names=list(element.get("classList") or []) or None,
        aria_role=attrs.get("role") or None,
        data_attributes=data_attributes or None,
    )

    own_text = element.get("ownText")
    if own_text is not None:
        node.text = own_text.strip() or None
    if node_type == "input":
        node.text = input_text(element)

    image = await collect_image_data(element, page_url, fetch_bytes, settings.max_inline_image_size)
    if image:
        node.image_url = image["url"]
        node.image_data_uri = image.get("dataUri")

    if element.get("svg"):
        node.svg_data = element["svg"]

    # Beyond the depth limit the node stays but its children are not visited
    if depth < settings.max_node_depth:
        for child in element.get("children") or []:
            node.children.append(await build_node(child, depth + 1, page_url, fetch_bytes, settings))

    before = element.get("before")
    if before:
        pseudo = build_pseudo_node("before", before, node.bounds)
        if pseudo:
            node.children.insert(0, pseudo)
    after = element.get("after")
    if after:
        pseudo = build_pseudo_node("after", after, node.bounds)
        if pseudo:
            node.children.append(pseudo)

    return node


def extract_metadata(snapshot: dict, framework_info) -> SiteMetadata:
    return SiteMetadata(
        title=snapshot.get("title") or "",
        description=snapshot.get("description") or None,
        favicon=snapshot.get("favicon") or None,
        og_image=snapshot.get("ogImage") or None,
        is_framer_site=framework_info.is_framer_site,
        framer_project_id=framework_info.framer_project_id,
    )


async def extract_page(
    snapshot: dict,
    fetch_bytes: Optional[FetchBytes] = None,
    settings=None,
) -> ExtractionResult:
    """
    Build the full ExtractionResult for one captured snapshot.
    Components are left empty here; generation detects them from the hashes.
    """
    settings = settings or get_settings()
    page_url = snapshot.get("url") or ""

    framework_info = detect_framework(snapshot)
    body = snapshot.get("body") or {"tag": "body", "children": []}
    root_node = await build_node(body, 0, page_url, fetch_bytes, settings)

    viewport = snapshot.get("viewport") or {}
    return ExtractionResult(
        url=page_url,
        viewport=Viewport(
            width=int(viewport.get("width") or settings.viewport_width),
            height=int(viewport.get("height") or settings.viewport_height),
        ),
        timestamp=int(snapshot.get("timestamp") or time.time() * 1000),
        framework=framework_info.framework,
        root_node=root_node,
        tokens=scan_tokens(snapshot),
        components=[],
        fonts=scan_fonts(snapshot),
        metadata=extract_metadata(snapshot, framework_info),
    )


async def extract_at_viewport(
    snapshot: dict,
    width: int,
    height: int,
    fetch_bytes: Optional[FetchBytes] = None,
    settings=None,
) -> ExtractionResult:
    """Same as extract_page, reporting the emulated viewport instead of the window size."""
    result = await extract_page(snapshot, fetch_bytes, settings)
    result.viewport = Viewport(width=width, height=height)
    return result
