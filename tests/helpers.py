"""Factories shared by the test modules."""

import io

from PIL import Image

from pageforge.canvas import CanvasDocument
from pageforge.context import ConversionContext
from pageforge.models import (
    BoundingBox,
    BridgeNode,
    ComputedStyles,
    DesignTokens,
    ExtractionResult,
    ImportSettings,
    LayoutInfo,
    SiteMetadata,
    Viewport,
)


def make_node(tag="div", type="frame", children=None, text=None, styles=None,
              bounds=(0, 0, 100, 50), layout=None, **extra) -> BridgeNode:
    x, y, width, height = bounds
    return BridgeNode(
        tag=tag,
        type=type,
        children=children or [],
        text=text,
        styles=ComputedStyles(**(styles or {})),
        layout=layout or LayoutInfo(),
        bounds=BoundingBox(x=x, y=y, width=width, height=height),
        **extra,
    )


def make_result(root, url="https://example.com/", title="Example", tokens=None,
                framer=False, width=1440, height=900, timestamp=1700000000000) -> ExtractionResult:
    return ExtractionResult(
        url=url,
        viewport=Viewport(width=width, height=height),
        timestamp=timestamp,
        framework="framer" if framer else "unknown",
        root_node=root,
        tokens=tokens or DesignTokens(),
        metadata=SiteMetadata(title=title, is_framer_site=framer),
    )


def raw_element(tag="div", styles=None, children=None, rect=None, **extra) -> dict:
    """One element the way the browser walker reports it."""
    children = children or []
    element = {
        "tag": tag,
        "styles": styles or {},
        "rect": rect or {"x": 0, "y": 0, "width": 100, "height": 20},
        "attributes": {},
        "classList": [],
        "childCount": len(children),
        "children": children,
    }
    element.update(extra)
    return element


def make_snapshot(body, **extra) -> dict:
    snapshot = {
        "url": "https://example.com/",
        "viewport": {"width": 1440, "height": 900},
        "timestamp": 1700000000000,
        "title": "Example",
        "scripts": [],
        "links": [],
        "stylesheets": [],
        "body": body,
    }
    snapshot.update(extra)
    return snapshot


def png_bytes(width=4, height=4, color=(255, 0, 0)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


async def no_fetch(url):
    return None


def make_ctx(host=None, fetch_bytes=no_fetch, **settings) -> ConversionContext:
    return ConversionContext(
        host=host or CanvasDocument(),
        settings=ImportSettings(**settings),
        fetch_bytes=fetch_bytes,
    )


def text_node(text, tag="p", bounds=(0, 0, 200, 20), **styles) -> BridgeNode:
    defaults = {"font_family": "Inter", "font_size": "16px", "font_weight": "400", "color": "rgb(0, 0, 0)"}
    defaults.update(styles)
    return make_node(tag=tag, type="text", text=text, styles=defaults, bounds=bounds)


def card(x=0, y=0, component_hash="card1"):
    """A small frame with a heading and a paragraph, hashed alike across calls."""
    return make_node(
        tag="div",
        component_hash=component_hash,
        class_names=["card"],
        bounds=(x, y, 300, 200),
        children=[
            text_node("Title", tag="h3", bounds=(x + 10, y + 10, 280, 24)),
            text_node("Body copy", bounds=(x + 10, y + 40, 280, 20)),
        ],
    )
