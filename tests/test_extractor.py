import asyncio

from helpers import make_snapshot, raw_element

from pageforge.config import Settings
from pageforge.extractor import (
    build_pseudo_node,
    extract_at_viewport,
    extract_page,
    infer_node_type,
    input_text,
    pseudo_content_text,
)
from pageforge.models import BoundingBox


def extract(body, **snapshot_fields):
    return asyncio.run(extract_page(make_snapshot(body, **snapshot_fields)))


def test_heading_and_paragraph():
    body = raw_element("body", {"display": "block"}, [
        raw_element("h1", {"fontSize": "32px"}, ownText="Hello", rect={"x": 0, "y": 0, "width": 400, "height": 40}),
        raw_element("p", ownText="  World  ", rect={"x": 0, "y": 40, "width": 400, "height": 20}),
    ])
    result = extract(body)

    root = result.root_node
    assert root.tag == "body"
    assert root.type == "frame"
    assert [child.type for child in root.children] == ["text", "text"]
    assert root.children[0].text == "Hello"
    assert root.children[1].text == "World"
    assert root.children[1].bounds.y == 40
    assert result.components == []
    assert result.metadata.title == "Example"
    assert result.viewport.width == 1440


def test_node_types():
    assert infer_node_type(raw_element("img")) == "image"
    assert infer_node_type(raw_element("svg")) == "svg"
    assert infer_node_type(raw_element("textarea")) == "input"
    assert infer_node_type(raw_element("video")) == "video"
    assert infer_node_type(raw_element("span")) == "text"
    assert infer_node_type(raw_element("a", children=[raw_element("span")])) == "frame"
    assert infer_node_type(raw_element("div")) == "frame"


def test_hidden_elements_are_kept_but_flagged():
    body = raw_element("body", children=[
        raw_element("div", {"display": "none"}),
        raw_element("div", {"visibility": "hidden"}),
        raw_element("div", {"opacity": "0"}),
        raw_element("div", {"display": "block"}),
    ])
    assert [child.visible for child in extract(body).root_node.children] == [False, False, False, True]


def test_input_text():
    assert input_text(raw_element("input", attributes={"placeholder": "Email"})) == "Email"
    assert input_text(raw_element("input", value="typed", attributes={"placeholder": "Email"})) == "typed"
    assert input_text(raw_element("input", attributes={"type": "checkbox", "placeholder": "x"})) is None
    assert input_text(raw_element("select", value="Option A")) == "Option A"


def test_svg_markup_and_attributes():
    svg = '<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24"></svg>'
    body = raw_element("body", children=[
        raw_element("svg", svg=svg),
        raw_element(
            "nav",
            classList=["site-nav", "flex"],
            attributes={"role": "navigation", "data-framer-name": "Top Nav", "id": "n"},
        ),
    ])
    svg_node, nav = extract(body).root_node.children
    assert svg_node.type == "svg"
    assert svg_node.svg_data == svg
    assert nav.class_names == ["site-nav", "flex"]
    assert nav.aria_role == "navigation"
    assert nav.data_attributes == {"data-framer-name": "Top Nav"}


def test_repeated_structures_share_a_hash():
    def item():
        return raw_element("li", {"display": "flex"}, [raw_element("a", ownText="link")])

    body = raw_element("body", children=[raw_element("ul", children=[item(), item(), item()])])
    items = extract(body).root_node.children[0].children
    assert len({node.component_hash for node in items}) == 1
    assert items[0].component_hash


def test_depth_limit_keeps_node_but_drops_children():
    body = raw_element("body", children=[
        raw_element("div", children=[raw_element("div", children=[raw_element("span")])]),
    ])
    result = asyncio.run(extract_page(make_snapshot(body), settings=Settings(max_node_depth=1)))
    level_one = result.root_node.children[0]
    assert level_one.tag == "div"
    assert level_one.children == []


# ============================================================
# Pseudo-elements
# ============================================================

def test_pseudo_content_text():
    assert pseudo_content_text('"→"') == "→"
    assert pseudo_content_text("''") == ""
    assert pseudo_content_text("counter(x)") == ""


def test_pseudo_nodes_become_first_and_last_children():
    element = raw_element(
        "a",
        children=[raw_element("span", ownText="Read more")],
        before={"content": '"★"', "styles": {}, "width": "10px", "height": "10px"},
        after={"content": '""', "styles": {"backgroundColor": "rgb(255, 0, 0)"}, "width": "20px", "height": "2px"},
    )
    children = extract(raw_element("body", children=[element])).root_node.children[0].children
    assert [child.tag for child in children] == ["::before", "span", "::after"]
    assert children[0].type == "text"
    assert children[0].text == "★"
    assert children[2].type == "frame"
    assert children[2].bounds.width == 20


def test_invisible_pseudo_is_dropped():
    bounds = BoundingBox()
    assert build_pseudo_node("after", {"content": '""', "styles": {}}, bounds) is None
    assert build_pseudo_node("after", {"content": "none", "styles": {}}, bounds) is None


# ============================================================
# Metadata and viewport
# ============================================================

def test_framer_metadata():
    result = extract(
        raw_element("body"),
        framerGlobal=True,
        framerProjectId="p1",
        description="About us",
        ogImage="https://example.com/og.png",
    )
    assert result.framework == "framer"
    assert result.metadata.is_framer_site
    assert result.metadata.framer_project_id == "p1"
    assert result.metadata.description == "About us"
    assert result.metadata.og_image == "https://example.com/og.png"


def test_extract_at_viewport_reports_emulated_size():
    result = asyncio.run(extract_at_viewport(make_snapshot(raw_element("body")), 375, 812))
    assert (result.viewport.width, result.viewport.height) == (375, 812)


def test_result_serialises_to_camel_case():
    wire = extract(raw_element("body", children=[raw_element("p", ownText="x")])).to_wire()
    assert "rootNode" in wire
    assert "componentHash" in wire["rootNode"]["children"][0]
    assert wire["metadata"]["isFramerSite"] is False
