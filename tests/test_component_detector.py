import asyncio
import json

import pageforge.component_detector as component_detector
from helpers import card, make_ctx, make_node, text_node

from pageforge.component_detector import (
    ComponentMap,
    clean_name,
    create_components,
    create_instance_node,
    detect_components,
    generate_component_name,
    is_utility_class,
    record_bridge_data,
)
from pageforge.diffing import compute_fingerprint


def page_with_cards(count):
    return make_node(tag="body", bounds=(0, 0, 1440, 900), children=[
        card(x=i * 320, y=100) for i in range(count)
    ])


# ============================================================
# Detection and naming
# ============================================================

def test_three_identical_siblings_make_one_component():
    components = detect_components(page_with_cards(3), threshold=3)
    assert len(components) == 1
    component = components[0]
    assert component.hash == "card1"
    assert component.name == "Card"
    assert len(component.instances) == 3
    assert component.representative_node is component.instances[0]


def test_below_threshold_is_not_a_component():
    assert detect_components(page_with_cards(2), threshold=3) == []


def test_only_frames_with_children_are_grouped():
    root = make_node(children=[
        make_node(component_hash="leaf"),
        make_node(component_hash="leaf"),
        make_node(component_hash="leaf"),
        text_node("a"), text_node("b"), text_node("c"),
    ])
    assert detect_components(root, threshold=2) == []


def test_most_instances_first():
    root = make_node(children=[card(component_hash="a") for _ in range(3)] + [card(component_hash="b") for _ in range(4)])
    assert [c.hash for c in detect_components(root, threshold=3)] == ["b", "a"]


def test_utility_classes():
    assert is_utility_class("css-1abc2")
    assert is_utility_class("p-4")
    assert is_utility_class("xs")
    assert not is_utility_class("product-card")


def test_clean_name():
    assert clean_name("styles-heroBanner") == "Hero Banner"
    assert clean_name("product_card--large") == "Product Card Large"


def test_name_priority():
    child = make_node()
    framer = make_node(data_attributes={"data-framer-name": "hero_section"}, aria_role="banner", children=[child])
    assert generate_component_name([framer]) == "Hero Section"

    role = make_node(aria_role="navigation", class_names=["menu"], children=[child])
    assert generate_component_name([role]) == "Navigation"

    generic = make_node(aria_role="generic", class_names=["css-1abc2", "p-4", "product-card"], children=[child])
    assert generate_component_name([generic]) == "Product Card"

    assert generate_component_name([make_node(tag="li", children=[child])]) == "List Item Group"
    assert generate_component_name([make_node(tag="li")]) == "List Item"
    assert generate_component_name([make_node(tag="custom")]) == "Custom"


def test_most_common_class_wins():
    instances = [
        make_node(class_names=["tile", "featured"]),
        make_node(class_names=["featured"]),
    ]
    assert generate_component_name(instances) == "Featured"


# ============================================================
# Canvas components
# ============================================================

def test_create_components_builds_each_once():
    ctx = make_ctx()
    detected = detect_components(page_with_cards(3), threshold=3)
    progress = []
    component_map = asyncio.run(create_components(detected, ctx, lambda done, total: progress.append((done, total))))

    assert component_map.count == 1
    component = component_map.nodes_by_hash["card1"]
    assert component.type == "COMPONENT"
    assert component.name == "Card"
    assert (component.width, component.height) == (300, 200)
    assert component.y == -300
    assert component.fills == []
    # The representative frame sits inside at the origin with both texts
    inner = component.children[0]
    assert (inner.x, inner.y) == (0, 0)
    assert [child.type for child in inner.children] == ["TEXT", "TEXT"]
    assert progress == [(1, 1)]


def test_failed_component_is_skipped(monkeypatch):
    real_build = component_detector.build_component_node

    async def flaky_build(component, ctx):
        if component.hash == "a":
            raise RuntimeError("host refused")
        return await real_build(component, ctx)

    monkeypatch.setattr(component_detector, "build_component_node", flaky_build)
    root = make_node(children=[card(component_hash="a") for _ in range(4)] + [card(component_hash="b") for _ in range(3)])
    component_map = asyncio.run(create_components(detect_components(root), make_ctx()))
    assert set(component_map.nodes_by_hash) == {"b"}


def test_components_disabled():
    detected = detect_components(page_with_cards(3))
    assert asyncio.run(create_components(detected, make_ctx(create_components=False))).count == 0


def test_representative_is_handed_out_once():
    ctx = make_ctx()
    cards = page_with_cards(3).children
    component_map = asyncio.run(create_components(detect_components(make_node(children=cards)), ctx))

    key, component = component_map.lookup(cards[1])
    assert key == "card1"
    assert component_map.take_representative(key, cards[1]) is None
    assert component_map.take_representative(key, cards[0]) is component
    assert component_map.take_representative(key, cards[0]) is None


def test_lookup_prefers_boundary_key():
    ctx = make_ctx()
    boundary = ctx.host.create_component()
    hashed = ctx.host.create_component()
    component_map = ComponentMap(nodes_by_hash={"framer-Card": boundary, "h1": hashed})
    node = make_node(
        component_hash="h1",
        data_attributes={"data-framer-component-type": "Card"},
        children=[make_node()],
    )
    assert component_map.lookup(node) == ("framer-Card", boundary)
    assert component_map.lookup(make_node(component_hash="zzz")) == (None, None)


def test_instance_takes_node_size_and_name():
    ctx = make_ctx()
    component = ctx.host.create_component()
    component.name = "Card"
    instance = create_instance_node(make_node(bounds=(0, 0, 310.6, 190.2)), component, "Pricing")
    assert instance.main_component is component
    assert instance.name == "Pricing"
    assert (instance.width, instance.height) == (311, 190)


def test_bridge_data_with_subtree():
    ctx = make_ctx()
    node = card()
    frame = ctx.host.create_frame()
    record_bridge_data(frame, node, "root-2", with_subtree=True)

    assert frame.get_plugin_data("bridgePath") == "root-2"
    assert frame.get_plugin_data("bridgeFingerprint") == compute_fingerprint(node)
    subtree = json.loads(frame.get_plugin_data("bridgeSubtree"))
    assert subtree == {
        "0": compute_fingerprint(node.children[0]),
        "1": compute_fingerprint(node.children[1]),
    }
