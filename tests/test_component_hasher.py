from helpers import raw_element

from pageforge.component_hasher import (
    build_signature,
    djb2,
    hash_component,
    round_to_step,
    structural_style_key,
    to_base36,
)


def test_round_to_step():
    assert round_to_step(17) == 16
    assert round_to_step(18) == 20
    assert round_to_step(None) == 0
    assert round_to_step(float("nan")) == 0


def test_style_key_ignores_colors():
    a = structural_style_key({"display": "flex", "fontSize": "16px", "color": "red"})
    b = structural_style_key({"display": "flex", "fontSize": "17px", "color": "blue"})
    assert a == b


def test_style_key_sees_layout_changes():
    assert structural_style_key({"display": "flex"}) != structural_style_key({"display": "block"})


def test_signature_shape():
    element = raw_element("div", {"display": "block"}, [raw_element("p")])
    signature = build_signature(element)
    assert signature.startswith("div[block|")
    assert "(1){p[" in signature


def test_signature_stops_at_depth_limit():
    deep = raw_element("div", children=[raw_element("span", children=[raw_element("b")])])
    assert "b[" not in build_signature(deep, 0, 1)
    assert "b[" in build_signature(deep, 0, 2)


def test_same_structure_hashes_alike():
    first = raw_element("li", {"display": "flex"}, [raw_element("a", {"color": "red"})])
    second = raw_element("li", {"display": "flex"}, [raw_element("a", {"color": "blue"})])
    third = raw_element("li", {"display": "flex"}, [raw_element("a"), raw_element("a")])
    assert hash_component(first) == hash_component(second)
    assert hash_component(first) != hash_component(third)


def test_djb2_known_values():
    assert djb2("") == to_base36(5381)
    assert djb2("a") == to_base36(5381 * 33 + 97)
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
