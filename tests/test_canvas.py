import asyncio

import pytest

from helpers import png_bytes

from pageforge.canvas import (
    CanvasDocument,
    CapabilityUnavailable,
    FontNotLoaded,
)


def test_new_nodes_land_on_current_page():
    doc = CanvasDocument()
    frame = doc.create_frame()
    assert frame.parent is doc.current_page
    assert doc.get_node_by_id(frame.id) is frame
    assert frame.fills[0]["type"] == "SOLID"


def test_append_moves_node_between_parents():
    doc = CanvasDocument()
    outer, inner = doc.create_frame(), doc.create_frame()
    outer.append_child(inner)
    assert inner.parent is outer
    assert inner not in doc.current_page.children


def test_cannot_append_ancestor_into_descendant():
    doc = CanvasDocument()
    outer, inner = doc.create_frame(), doc.create_frame()
    outer.append_child(inner)
    with pytest.raises(ValueError):
        inner.append_child(outer)


def test_remove_unregisters_subtree():
    doc = CanvasDocument()
    outer, inner = doc.create_frame(), doc.create_frame()
    outer.append_child(inner)
    outer.remove()
    assert outer.removed and inner.removed
    assert doc.get_node_by_id(inner.id) is None
    with pytest.raises(ValueError):
        doc.current_page.append_child(inner)


def test_resize_rejects_degenerate_sizes():
    with pytest.raises(ValueError):
        CanvasDocument().create_frame().resize(0, 10)


def test_plugin_data_is_string_only():
    frame = CanvasDocument().create_frame()
    assert frame.get_plugin_data("missing") == ""
    frame.set_plugin_data("bridgePath", "root-0")
    assert frame.get_plugin_data("bridgePath") == "root-0"
    with pytest.raises(TypeError):
        frame.set_plugin_data("count", 3)


def test_linking_a_paint_style_copies_paints():
    doc = CanvasDocument()
    style = doc.create_paint_style()
    style.paints = [{"type": "SOLID", "color": {"r": 0, "g": 0, "b": 1}, "opacity": 1}]
    frame = doc.create_frame()
    frame.fill_style_id = style.id
    assert frame.fills == style.paints

    text_style = doc.create_text_style()
    with pytest.raises(ValueError):
        frame.fill_style_id = text_style.id


def test_text_requires_loaded_font():
    doc = CanvasDocument()
    text = doc.create_text()
    with pytest.raises(FontNotLoaded):
        text.characters = "Hello"

    asyncio.run(doc.load_font({"family": "Inter", "style": "Regular"}))
    text.characters = "Hello"
    assert text.characters == "Hello"

    with pytest.raises(FontNotLoaded):
        text.font_name = {"family": "Roboto", "style": "Bold"}


def test_unknown_font_cannot_load():
    with pytest.raises(ValueError):
        asyncio.run(CanvasDocument().load_font({"family": "Comic Sans", "style": "Regular"}))


def test_svg_import_sizes_from_attributes_or_view_box():
    doc = CanvasDocument()
    sized = doc.create_node_from_svg('<svg xmlns="http://www.w3.org/2000/svg" width="24" height="16"/>')
    assert (sized.width, sized.height) == (24, 16)
    boxed = doc.create_node_from_svg('<svg viewBox="0 0 48 32"></svg>')
    assert (boxed.width, boxed.height) == (48, 32)

    with pytest.raises(ValueError):
        doc.create_node_from_svg("<svg")
    with pytest.raises(ValueError):
        doc.create_node_from_svg("<div/>")


def test_create_image_hashes_bytes():
    doc = CanvasDocument()
    handle = doc.create_image(png_bytes(3, 2))
    assert (handle.width, handle.height) == (3, 2)
    assert handle.hash in doc.images
    with pytest.raises(ValueError):
        doc.create_image(b"nope")


def test_combine_as_variants():
    doc = CanvasDocument()
    first, second = doc.create_component(), doc.create_component()
    first.resize(200, 100)
    second.resize(100, 300)
    component_set = doc.combine_as_variants([first, second])

    assert component_set.type == "COMPONENT_SET"
    assert component_set.children == [first, second]
    assert second.x == 240
    assert (component_set.width, component_set.height) == (340, 300)

    with pytest.raises(ValueError):
        doc.combine_as_variants([])
    with pytest.raises(ValueError):
        doc.combine_as_variants([doc.create_frame()])


def test_instances_point_at_main_component():
    doc = CanvasDocument()
    component = doc.create_component()
    component.name = "Card"
    instance = component.create_instance()
    assert instance.main_component is component
    assert instance.name == "Card"
    assert instance.to_dict()["mainComponentId"] == component.id


def test_capabilities_can_be_switched_off():
    doc = CanvasDocument(variables_enabled=False, sections_enabled=False)
    with pytest.raises(CapabilityUnavailable):
        doc.create_section()
    with pytest.raises(CapabilityUnavailable):
        doc.create_variable_collection("Colors")


def test_variables():
    doc = CanvasDocument()
    collection = doc.create_variable_collection("Colors")
    variable = doc.create_variable("brand", collection.id, "COLOR")
    variable.set_value_for_mode(collection.modes[0]["modeId"], {"r": 1, "g": 0, "b": 0, "a": 1})

    exported = doc.to_dict()["variables"][0]
    assert exported["collection"] == "Colors"
    assert exported["type"] == "COLOR"

    with pytest.raises(ValueError):
        doc.create_variable("x", collection.id, "VECTOR")
    with pytest.raises(ValueError):
        doc.create_variable("x", "missing", "FLOAT")


def test_to_dict_serialises_tree():
    doc = CanvasDocument()
    outer = doc.create_frame()
    outer.name = "Page"
    outer.layout_mode = "VERTICAL"
    outer.append_child(doc.create_rectangle())

    page = doc.to_dict()["page"]
    exported = page["children"][0]
    assert exported["name"] == "Page"
    assert exported["autoLayout"]["layoutMode"] == "VERTICAL"
    assert exported["children"][0]["type"] == "RECTANGLE"
