from helpers import make_node, text_node

from pageforge.diffing import (
    build_fingerprint_map,
    compute_diff,
    compute_fingerprint,
    describe_node,
    simple_hash,
    subtree_fingerprints,
    to_existing_map,
)


def page(*texts):
    return make_node(tag="body", children=[
        make_node(tag="section", children=[text_node(text) for text in texts]),
        make_node(tag="footer"),
    ])


def test_fnv1a_reference_values():
    assert simple_hash("") == "811c9dc5"
    assert simple_hash("a") == "e40c292c"


def test_paths_follow_child_positions():
    fingerprints = build_fingerprint_map(page("a", "b"))
    assert list(fingerprints) == ["root", "root-0", "root-0-0", "root-0-1", "root-1"]


def test_fingerprint_ignores_position_but_sees_size():
    moved = text_node("same", bounds=(500, 500, 200, 20))
    assert compute_fingerprint(text_node("same")) == compute_fingerprint(moved)
    assert compute_fingerprint(text_node("same")) != compute_fingerprint(text_node("same", bounds=(0, 0, 201, 20)))


def test_identical_trees_have_no_changes():
    old = build_fingerprint_map(page("a", "b"))
    changes, summary = compute_diff(build_fingerprint_map(page("a", "b")), to_existing_map(old))
    assert changes == []
    assert summary.unchanged_count == summary.total_nodes == 5


def test_changed_text_only_flags_that_node():
    old = to_existing_map(build_fingerprint_map(page("a", "b")))
    changes, summary = compute_diff(build_fingerprint_map(page("a", "changed")), old)
    assert [(c.type, c.path) for c in changes] == [("modified", "root-0-1")]
    assert changes[0].node_type == "text"
    assert changes[0].description == 'Changed text "changed"'
    assert changes[0].selected
    assert summary.modified_count == 1
    assert summary.unchanged_count == 4


def test_added_and_removed():
    old = to_existing_map(build_fingerprint_map(page("a", "b")))
    changes, summary = compute_diff(build_fingerprint_map(page("a", "b", "c")), old)
    assert [(c.type, c.path) for c in changes] == [("added", "root-0-2")]
    assert summary.added_count == 1

    old = to_existing_map(build_fingerprint_map(page("a", "b", "c")))
    changes, summary = compute_diff(build_fingerprint_map(page("a", "b")), old)
    assert [(c.type, c.path, c.node_type) for c in changes] == [("removed", "root-0-2", "unknown")]
    assert summary.removed_count == 1
    assert summary.total_nodes == 5


def test_describe_node():
    assert describe_node(make_node(tag="nav"), "added") == "New frame <nav>"
    long_text = text_node("y" * 40)
    assert describe_node(long_text, "modified") == f'Changed text "{"y" * 30}..."'


def test_subtree_paths_are_relative():
    node = page("a", "b")
    subtree = subtree_fingerprints(node)
    assert set(subtree) == {"0", "0-0", "0-1", "1"}
    assert subtree["0-1"] == build_fingerprint_map(node)["root-0-1"].fingerprint


def test_resized_frame_deep_in_tree_is_the_only_change():
    def sized_page(width):
        return make_node(tag="body", children=[
            make_node(tag="section", children=[
                make_node(tag="div", bounds=(0, 0, width, 50), children=[text_node("x")]),
                make_node(tag="div"),
            ]),
        ])

    old = to_existing_map(build_fingerprint_map(sized_page(100)))
    changes, summary = compute_diff(build_fingerprint_map(sized_page(120)), old)
    assert [(c.type, c.path, c.node_type) for c in changes] == [("modified", "root-0-0", "frame")]
    assert summary.unchanged_count == 4
