"""
Re-import: diff a fresh extraction against a previous import on the canvas
and apply the selected changes in place.

The previous import is found through the page frame's plugin data
(forgeImport / forgeUrl / forgeTimestamp); per-node fingerprints come from
bridgePath / bridgeFingerprint, plus the bridgeSubtree map stored on
components and instances whose inner nodes are not separate canvas layers.
"""

import json
import re
import time
from dataclasses import dataclass

from pageforge.component_detector import record_bridge_data
from pageforge.diffing import (
    ExistingEntry,
    build_fingerprint_map,
    compute_diff,
    compute_fingerprint,
)
from pageforge.models import BridgeNode, DiffChange, ExtractionResult, ImportSettings
from pageforge.nodes import create_frame_node, create_leaf_node, position_node
from pageforge.style_parsers import js_round
from pageforge.tokens import create_all_styles

_LAST_SEGMENT = re.compile(r"-\d+$")


@dataclass
class ApplyResult:
    updated_count: int = 0
    added_count: int = 0
    removed_count: int = 0

    def to_dict(self) -> dict:
        return {
            "updatedCount": self.updated_count,
            "addedCount": self.added_count,
            "removedCount": self.removed_count,
        }


def _timestamp(node) -> int:
    try:
        return int(node.get_plugin_data("forgeTimestamp") or "0")
    except ValueError:
        return 0


def find_existing_import(host, url: str):
    """Newest import frame for url, else the newest import frame on the page."""
    imports = [
        child for child in host.current_page.children
        if child.type == "FRAME" and child.get_plugin_data("forgeImport") == "true"
    ]
    same_url = [frame for frame in imports if frame.get_plugin_data("forgeUrl") == url]
    candidates = same_url or imports
    if not candidates:
        return None
    return max(candidates, key=_timestamp)


def _walk(node):
    yield node
    for child in getattr(node, "children", []):
        yield from _walk(child)


def collect_existing_fingerprints(root) -> dict[str, ExistingEntry]:
    existing = {}
    for node in _walk(root):
        path = node.get_plugin_data("bridgePath")
        fingerprint = node.get_plugin_data("bridgeFingerprint")
        if not path or not fingerprint:
            continue
        existing[path] = ExistingEntry(fingerprint, node.id)

        subtree = node.get_plugin_data("bridgeSubtree")
        if subtree:
            try:
                relative = json.loads(subtree)
            except ValueError:
                print(f"  [reimport] Ignoring unreadable subtree data on {node.id}")
                continue
            for rel_path, rel_fingerprint in relative.items():
                existing[f"{path}-{rel_path}"] = ExistingEntry(rel_fingerprint, node.id)
    return existing


def collect_path_nodes(root) -> dict:
    """bridgePath -> canvas node, for nodes that exist as their own layer."""
    nodes = {}
    for node in _walk(root):
        path = node.get_plugin_data("bridgePath")
        if path:
            nodes[path] = node
    return nodes


def parent_path(path: str) -> str:
    return _LAST_SEGMENT.sub("", path)


def excluded_paths(fingerprints: dict, settings: ImportSettings) -> set[str]:
    """Paths conversion never builds: hidden nodes (unless included) and nodes past max_depth, with their subtrees."""
    excluded = set()
    for path, entry in fingerprints.items():
        depth = path.count("-")
        if path != "root" and parent_path(path) in excluded:
            excluded.add(path)
        elif not entry.node.visible and not settings.include_hidden_elements:
            excluded.add(path)
        elif depth > settings.max_depth:
            excluded.add(path)
    return excluded


async def compute_reimport_diff(
    new_result: ExtractionResult,
    frame,
    on_progress=None,
    settings: ImportSettings = None,
) -> tuple:
    def report(progress, message):
        if on_progress:
            on_progress("diffing", progress, message)

    settings = settings or ImportSettings()

    report(0, "Building new fingerprint map...")
    new_map = build_fingerprint_map(new_result.root_node)
    excluded = excluded_paths(new_map, settings)
    new_map = {path: entry for path, entry in new_map.items() if path not in excluded}

    report(0.3, "Collecting existing fingerprints...")
    existing_map = collect_existing_fingerprints(frame)
    # Component subtree maps record every descendant, built or not
    layer_paths = set(collect_path_nodes(frame))
    for path in excluded:
        if path in existing_map and path not in layer_paths:
            del existing_map[path]

    report(0.6, "Computing differences...")
    changes, summary = compute_diff(new_map, existing_map)

    report(1, f"Found {len(changes)} changes")
    return changes, summary


async def update_node(existing, node: BridgeNode, host):
    if existing.type == "TEXT" and node.type == "text":
        try:
            await host.load_font(existing.font_name)
            existing.characters = node.text or ""
        except Exception as e:
            print(f"  [reimport] Could not update text at {existing.get_plugin_data('bridgePath')}: {e}")
    elif existing.type == "FRAME" and node.type in ("frame", "unknown"):
        existing.resize(max(1, js_round(node.bounds.width)), max(1, js_round(node.bounds.height)))

    existing.set_plugin_data("bridgeFingerprint", compute_fingerprint(node))


async def create_node_from_bridge(node: BridgeNode, ctx):
    created = await create_leaf_node(node, ctx)
    if created is None:
        created = create_frame_node(node, ctx)
    return created


async def apply_diff_changes(
    changes: list[DiffChange],
    new_result: ExtractionResult,
    frame,
    ctx,
    on_progress=None,
) -> ApplyResult:
    """
    Apply the selected changes to a previous import, in list order.
    Paths that only exist inside a component/instance are left alone.
    """
    selected = [change for change in changes if change.selected]
    result = ApplyResult()
    if not selected:
        return result

    if any(change.type != "removed" for change in selected):
        ctx.style_map = await create_all_styles(new_result.tokens, ctx, reuse=True)

    new_map = build_fingerprint_map(new_result.root_node)
    excluded = excluded_paths(new_map, ctx.settings)
    path_nodes = collect_path_nodes(frame)

    for i, change in enumerate(selected):
        if on_progress:
            on_progress("applying-diff", (i + 1) / len(selected), f"Applying change {i + 1}/{len(selected)}...")

        if change.type == "modified":
            existing = path_nodes.get(change.path)
            entry = new_map.get(change.path)
            if existing is None or entry is None:
                continue
            await update_node(existing, entry.node, ctx.host)
            result.updated_count += 1

        elif change.type == "added":
            entry = new_map.get(change.path)
            if entry is None or change.path in excluded:
                continue
            parent_key = parent_path(change.path)
            if parent_key == change.path:
                parent = frame
            else:
                parent = path_nodes.get(parent_key)
            if parent is None or parent.get_plugin_data("bridgeSubtree"):
                print(f"  [reimport] Skipping {change.path}: parent is inside a component or missing")
                continue
            if not hasattr(parent, "append_child"):
                print(f"  [reimport] Cannot add {change.path}: parent is not a container")
                continue
            try:
                created = await create_node_from_bridge(entry.node, ctx)
            except Exception as e:
                print(f"  [reimport] Could not create node for {change.path}: {e}")
                continue
            parent_entry = new_map.get(parent_key) if parent_key != change.path else None
            position_node(created, entry.node, parent_entry.node if parent_entry else None)
            record_bridge_data(created, entry.node, change.path)
            parent.append_child(created)
            path_nodes[change.path] = created
            result.added_count += 1

        elif change.type == "removed":
            existing = path_nodes.get(change.path)
            if existing is None or existing.removed:
                continue
            existing.remove()
            result.removed_count += 1

    frame.set_plugin_data("forgeTimestamp", str(int(time.time() * 1000)))
    print(f"  [reimport] Applied {result.updated_count} updates, "
          f"{result.added_count} additions, {result.removed_count} removals")
    return result
