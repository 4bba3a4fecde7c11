"""
Content fingerprints and the path-keyed re-import diff.

Paths follow child position: root, root-0, root-0-1, ... A node's
fingerprint covers only its own content (type, tag, text, rounded size,
background, color, font size, structural hash), so an ancestor is not
re-fingerprinted when a descendant changes.
"""

from dataclasses import dataclass
from typing import Optional

from pageforge.component_hasher import utf16_units
from pageforge.models import BridgeNode, DiffChange, DiffSummary
from pageforge.style_parsers import js_round

FNV_OFFSET = 0x811C9DC5
FNV_PRIME = 0x01000193


@dataclass
class FingerprintEntry:
    fingerprint: str
    node: BridgeNode


@dataclass
class ExistingEntry:
    fingerprint: str
    target_node_id: str = ""


def simple_hash(text: str) -> str:
    """32-bit FNV-1a over UTF-16 code units, 8 hex digits."""
    value = FNV_OFFSET
    for unit in utf16_units(text):
        value ^= unit
        value = (value * FNV_PRIME) & 0xFFFFFFFF
    return f"{value:08x}"


def compute_fingerprint(node: BridgeNode) -> str:
    parts = [
        node.type,
        node.tag,
        node.text or "",
        f"{js_round(node.bounds.width)}x{js_round(node.bounds.height)}",
        node.styles.background_color or "",
        node.styles.color or "",
        node.styles.font_size or "",
        node.component_hash or "",
    ]
    return simple_hash("|".join(parts))


def build_fingerprint_map(root: BridgeNode, path_prefix: str = "root") -> dict[str, FingerprintEntry]:
    fingerprints = {}

    def walk(node, path):
        fingerprints[path] = FingerprintEntry(compute_fingerprint(node), node)
        for i, child in enumerate(node.children):
            walk(child, f"{path}-{i}")

    walk(root, path_prefix)
    return fingerprints


def subtree_fingerprints(node: BridgeNode) -> dict[str, str]:
    """Descendant fingerprints keyed by path relative to node ('0', '0-1', ...)."""
    relative = {}
    for i, child in enumerate(node.children):
        for path, entry in build_fingerprint_map(child, str(i)).items():
            relative[path] = entry.fingerprint
    return relative


def to_existing_map(fingerprints: dict[str, FingerprintEntry]) -> dict[str, ExistingEntry]:
    return {path: ExistingEntry(entry.fingerprint) for path, entry in fingerprints.items()}


def describe_node(node: BridgeNode, change_type: str) -> str:
    if node.text:
        suffix = "..." if len(node.text) > 30 else ""
        label = f'"{node.text[:30]}{suffix}"'
    else:
        label = f"<{node.tag}>"
    verb = "New" if change_type == "added" else "Changed"
    return f"{verb} {node.type} {label}"


def compute_diff(
    new_map: dict[str, FingerprintEntry],
    existing_map: dict[str, ExistingEntry],
) -> tuple[list[DiffChange], DiffSummary]:
    changes = []
    summary = DiffSummary(total_nodes=len(new_map))

    for path, entry in new_map.items():
        existing: Optional[ExistingEntry] = existing_map.get(path)
        if existing is None:
            change_type = "added"
            summary.added_count += 1
        elif existing.fingerprint != entry.fingerprint:
            change_type = "modified"
            summary.modified_count += 1
        else:
            summary.unchanged_count += 1
            continue
        changes.append(DiffChange(
            id=path,
            type=change_type,
            path=path,
            node_type=entry.node.type,
            description=describe_node(entry.node, change_type),
        ))

    for path in existing_map:
        if path in new_map:
            continue
        summary.removed_count += 1
        changes.append(DiffChange(
            id=path,
            type="removed",
            path=path,
            node_type="unknown",
            description=f"Node at {path} removed",
        ))

    return changes, summary
