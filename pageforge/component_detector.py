"""
Repeated-pattern detection and canvas components.

Frame nodes are grouped by structural hash; groups at or above the
threshold become DetectedComponents whose representative is the first
occurrence in document order. Each component is built once on the canvas;
matching nodes in the tree then become instances of it.

Naming priority:
1. data-framer-name
2. ARIA role (other than "generic")
3. most common non-utility class across instances
4. semantic tag label ("Container Group", "List Item Group", ...)

Related:
- Hash source: pageforge/component_hasher.py
- Framer boundaries: pageforge/framer.py
- Tree walk: pageforge/converter.py
"""

import json
import re
from dataclasses import dataclass, field
from typing import Optional

from pageforge.diffing import compute_fingerprint, subtree_fingerprints
from pageforge.framer import boundary_key, get_framer_name
from pageforge.models import BridgeNode, DetectedComponent
from pageforge.nodes import create_frame_node, create_leaf_node, position_node
from pageforge.style_parsers import js_round

GENERATED_CLASS = re.compile(r"^[a-z]{1,4}-[a-z0-9]{4,}$", re.IGNORECASE)
UTILITY_CLASS = re.compile(r"^(p|m|w|h|bg|text|flex|grid|gap|rounded|border|shadow|opacity|z)-")

TAG_NAMES = {
    "nav": "Navigation",
    "header": "Header",
    "footer": "Footer",
    "main": "Main",
    "section": "Section",
    "article": "Article",
    "aside": "Sidebar",
    "ul": "List",
    "ol": "Ordered List",
    "li": "List Item",
    "button": "Button",
    "a": "Link",
    "form": "Form",
    "input": "Input",
    "select": "Select",
    "table": "Table",
    "tr": "Table Row",
    "td": "Table Cell",
    "div": "Container",
    "span": "Span",
}


# ============================================================
# Detection
# ============================================================

def collect_hashes(node: BridgeNode, groups: dict):
    if node.component_hash and node.type == "frame" and node.children:
        groups.setdefault(node.component_hash, []).append(node)
    for child in node.children:
        collect_hashes(child, groups)


def detect_components(root: BridgeNode, threshold: int = 3) -> list[DetectedComponent]:
    """Hash groups with at least `threshold` frames, most instances first."""
    groups = {}
    collect_hashes(root, groups)

    components = [
        DetectedComponent(
            hash=component_hash,
            name=generate_component_name(instances),
            instances=instances,
            representative_node=instances[0],
        )
        for component_hash, instances in groups.items()
        if len(instances) >= threshold
    ]
    return sorted(components, key=lambda c: len(c.instances), reverse=True)


def capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def clean_name(raw: str) -> str:
    name = re.sub(r"^(css|styles?|component)-", "", raw, flags=re.IGNORECASE)
    name = re.sub(r"[-_]+", " ", name)
    name = re.sub(r"([a-z])([A-Z])", r"\1 \2", name)
    return " ".join(capitalize(word) for word in name.split(" ") if word)


def is_utility_class(cls: str) -> bool:
    return len(cls) <= 2 or bool(GENERATED_CLASS.match(cls)) or bool(UTILITY_CLASS.match(cls))


def find_best_class_name(instances: list[BridgeNode]) -> Optional[str]:
    counts = {}
    for node in instances:
        for cls in node.class_names or []:
            if not is_utility_class(cls):
                counts[cls] = counts.get(cls, 0) + 1
    if not counts:
        return None
    # First class reaching the highest count wins ties
    best, best_count = None, 0
    for cls, count in counts.items():
        if count > best_count:
            best, best_count = cls, count
    return best


def generate_component_name(instances: list[BridgeNode]) -> str:
    representative = instances[0]

    framer_name = (representative.data_attributes or {}).get("data-framer-name")
    if framer_name:
        return clean_name(framer_name)

    if representative.aria_role and representative.aria_role != "generic":
        return clean_name(representative.aria_role)

    class_name = find_best_class_name(instances)
    if class_name:
        return clean_name(class_name)

    label = TAG_NAMES.get(representative.tag, capitalize(representative.tag))
    return f"{label} Group" if representative.children else label


# ============================================================
# Canvas components
# ============================================================

@dataclass
class ComponentMap:
    nodes_by_hash: dict = field(default_factory=dict)      # key -> ComponentNode
    representatives: dict = field(default_factory=dict)    # key -> representative BridgeNode
    placed: set = field(default_factory=set)
    place_representatives: bool = True

    @property
    def count(self) -> int:
        return len(self.nodes_by_hash)

    def lookup(self, node: BridgeNode):
        """(key, component) for a node, boundary key first, or (None, None)."""
        for key in (boundary_key(node), node.component_hash):
            if key and key in self.nodes_by_hash:
                return key, self.nodes_by_hash[key]
        return None, None

    def take_representative(self, key: str, node: BridgeNode):
        """
        The built component itself when `node` is its representative and it
        has not been placed yet; None otherwise.
        """
        if not self.place_representatives or key in self.placed:
            return None
        if self.representatives.get(key) is not node:
            return None
        self.placed.add(key)
        return self.nodes_by_hash[key]


def record_bridge_data(target, node: BridgeNode, path: str, with_subtree: bool = False):
    target.set_plugin_data("bridgePath", path)
    target.set_plugin_data("bridgeFingerprint", compute_fingerprint(node))
    if with_subtree:
        target.set_plugin_data("bridgeSubtree", json.dumps(subtree_fingerprints(node)))


async def build_subtree(node: BridgeNode, parent, ctx, depth: int, parent_node: Optional[BridgeNode] = None):
    """Full subtree build without component substitution."""
    if not node.visible and not ctx.settings.include_hidden_elements:
        return
    if depth > ctx.settings.max_depth:
        return

    framer_name = get_framer_name(node) if ctx.framer_aware else None
    target = await create_leaf_node(node, ctx, framer_name)
    if target is None:
        target = create_frame_node(node, ctx, framer_name)
        for child in node.children:
            await build_subtree(child, target, ctx, depth + 1, node)

    position_node(target, node, parent_node)
    parent.append_child(target)


async def build_component_node(component: DetectedComponent, ctx):
    node = component.representative_node
    canvas_component = ctx.host.create_component()
    canvas_component.name = component.name
    canvas_component.resize(max(1, js_round(node.bounds.width)), max(1, js_round(node.bounds.height)))
    canvas_component.fills = []

    await build_subtree(node, canvas_component, ctx, 0, node)
    return canvas_component


async def create_components(components: list[DetectedComponent], ctx, on_progress=None) -> ComponentMap:
    """Build each detected component once, off to the side above the import."""
    component_map = ComponentMap()
    if not ctx.settings.create_components:
        return component_map

    for i, component in enumerate(components):
        try:
            canvas_component = await build_component_node(component, ctx)
        except Exception as e:
            print(f"  [components] Skipping component {component.name}: {e}")
        else:
            canvas_component.x = i * (canvas_component.width + 40)
            canvas_component.y = -canvas_component.height - 100
            component_map.nodes_by_hash[component.hash] = canvas_component
            component_map.representatives[component.hash] = component.representative_node
        if on_progress:
            on_progress(i + 1, len(components))

    return component_map


def create_instance_node(node: BridgeNode, canvas_component, name: Optional[str] = None):
    instance = canvas_component.create_instance()
    instance.name = name or node.tag
    instance.resize(max(1, js_round(node.bounds.width)), max(1, js_round(node.bounds.height)))
    return instance
