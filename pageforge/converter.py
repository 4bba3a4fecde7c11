"""
Core converter: ExtractionResult -> canvas nodes.

Entry points:
- convert_to_canvas(result, ctx, on_progress): one page frame on the current page
- convert_to_component(result, label, ctx, on_progress, style_map): same
  pipeline wrapped in a component, used for viewport variants

Order per conversion: token pass -> component detection/creation ->
recursive node walk -> Framer sections. Every created node records its
tree path and fingerprint as plugin data for re-import.

Related:
- Node creators: pageforge/nodes.py
- Styles: pageforge/tokens.py
- Components: pageforge/component_detector.py
- Framer layer: pageforge/framer.py
"""

from dataclasses import dataclass
from urllib.parse import urlparse

from pageforge.component_detector import (
    ComponentMap,
    create_components,
    create_instance_node,
    detect_components,
    record_bridge_data,
)
from pageforge.framer import (
    enhance_framer_components,
    enhance_framer_tokens,
    get_framer_name,
    organize_framer_sections,
)
from pageforge.models import BridgeNode, ExtractionResult
from pageforge.nodes import create_frame_node, create_leaf_node, position_node
from pageforge.tokens import create_all_styles


@dataclass
class ConvertResult:
    node_count: int = 0
    token_count: int = 0
    component_count: int = 0
    style_count: int = 0
    section_count: int = 0

    def to_dict(self) -> dict:
        return {
            "nodeCount": self.node_count,
            "tokenCount": self.token_count,
            "componentCount": self.component_count,
            "styleCount": self.style_count,
            "sectionCount": self.section_count,
        }


def _noop_progress(phase, progress, message):
    pass


def count_nodes(node: BridgeNode) -> int:
    return 1 + sum(count_nodes(child) for child in node.children)


def hostname(url: str) -> str:
    return urlparse(url).hostname or "unknown"


def import_name(result: ExtractionResult) -> str:
    return result.metadata.title or f"Import from {hostname(result.url)}"


def is_framer_import(result: ExtractionResult, ctx) -> bool:
    return result.metadata.is_framer_site and ctx.settings.framer_aware_mode


def mark_import(target, result: ExtractionResult):
    target.set_plugin_data("forgeImport", "true")
    target.set_plugin_data("forgeUrl", result.url)
    target.set_plugin_data("forgeTimestamp", str(result.timestamp))


async def prepare_components(result: ExtractionResult, ctx, on_progress) -> ComponentMap:
    if not ctx.settings.create_components:
        return ComponentMap()

    on_progress("creating-components", 0, "Detecting components...")
    detected = detect_components(result.root_node, ctx.config.component_threshold)
    if ctx.framer_aware:
        detected = enhance_framer_components(
            detected, result.root_node, ctx.config.boundary_component_threshold,
        )
    on_progress("creating-components", 0.3, f"Found {len(detected)} component patterns...")

    def component_progress(created, total):
        on_progress(
            "creating-components",
            0.3 + (created / total) * 0.7,
            f"Creating component {created}/{total}...",
        )

    return await create_components(detected, ctx, component_progress)


async def convert_node(
    node: BridgeNode,
    parent,
    ctx,
    depth: int,
    path: str,
    component_map: ComponentMap,
    on_created,
    parent_node: BridgeNode = None,
):
    """Convert one BridgeNode (and its subtree) and append it to parent."""
    if not node.visible and not ctx.settings.include_hidden_elements:
        return
    if depth > ctx.settings.max_depth:
        return

    framer_name = get_framer_name(node) if ctx.framer_aware else None

    # Component shortcut: the first occurrence becomes the component itself,
    # later ones become instances of it. Never for the root.
    if depth > 0:
        key, component = component_map.lookup(node)
        if component is not None:
            target = component_map.take_representative(key, node)
            if target is None:
                target = create_instance_node(node, component, framer_name)
            record_bridge_data(target, node, path, with_subtree=True)
            position_node(target, node, parent_node)
            parent.append_child(target)
            on_created(count_nodes(node))
            return

    try:
        target = await create_leaf_node(node, ctx, framer_name)
        is_container = target is None
        if is_container:
            target = create_frame_node(node, ctx, framer_name)
    except Exception as e:
        print(f"  [convert] Skipping <{node.tag}> at {path}: {e}")
        return

    if is_container:
        for i, child in enumerate(node.children):
            await convert_node(
                child, target, ctx, depth + 1, f"{path}-{i}",
                component_map, on_created, node,
            )

    record_bridge_data(target, node, path)
    position_node(target, node, parent_node)
    parent.append_child(target)
    on_created(1)


async def convert_tree(result: ExtractionResult, container, ctx, component_map, on_progress) -> int:
    total = count_nodes(result.root_node)
    processed = 0

    def on_created(count):
        nonlocal processed
        processed += count
        on_progress(
            "creating-nodes",
            min(0.95, processed / total),
            f"Created {processed}/{total} nodes",
        )

    on_progress("creating-nodes", 0, f"Creating {total} nodes...")
    await convert_node(result.root_node, container, ctx, 0, "root", component_map, on_created)
    return processed


def organize_sections(container, result: ExtractionResult, ctx, on_progress) -> int:
    if not ctx.framer_aware or not container.children:
        return 0
    # Sections wrap the top-level children of the body frame
    body_frame = container.children[0]
    if not hasattr(body_frame, "children"):
        return 0
    on_progress("creating-sections", 0, "Organizing Framer sections...")
    count = organize_framer_sections(body_frame, result.root_node)
    on_progress("creating-sections", 1, f"Created {count} sections")
    return count


async def _convert_into(container, result: ExtractionResult, ctx, on_progress, component_map) -> ConvertResult:
    node_count = await convert_tree(result, container, ctx, component_map, on_progress)
    section_count = organize_sections(container, result, ctx, on_progress)
    return ConvertResult(
        node_count=node_count,
        component_count=component_map.count,
        section_count=section_count,
    )


async def convert_to_canvas(result: ExtractionResult, ctx, on_progress=None) -> tuple:
    """
    Import one ExtractionResult as a page frame on the host's current page.
    Returns (page_frame, ConvertResult).
    """
    on_progress = on_progress or _noop_progress
    on_progress("parsing", 0, "Preparing import...")

    ctx.framer_aware = is_framer_import(result, ctx)
    tokens = enhance_framer_tokens(result.tokens) if ctx.framer_aware else result.tokens

    on_progress("creating-styles", 0, "Creating design tokens...")
    ctx.style_map = await create_all_styles(tokens, ctx, on_progress)

    component_map = await prepare_components(result, ctx, on_progress)

    page_frame = ctx.host.create_frame()
    page_frame.name = import_name(result)
    page_frame.resize(max(1, result.viewport.width), max(1, result.viewport.height))
    page_frame.fills = []
    mark_import(page_frame, result)

    counts = await _convert_into(page_frame, result, ctx, on_progress, component_map)
    counts.token_count = len(tokens.colors) + len(tokens.typography) + len(tokens.effects)
    counts.style_count = ctx.style_map.count

    on_progress("finalizing", 1, "Done!")
    return page_frame, counts


async def convert_to_component(
    result: ExtractionResult,
    variant_label: str,
    ctx,
    on_progress=None,
    style_map=None,
) -> tuple:
    """
    Same pipeline as convert_to_canvas, wrapped in a component.
    A passed-in style_map is reused instead of running the token pass again.
    Returns (component, ConvertResult).
    """
    on_progress = on_progress or _noop_progress
    on_progress("parsing", 0, "Preparing import...")

    ctx.framer_aware = is_framer_import(result, ctx)
    tokens = enhance_framer_tokens(result.tokens) if ctx.framer_aware else result.tokens

    if style_map is not None:
        ctx.style_map = style_map
    else:
        on_progress("creating-styles", 0, "Creating design tokens...")
        ctx.style_map = await create_all_styles(tokens, ctx, on_progress)

    component_map = await prepare_components(result, ctx, on_progress)
    # A component cannot hold another component, so every match is an instance here
    component_map.place_representatives = False

    component = ctx.host.create_component()
    component.name = variant_label
    component.resize(max(1, result.viewport.width), max(1, result.viewport.height))
    component.fills = []
    mark_import(component, result)

    counts = await _convert_into(component, result, ctx, on_progress, component_map)
    counts.token_count = len(tokens.colors) + len(tokens.typography) + len(tokens.effects)
    counts.style_count = ctx.style_map.count
    return component, counts
