"""
Framer-aware enhancements.

Framer pages carry author-provided names (`data-framer-name`) and
component boundaries (`data-framer-component-type`). When the import runs
in framer-aware mode these replace tag names for layers, add boundary
components at a lower threshold, clean hashed token names, and wrap
top-level named sections in canvas sections.
"""

import re
from typing import Optional

from pageforge.canvas import CapabilityUnavailable
from pageforge.models import BridgeNode, DesignTokens, DetectedComponent

TOKEN_HASH_PATTERN = re.compile(r"^--token-[a-z0-9]{3,8}-(.+)$", re.IGNORECASE)
FRAMER_PREFIX_PATTERN = re.compile(r"^--framer-(.+)$", re.IGNORECASE)
CATEGORY_PREFIXES = ("color", "spacing", "font", "border", "shadow", "radius")

FRAMER_NAME = "data-framer-name"
FRAMER_COMPONENT_TYPE = "data-framer-component-type"


# ============================================================
# Layer naming
# ============================================================

def clean_framer_name(raw: str) -> str:
    """'Hero Section__3k2j' -> 'Hero Section', 'framer-abc123' -> 'abc123'."""
    name = raw.strip()
    name = re.sub(r"__[a-z0-9]{3,}$", "", name, flags=re.IGNORECASE)
    name = re.sub(r"_[a-z0-9]{6,}$", "", name, flags=re.IGNORECASE)
    if re.match(r"^framer-[a-z0-9]+$", name, re.IGNORECASE):
        name = name[len("framer-"):]
    name = " ".join(name.split())
    return name or raw.strip()


def get_framer_name(node: BridgeNode) -> Optional[str]:
    attrs = node.data_attributes
    if not attrs:
        return None
    if attrs.get(FRAMER_NAME):
        return clean_framer_name(attrs[FRAMER_NAME])
    if attrs.get(FRAMER_COMPONENT_TYPE):
        return clean_framer_name(attrs[FRAMER_COMPONENT_TYPE])
    return None


def is_framer_section(node: BridgeNode) -> bool:
    if not node.children or not node.data_attributes:
        return False
    if node.data_attributes.get(FRAMER_NAME):
        return True
    component_type = (node.data_attributes.get(FRAMER_COMPONENT_TYPE) or "").lower()
    return "section" in component_type or "page" in component_type


# ============================================================
# Tokens
# ============================================================

def is_framer_variable(name: str) -> bool:
    return bool(TOKEN_HASH_PATTERN.match(name) or FRAMER_PREFIX_PATTERN.match(name))


def clean_framer_var_name(name: str) -> str:
    """--token-abc123-color-primary -> color-primary, --framer-font-family -> font-family."""
    match = TOKEN_HASH_PATTERN.match(name) or FRAMER_PREFIX_PATTERN.match(name)
    if match:
        return match.group(1)
    return name.lstrip("-")


def add_collection_prefix(name: str, token_type: str) -> str:
    if name.lower().startswith(CATEGORY_PREFIXES):
        return name
    if token_type == "color":
        return f"color/{name}"
    if token_type == "number":
        return f"spacing/{name}"
    return name


def enhance_framer_tokens(tokens: DesignTokens) -> DesignTokens:
    """Copy of tokens with Framer hashes stripped from variable and color names."""
    colors = []
    for color in tokens.colors:
        if color.css_variable and is_framer_variable(color.css_variable):
            cleaned = clean_framer_var_name(color.css_variable)
            # Style names are derived from css_variable downstream
            color = color.model_copy(update={"name": cleaned, "css_variable": f"--{cleaned}"})
        colors.append(color)

    variables = []
    for var in tokens.variables:
        if is_framer_variable(var.name):
            var = var.model_copy(update={
                "name": add_collection_prefix(clean_framer_var_name(var.name), var.type),
            })
        variables.append(var)

    return DesignTokens(
        colors=colors,
        typography=list(tokens.typography),
        effects=list(tokens.effects),
        variables=variables,
    )


# ============================================================
# Components
# ============================================================

def clean_component_type_name(type_name: str) -> str:
    name = re.sub(r"([a-z])([A-Z])", r"\1 \2", type_name)
    return re.sub(r"[-_]+", " ", name).strip()


def boundary_key(node: BridgeNode) -> Optional[str]:
    """Component key for a Framer boundary node, or None."""
    component_type = (node.data_attributes or {}).get(FRAMER_COMPONENT_TYPE)
    if component_type and node.type == "frame" and node.children:
        return f"framer-{component_type}"
    return None


def collect_framer_components(node: BridgeNode, groups: dict):
    component_type = (node.data_attributes or {}).get(FRAMER_COMPONENT_TYPE)
    if boundary_key(node):
        groups.setdefault(component_type, []).append(node)
    for child in node.children:
        collect_framer_components(child, groups)


def merge_components(hash_detected: list, framer_detected: list) -> list:
    """Boundary groups win over hash groups they overlap with; most instances first."""
    framer_hashes = {
        instance.component_hash
        for component in framer_detected
        for instance in component.instances
        if instance.component_hash
    }
    merged = [c for c in hash_detected if c.hash not in framer_hashes]
    merged.extend(framer_detected)
    return sorted(merged, key=lambda c: len(c.instances), reverse=True)


def enhance_framer_components(detected: list, root: BridgeNode, threshold: int = 2) -> list:
    groups = {}
    collect_framer_components(root, groups)

    framer_components = [
        DetectedComponent(
            hash=f"framer-{type_name}",
            name=clean_component_type_name(type_name),
            instances=instances,
            representative_node=instances[0],
        )
        for type_name, instances in groups.items()
        if len(instances) >= threshold
    ]
    return merge_components(detected, framer_components)


# ============================================================
# Sections
# ============================================================

def organize_framer_sections(container, root: BridgeNode) -> int:
    """
    Wrap each canvas child whose source node is a named Framer section in a
    canvas section at the same index. Skipped entirely when the child counts
    differ, since the pairing would be a guess.
    """
    canvas_children = list(container.children)
    bridge_children = root.children
    if len(canvas_children) != len(bridge_children):
        print(f"  [components] Section pass skipped: {len(canvas_children)} layers "
              f"vs {len(bridge_children)} source children")
        return 0

    count = 0
    for i in range(len(bridge_children) - 1, -1, -1):
        bridge_child = bridge_children[i]
        if not is_framer_section(bridge_child):
            continue
        name = get_framer_name(bridge_child)
        if not name:
            continue

        canvas_child = canvas_children[i]
        try:
            section = container.document.create_section()
        except CapabilityUnavailable as e:
            print(f"  [components] Sections unavailable: {e}")
            break
        section.name = name
        section.x = canvas_child.x
        section.y = canvas_child.y
        section.resize_sans_constraints(canvas_child.width, canvas_child.height)
        section.append_child(canvas_child)
        canvas_child.x = 0
        canvas_child.y = 0
        container.insert_child(i, section)
        count += 1

    return count
