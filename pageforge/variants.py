"""
Viewport variants: one component per captured viewport, combined into a
component set named after the page.

Tokens are created once, from the widest capture, and the resulting
style map is shared by every viewport pass.
"""

from dataclasses import dataclass

from pageforge.converter import convert_to_component, hostname
from pageforge.framer import enhance_framer_tokens
from pageforge.models import MultiViewportResult
from pageforge.tokens import create_all_styles

VARIANT_PROPERTY = "Viewport"


@dataclass
class VariantResult:
    variant_count: int = 0
    total_node_count: int = 0
    total_token_count: int = 0
    total_component_count: int = 0
    total_style_count: int = 0
    total_section_count: int = 0

    def to_dict(self) -> dict:
        return {
            "variantCount": self.variant_count,
            "totalNodeCount": self.total_node_count,
            "totalTokenCount": self.total_token_count,
            "totalComponentCount": self.total_component_count,
            "totalStyleCount": self.total_style_count,
            "totalSectionCount": self.total_section_count,
        }


async def create_viewport_variants(multi: MultiViewportResult, ctx, on_progress=None) -> tuple:
    """Returns (component_set, VariantResult)."""
    def report(phase, progress, message):
        if on_progress:
            on_progress(phase, progress, message)

    ordered = sorted(multi.extractions, key=lambda e: e.width, reverse=True)
    total = len(ordered)
    widest = ordered[0].result

    framer_aware = widest.metadata.is_framer_site and ctx.settings.framer_aware_mode
    tokens = enhance_framer_tokens(widest.tokens) if framer_aware else widest.tokens
    report("creating-styles", 0, "Creating design tokens...")
    shared_style_map = await create_all_styles(tokens, ctx, report)

    components = []
    totals = VariantResult()
    for i, extraction in enumerate(ordered):
        label = extraction.label
        report("creating-variants", i / total, f"Creating {label} variant ({extraction.width}px)...")

        def scoped(phase, progress, message, i=i, label=label):
            report(phase, (i + progress) / total, f"[{label}] {message}")

        component, counts = await convert_to_component(
            extraction.result, label, ctx, scoped, shared_style_map,
        )
        component.name = f"{VARIANT_PROPERTY}={label}"
        components.append(component)

        totals.total_node_count += counts.node_count
        totals.total_token_count += counts.token_count
        totals.total_component_count += counts.component_count
        totals.total_style_count += counts.style_count
        totals.total_section_count += counts.section_count

    report("creating-variants", 0.9, "Combining into component set...")
    component_set = ctx.host.combine_as_variants(components, ctx.host.current_page)
    component_set.name = widest.metadata.title or f"Import from {hostname(multi.url)}"
    totals.variant_count = len(components)

    print(f"  [variants] Combined {totals.variant_count} viewport variants into '{component_set.name}'")
    report("finalizing", 1, "Done!")
    return component_set, totals
