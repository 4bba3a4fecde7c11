import asyncio

import pageforge.variants as variants
from helpers import card, make_ctx, make_node, make_result, text_node

from pageforge.models import ColorToken, DesignTokens, MultiViewportResult, ViewportExtraction
from pageforge.variants import create_viewport_variants

TOKENS = DesignTokens(colors=[ColorToken(name="color/000000", value="rgb(0, 0, 0)")])


def extraction(key, label, width, height, root, title="Example"):
    return ViewportExtraction(
        viewport_key=key,
        label=label,
        width=width,
        height=height,
        result=make_result(root, title=title, tokens=TOKENS, width=width, height=height),
    )


def two_viewports(title="Example"):
    mobile_root = make_node(tag="body", bounds=(0, 0, 375, 812), children=[text_node("Hi")])
    desktop_root = make_node(tag="body", children=[text_node("Hi"), card(), card(x=320), card(x=640)])
    return MultiViewportResult(
        url="https://example.com/",
        timestamp=1700000000000,
        extractions=[
            extraction("mobile", "Mobile", 375, 812, mobile_root, title),
            extraction("desktop", "Desktop", 1440, 900, desktop_root, title),
        ],
    )


def test_two_viewports_make_a_component_set():
    ctx = make_ctx()
    component_set, result = asyncio.run(create_viewport_variants(two_viewports(), ctx))

    assert component_set.type == "COMPONENT_SET"
    assert component_set.name == "Example"
    assert [child.name for child in component_set.children] == ["Viewport=Desktop", "Viewport=Mobile"]
    desktop, mobile = component_set.children
    assert (desktop.width, mobile.width) == (1440, 375)
    assert mobile.x == 1440 + 40

    assert result.variant_count == 2
    assert result.total_node_count == 1 + 1 + 9 + 2
    assert result.total_component_count == 1
    assert result.to_dict()["variantCount"] == 2


def test_tokens_are_created_once(monkeypatch):
    calls = []
    real = variants.create_all_styles

    async def spy(tokens, ctx, on_progress=None):
        calls.append(tokens)
        return await real(tokens, ctx, on_progress)

    monkeypatch.setattr(variants, "create_all_styles", spy)
    ctx = make_ctx()
    asyncio.run(create_viewport_variants(two_viewports(), ctx))

    assert len(calls) == 1
    assert len(ctx.host.paint_styles) == 1


def test_untitled_set_is_named_after_host():
    component_set, _ = asyncio.run(create_viewport_variants(two_viewports(title=""), make_ctx()))
    assert component_set.name == "Import from example.com"


def test_progress_is_scoped_per_viewport():
    messages = []
    asyncio.run(create_viewport_variants(
        two_viewports(), make_ctx(),
        lambda phase, progress, message: messages.append((phase, progress, message)),
    ))
    assert any(message.startswith("[Mobile]") for _, _, message in messages)
    assert messages[-1][0] == "finalizing"
    assert all(0 <= progress <= 1 for _, progress, _ in messages)
