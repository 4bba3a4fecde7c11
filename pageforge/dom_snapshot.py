"""
Browser boundary: every DOM read happens in one page.evaluate() call.

The walker returns a plain JSON snapshot (computed styles, rects,
attributes, own text, pseudo-elements, image and SVG data, stylesheet
custom properties, head metadata and framework signals). All inference
on top of it runs in Python so it can be exercised without a browser.
"""

VIEWPORT_OVERRIDE_ID = "forge-viewport-override"

STYLE_KEYS = [
    "color", "backgroundColor", "borderColor",
    "fontFamily", "fontSize", "fontWeight", "fontStyle",
    "lineHeight", "letterSpacing", "textAlign", "textDecoration", "textTransform",
    "display", "position", "visibility",
    "flexDirection", "flexWrap", "flexGrow", "justifyContent", "alignItems", "alignSelf",
    "gap", "rowGap", "columnGap", "gridTemplateColumns",
    "paddingTop", "paddingRight", "paddingBottom", "paddingLeft",
    "width", "height", "minWidth", "maxWidth",
    "borderRadius", "borderTopLeftRadius", "borderTopRightRadius",
    "borderBottomRightRadius", "borderBottomLeftRadius",
    "borderWidth", "borderStyle", "boxShadow", "opacity", "overflow",
    "backgroundImage", "transform",
]


SNAPSHOT_JS = '''(opts) => {
    const maxDepth = opts.maxDepth;
    const styleKeys = opts.styleKeys;

    function pickStyles(cs) {
        const out = {};
        for (const key of styleKeys) out[key] = cs[key] || '';
        return out;
    }

    function attributesOf(el) {
        const out = {};
        for (const attr of el.attributes) out[attr.name] = attr.value;
        return out;
    }

    function pseudoOf(el, which) {
        const cs = getComputedStyle(el, which);
        const content = cs.content;
        if (!content || content === 'none' || content === 'normal') return null;
        return { content, styles: pickStyles(cs), width: cs.width, height: cs.height };
    }

    function walk(el, depth) {
        const cs = getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        const tag = el.tagName.toLowerCase();
        const node = {
            tag,
            styles: pickStyles(cs),
            rect: {
                x: rect.x + window.scrollX,
                y: rect.y + window.scrollY,
                width: rect.width,
                height: rect.height,
            },
            attributes: attributesOf(el),
            classList: Array.from(el.classList || []),
            childCount: el.children.length,
            children: [],
        };

        if (el.childNodes.length === 1 && el.childNodes[0].nodeType === Node.TEXT_NODE) {
            node.ownText = el.textContent;
        }

        if (tag === 'img' || tag === 'picture') {
            const img = tag === 'picture' ? el.querySelector('img') : el;
            if (img) {
                node.image = {
                    src: img.currentSrc || img.src || '',
                    naturalWidth: img.naturalWidth || 0,
                    naturalHeight: img.naturalHeight || 0,
                };
            }
        }

        if (tag === 'svg') {
            node.svg = new XMLSerializer().serializeToString(el);
            return node;
        }

        if (tag === 'input' || tag === 'textarea') {
            node.value = el.value || '';
        } else if (tag === 'select') {
            const selected = el.selectedOptions && el.selectedOptions[0];
            node.value = selected ? selected.text : '';
        }

        const before = pseudoOf(el, '::before');
        if (before) node.before = before;
        const after = pseudoOf(el, '::after');
        if (after) node.after = after;

        if (depth < maxDepth) {
            for (const child of el.children) node.children.push(walk(child, depth + 1));
        } else {
            for (const child of el.children) collectDeep(child);
        }
        return node;
    }

    // Past maxDepth only token-relevant data is kept, as a flat list
    const deepElements = [];
    function collectDeep(el) {
        const entry = { tag: el.tagName.toLowerCase(), styles: pickStyles(getComputedStyle(el)) };
        if (el.childNodes.length === 1 && el.childNodes[0].nodeType === Node.TEXT_NODE) {
            entry.ownText = el.textContent;
        }
        deepElements.push(entry);
        for (const child of el.children) collectDeep(child);
    }

    const stylesheets = [];
    for (const sheet of document.styleSheets) {
        const entry = { href: sheet.href || null, accessible: true, variables: [] };
        try {
            for (const rule of sheet.cssRules) {
                if (rule instanceof CSSStyleRule) {
                    for (let i = 0; i < rule.style.length; i++) {
                        const prop = rule.style[i];
                        if (prop.startsWith('--')) {
                            entry.variables.push([prop, rule.style.getPropertyValue(prop).trim()]);
                        }
                    }
                }
            }
        } catch (e) {
            // Cross-origin stylesheet
            entry.accessible = false;
        }
        stylesheets.push(entry);
    }

    const meta = (selector) => {
        const el = document.querySelector(selector);
        return el ? el.getAttribute('content') : null;
    };
    const icon = document.querySelector('link[rel~="icon"]');
    const framerMeta = window.__framer_metadata;

    return {
        url: window.location.href,
        origin: window.location.origin,
        viewport: { width: window.innerWidth, height: window.innerHeight },
        timestamp: Date.now(),
        title: document.title || '',
        description: meta('meta[name="description"]'),
        ogImage: meta('meta[property="og:image"]'),
        generator: meta('meta[name="generator"]'),
        favicon: icon ? icon.href : null,
        htmlClasses: Array.from(document.documentElement.classList),
        htmlAttributes: attributesOf(document.documentElement),
        scripts: Array.from(document.scripts).map(s => s.src).filter(Boolean),
        links: Array.from(document.querySelectorAll('link[href]')).map(l => l.href),
        framerGlobal: framerMeta !== undefined,
        framerProjectId: framerMeta && framerMeta.projectId ? String(framerMeta.projectId) : null,
        stylesheets,
        body: walk(document.body, 0),
        deepElements,
    };
}'''


EMULATE_VIEWPORT_JS = '''(opts) => {
    let el = document.getElementById(opts.id);
    if (!el) {
        el = document.createElement('style');
        el.id = opts.id;
        (document.head || document.documentElement).appendChild(el);
    }
    el.textContent =
        'html, body { max-width: ' + opts.width + 'px !important; overflow-x: hidden !important; }';
    return true;
}'''


RESTORE_VIEWPORT_JS = '''(id) => {
    const el = document.getElementById(id);
    if (!el) return false;
    el.remove();
    return true;
}'''


async def capture_snapshot(page, max_depth: int = 50, hash_depth: int = 5) -> dict:
    """
    Walk document.body into a snapshot dict.
    The walk goes hash_depth past max_depth so hashes near the limit still see their subtree.
    Elements below that are listed flat under deepElements (tag, styles, own text) for the token scan.
    """
    return await page.evaluate(SNAPSHOT_JS, {
        "maxDepth": max_depth + hash_depth,
        "styleKeys": STYLE_KEYS,
    })


async def emulate_viewport(page, width: int, settle_ms: int = 300):
    """Constrain the page to `width` px with a single reusable style element."""
    await page.evaluate(EMULATE_VIEWPORT_JS, {"id": VIEWPORT_OVERRIDE_ID, "width": int(width)})
    await page.wait_for_timeout(settle_ms)


async def restore_viewport(page, settle_ms: int = 300) -> bool:
    """Remove the width override. Returns False (and does nothing) when none is active."""
    removed = await page.evaluate(RESTORE_VIEWPORT_JS, VIEWPORT_OVERRIDE_ID)
    if removed:
        await page.wait_for_timeout(settle_ms)
    return bool(removed)
