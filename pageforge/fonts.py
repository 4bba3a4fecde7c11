"""
Font resolution against the canvas font catalog.

Text cannot be formatted until its font is loaded on the host, so every
text path goes through FontResolver.load() before touching characters.
"""

from pageforge.token_scanner import CANVAS_FONT_EQUIVALENTS

DEFAULT_FONT = {"family": "Inter", "style": "Regular"}
FALLBACK_FAMILIES = ("Inter", "Roboto", "Helvetica", "Arial")


def weight_to_style(weight: int) -> str:
    if weight <= 100:
        return "Thin"
    if weight <= 200:
        return "Extra Light"
    if weight <= 300:
        return "Light"
    if weight <= 400:
        return "Regular"
    if weight <= 500:
        return "Medium"
    if weight <= 600:
        return "Semi Bold"
    if weight <= 700:
        return "Bold"
    if weight <= 800:
        return "Extra Bold"
    return "Black"


class FontResolver:
    """Caches the host catalog for one conversion and picks the closest available font."""

    def __init__(self, host):
        self.host = host
        self._catalog = None

    async def catalog(self) -> dict[str, tuple[str, list[str]]]:
        # lowercased family -> (family as the host spells it, styles in catalog order)
        if self._catalog is None:
            catalog = {}
            for font in await self.host.list_available_fonts():
                entry = catalog.setdefault(font["family"].lower(), (font["family"], []))
                entry[1].append(font["style"])
            self._catalog = catalog
        return self._catalog

    async def resolve(self, family: str, weight: int) -> dict:
        catalog = await self.catalog()
        target_style = weight_to_style(weight)

        def pick(name: str, style: str):
            entry = catalog.get(name.lower())
            if not entry:
                return None
            for available in entry[1]:
                if available.lower() == style.lower():
                    return {"family": entry[0], "style": available}
            return None

        family = (family or "").strip()
        if family.lower() in catalog:
            exact = pick(family, target_style) or pick(family, "Regular")
            if exact:
                return exact
            actual, styles = catalog[family.lower()]
            if styles:
                return {"family": actual, "style": styles[0]}

        equivalent = CANVAS_FONT_EQUIVALENTS.get(family.lower())
        candidates = ([equivalent] if equivalent else []) + list(FALLBACK_FAMILIES)
        for fallback in candidates:
            font = pick(fallback, target_style) or pick(fallback, "Regular")
            if font:
                return font

        return dict(DEFAULT_FONT)

    async def load(self, family: str, weight: int) -> dict:
        """Resolve and register a font; the default font is the last resort."""
        font = await self.resolve(family, weight)
        try:
            await self.host.load_font(font)
        except Exception as e:
            print(f"  [fonts] Could not load {font['family']} {font['style']}: {e}")
            font = dict(DEFAULT_FONT)
            await self.host.load_font(font)
        return font
