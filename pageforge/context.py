"""Per-conversion state threaded through the generator."""

from dataclasses import dataclass, field
from functools import partial
from typing import Optional

from pageforge.config import Settings, get_settings
from pageforge.fonts import FontResolver
from pageforge.image_collector import FetchBytes
from pageforge.image_utils import fetch_image_bytes
from pageforge.models import ImportSettings
from pageforge.naming import NameRegistry
from pageforge.tokens import StyleMap


@dataclass
class ConversionContext:
    """
    Everything one conversion run shares: the canvas host, import settings,
    the name registry, the style map and the font cache.
    Build a fresh one per run; nothing here is meant to outlive it.
    """
    host: object
    settings: ImportSettings = field(default_factory=ImportSettings)
    config: Settings = field(default_factory=get_settings)
    names: NameRegistry = field(default_factory=NameRegistry)
    style_map: StyleMap = field(default_factory=StyleMap)
    fonts: Optional[FontResolver] = None
    fetch_bytes: Optional[FetchBytes] = None
    framer_aware: bool = False

    def __post_init__(self):
        if self.fonts is None:
            self.fonts = FontResolver(self.host)
        if self.fetch_bytes is None:
            self.fetch_bytes = partial(fetch_image_bytes, timeout=self.config.image_fetch_timeout)
