from pydantic_settings import BaseSettings
from functools import lru_cache
import os


# Capture presets offered for multi-viewport extraction
VIEWPORTS = {
    "desktop": {"width": 1440, "height": 900, "label": "Desktop"},
    "laptop": {"width": 1280, "height": 800, "label": "Laptop"},
    "tablet": {"width": 768, "height": 1024, "label": "Tablet"},
    "mobile": {"width": 375, "height": 812, "label": "Mobile"},
}

DEFAULT_VIEWPORTS = ["desktop"]


class Settings(BaseSettings):
    # Browser capture
    page_load_timeout: int = 15000  # milliseconds
    fallback_load_timeout: int = 10000  # milliseconds
    viewport_width: int = 1440
    viewport_height: int = 900
    viewport_settle_ms: int = 300
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    )

    # Extraction
    max_node_depth: int = 50
    hash_depth: int = 5
    max_inline_image_size: int = 100_000  # bytes

    # Generation
    component_threshold: int = 3
    boundary_component_threshold: int = 2
    image_fetch_timeout: float = 10.0  # seconds
    max_color_styles: int = 200
    max_typography_styles: int = 200
    max_effect_styles: int = 200
    max_variables: int = 200

    # HTTP surface
    cors_origins: list[str] = ["*"]

    class Config:
        # Look for .env in the repo root (one level up from pageforge/)
        env_file = os.path.join(os.path.dirname(__file__), "..", ".env")
        env_file_encoding = "utf-8"
        env_prefix = "PAGEFORGE_"
        extra = "ignore"


@lru_cache()
def get_settings():
    return Settings()
