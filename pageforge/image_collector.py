"""
Image sources for snapshot elements.

Handles <img>/<picture> sources and CSS background-image url(...).
Small same-origin raster images are inlined as data URIs; inlining
failures are never fatal, the URL is simply kept on its own.
"""

import re
from typing import Awaitable, Callable, Optional
from urllib.parse import urljoin, urlparse

from pageforge.image_utils import image_mime_type, to_data_uri

BACKGROUND_URL = re.compile(r"""url\(["']?([^"')]+)["']?\)""")

FetchBytes = Callable[[str], Awaitable[Optional[bytes]]]


def is_same_origin(url: str, page_url: str) -> bool:
    if not page_url:
        return False
    absolute = urlparse(urljoin(page_url, url))
    page = urlparse(page_url)
    return (absolute.scheme, absolute.netloc) == (page.scheme, page.netloc)


def background_image_url(background_image: Optional[str], page_url: str = "") -> Optional[str]:
    if not background_image or background_image == "none":
        return None
    match = BACKGROUND_URL.search(background_image)
    if not match:
        return None
    return urljoin(page_url, match.group(1)) if page_url else match.group(1)


async def try_inline_image(
    url: str,
    natural_width: int,
    natural_height: int,
    page_url: str,
    fetch_bytes: Optional[FetchBytes],
    max_inline_size: int = 100_000,
) -> Optional[str]:
    """data URI for a small same-origin image, else None."""
    if fetch_bytes is None or not is_same_origin(url, page_url):
        return None

    # Decoded RGBA size is a cheap upper bound before downloading anything
    if natural_width * natural_height * 4 > max_inline_size * 10:
        return None

    try:
        data = await fetch_bytes(urljoin(page_url, url))
    except Exception as e:
        print(f"  [images] Inline fetch failed for {url[:80]}: {e}")
        return None

    if not data or len(data) > max_inline_size:
        return None

    mime_type = image_mime_type(data)
    if not mime_type:
        return None
    return to_data_uri(data, mime_type)


async def collect_image_data(
    element: dict,
    page_url: str,
    fetch_bytes: Optional[FetchBytes] = None,
    max_inline_size: int = 100_000,
) -> Optional[dict]:
    """
    {url, dataUri?, width?, height?} for an element carrying an image, else None.
    """
    image = element.get("image")
    if image is not None:
        url = image.get("src") or ""
        if not url:
            return None
        if url.startswith("data:"):
            return {"url": url, "dataUri": url}

        width = int(image.get("naturalWidth") or 0)
        height = int(image.get("naturalHeight") or 0)
        data_uri = await try_inline_image(url, width, height, page_url, fetch_bytes, max_inline_size)
        return {
            "url": url,
            "dataUri": data_uri,
            "width": width or None,
            "height": height or None,
        }

    bg_url = background_image_url((element.get("styles") or {}).get("backgroundImage"), page_url)
    if bg_url:
        return {"url": bg_url}

    return None
