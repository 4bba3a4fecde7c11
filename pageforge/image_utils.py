"""Image byte helpers: data URIs, quality tiers, and remote fetch."""
from PIL import Image, UnidentifiedImageError
import base64
import binascii
import io
import re
from typing import Optional

import httpx

_DATA_URI = re.compile(r"^data:([^;,]+)?(;base64)?,(.*)$", re.DOTALL)

# Max output width per import quality tier (None keeps the original bytes)
QUALITY_MAX_WIDTH = {
    "low": 512,
    "medium": 1024,
    "high": None,
}


def decode_data_uri(data_uri: str) -> Optional[bytes]:
    """base64 data URI -> raw bytes, or None when it is not one."""
    match = _DATA_URI.match(data_uri or "")
    if not match or not match.group(2):
        return None
    try:
        return base64.b64decode(match.group(3), validate=False)
    except (binascii.Error, ValueError):
        return None


def image_mime_type(data: bytes) -> Optional[str]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        return None
    return Image.MIME.get(fmt) if fmt else None


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode()}"


def optimize_image(image_bytes: bytes, quality: str = "high") -> bytes:
    """
    Downscale an image for the requested import quality tier.
    High returns the bytes untouched; medium/low cap the width and re-encode.
    """
    max_width = QUALITY_MAX_WIDTH.get(quality)
    if max_width is None:
        return image_bytes

    img = Image.open(io.BytesIO(image_bytes))

    # Resize if wider than max_width
    w, h = img.size
    if w > max_width:
        ratio = max_width / w
        img = img.resize((max_width, max(1, int(h * ratio))), Image.LANCZOS)

    # Keep alpha as PNG, flatten everything else to JPEG
    buf = io.BytesIO()
    if img.mode in ("RGBA", "LA", "P"):
        img.convert("RGBA").save(buf, format="PNG", optimize=True)
    else:
        if img.mode != "RGB":
            img = img.convert("RGB")
        img.save(buf, format="JPEG", quality=85 if quality == "medium" else 70, optimize=True)
    return buf.getvalue()


async def fetch_image_bytes(url: str, timeout: float = 10.0) -> Optional[bytes]:
    """GET an image over HTTP. Any failure resolves to None."""
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            resp = await client.get(url)
    except httpx.HTTPError as e:
        print(f"  [images] Fetch failed for {url[:80]}: {e}")
        return None

    if resp.status_code != 200:
        print(f"  [images] Fetch returned HTTP {resp.status_code} for {url[:80]}")
        return None
    return resp.content
