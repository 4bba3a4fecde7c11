"""
Coarse site-builder classification from a page snapshot.

Ordered signal checks, first match wins: framer, webflow, wordpress,
else "unknown".
"""

from dataclasses import dataclass
from typing import Optional

from pageforge.token_scanner import iter_elements

FRAMER_ATTRIBUTES = ("data-framer-component-type", "data-framer-name", "data-framer-appear-id")
FRAMER_ASSET_HOST = "framerusercontent.com"
FRAMER_RUNTIME = "framer.com/m/"


@dataclass
class FrameworkInfo:
    framework: str = "unknown"
    is_framer_site: bool = False
    framer_project_id: Optional[str] = None


def has_framer_signals(snapshot: dict) -> bool:
    # Signal 1: __framer_metadata global
    if snapshot.get("framerGlobal"):
        return True

    # Signal 2: framer runtime or asset scripts
    for src in snapshot.get("scripts") or []:
        if FRAMER_RUNTIME in src or FRAMER_ASSET_HOST in src:
            return True

    # Signal 3: linked assets on framerusercontent.com
    for href in snapshot.get("links") or []:
        if FRAMER_ASSET_HOST in href:
            return True

    # Signal 4: data-framer-* attributes or framer-hosted images in the body
    body = snapshot.get("body")
    if body:
        for el in iter_elements(body):
            attrs = el.get("attributes") or {}
            if any(name in attrs for name in FRAMER_ATTRIBUTES):
                return True
            image = el.get("image") or {}
            if FRAMER_ASSET_HOST in (image.get("src") or "") or FRAMER_ASSET_HOST in attrs.get("src", ""):
                return True

    return False


def has_webflow_signals(snapshot: dict) -> bool:
    if any(cls.startswith("w-mod-") for cls in snapshot.get("htmlClasses") or []):
        return True
    html_attrs = snapshot.get("htmlAttributes") or {}
    if "data-wf-page" in html_attrs or "data-wf-site" in html_attrs:
        return True
    generator = (snapshot.get("generator") or "").lower()
    if "webflow" in generator:
        return True
    return any("webflow" in src for src in snapshot.get("scripts") or [])


def has_wordpress_signals(snapshot: dict) -> bool:
    generator = (snapshot.get("generator") or "").lower()
    if generator.startswith("wordpress"):
        return True
    assets = (snapshot.get("scripts") or []) + (snapshot.get("links") or [])
    return any("wp-content" in url or "wp-includes" in url for url in assets)


def detect_framework(snapshot: dict) -> FrameworkInfo:
    if has_framer_signals(snapshot):
        return FrameworkInfo(
            framework="framer",
            is_framer_site=True,
            framer_project_id=snapshot.get("framerProjectId"),
        )
    if has_webflow_signals(snapshot):
        return FrameworkInfo(framework="webflow")
    if has_wordpress_signals(snapshot):
        return FrameworkInfo(framework="wordpress")
    return FrameworkInfo()
