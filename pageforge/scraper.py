"""
Playwright capture driver.

Loads a URL in headless Chromium, cleans the page up, then takes one
snapshot per requested viewport preset. Narrower presets are emulated
with a reversible max-width override; the override is always removed
before moving on, even when a capture fails.
"""

import time

from playwright.async_api import async_playwright

from pageforge.config import VIEWPORTS, get_settings
from pageforge.dom_snapshot import capture_snapshot, emulate_viewport, restore_viewport
from pageforge.extractor import extract_at_viewport, extract_page
from pageforge.models import MultiViewportResult, ViewportExtraction


async def load_page(page, url: str, settings):
    # Navigate: wait for network idle, fall back to DOM ready
    try:
        await page.goto(url, wait_until="networkidle", timeout=settings.page_load_timeout)
    except Exception:
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=settings.fallback_load_timeout)
            await page.wait_for_timeout(2000)
        except Exception as e2:
            raise Exception(f"Failed to load {url}: {e2}")


async def prepare_page(page):
    """Dismiss cookie banners and trigger lazy loading before capture."""

    # Dismiss cookie banners
    await page.evaluate('''() => {
        const btns = document.querySelectorAll(
            '[class*="cookie"] button, [id*="cookie"] button, ' +
            '[class*="consent"] button, [aria-label*="accept"], ' +
            '[aria-label*="Accept"], [class*="gdpr"] button'
        );
        for (const btn of btns) {
            if (btn.innerText.match(/accept|agree|got it|ok|close|dismiss/i)) {
                btn.click();
                break;
            }
        }
    }''')
    await page.wait_for_timeout(500)

    # Scroll to trigger lazy loading (capped to avoid infinite scroll pages)
    await page.evaluate('''async () => {
        await new Promise(resolve => {
            let total = 0;
            const distance = 400;
            const maxScroll = 15000;
            let iterations = 0;
            const maxIterations = 50;
            const timer = setInterval(() => {
                window.scrollBy(0, distance);
                total += distance;
                iterations++;
                if (total >= document.body.scrollHeight || total >= maxScroll || iterations >= maxIterations) {
                    clearInterval(timer);
                    window.scrollTo(0, 0);
                    resolve();
                }
            }, 100);
        });
    }''')

    # Force lazy images
    await page.evaluate('''() => {
        document.querySelectorAll('img[loading="lazy"]').forEach(img => {
            img.loading = 'eager';
            if (img.dataset.src) img.src = img.dataset.src;
            if (img.dataset.srcset) img.srcset = img.dataset.srcset;
        });
    }''')
    await page.wait_for_timeout(1000)


def make_page_fetcher(page):
    """fetch_bytes capability backed by the page's own request context (same cookies, same origin)."""

    async def fetch_bytes(url: str):
        try:
            resp = await page.request.get(url)
        except Exception as e:
            print(f"  [scrape] Image request failed for {url[:80]}: {e}")
            return None
        if not resp.ok:
            return None
        return await resp.body()

    return fetch_bytes


def resolve_viewports(viewport_keys) -> list[tuple[str, dict]]:
    keys = list(viewport_keys or ["desktop"])
    unknown = [key for key in keys if key not in VIEWPORTS]
    if unknown:
        raise ValueError(f"Unknown viewport preset(s): {', '.join(unknown)}")
    return [(key, VIEWPORTS[key]) for key in keys]


async def capture_viewports(page, presets: list[tuple[str, dict]], settings) -> list[ViewportExtraction]:
    fetch_bytes = make_page_fetcher(page)
    extractions = []
    for key, preset in presets:
        print(f"  [scrape] Capturing {preset['label']} ({preset['width']}px)")
        try:
            await emulate_viewport(page, preset["width"], settings.viewport_settle_ms)
            snapshot = await capture_snapshot(page, settings.max_node_depth, settings.hash_depth)
        finally:
            await restore_viewport(page, settings.viewport_settle_ms)

        result = await extract_at_viewport(
            snapshot, preset["width"], preset["height"], fetch_bytes, settings,
        )
        extractions.append(ViewportExtraction(
            viewport_key=key,
            label=preset["label"],
            width=preset["width"],
            height=preset["height"],
            result=result,
        ))
    return extractions


async def capture_page(url: str, viewport_keys=None, settings=None):
    """
    Capture a URL. One viewport -> ExtractionResult,
    several -> MultiViewportResult (widest preset drives the browser window).
    """
    settings = settings or get_settings()
    presets = resolve_viewports(viewport_keys)
    widest = max((preset for _, preset in presets), key=lambda p: p["width"])

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            context = await browser.new_context(
                viewport={"width": widest["width"], "height": widest["height"]},
                user_agent=settings.user_agent,
            )
            page = await context.new_page()

            await load_page(page, url, settings)
            try:
                await prepare_page(page)
            except Exception as e:
                print(f"  [scrape] Page preparation failed: {e}")

            if len(presets) == 1:
                snapshot = await capture_snapshot(page, settings.max_node_depth, settings.hash_depth)
                return await extract_page(snapshot, make_page_fetcher(page), settings)

            extractions = await capture_viewports(page, presets, settings)
            return MultiViewportResult(
                url=extractions[0].result.url or url,
                timestamp=int(time.time() * 1000),
                extractions=extractions,
            )
        finally:
            await browser.close()
