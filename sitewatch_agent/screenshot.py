from __future__ import annotations

import logging
import time
from pathlib import Path

from playwright.async_api import async_playwright

from .settings import Settings

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1920, "height": 1080}

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--window-size=1920,1080",
]


def screenshot_filename(website_id: int, captured_at: float | None = None) -> str:
    ts = time.time() if captured_at is None else captured_at
    return f"{website_id}_{int(ts * 1000)}.png"


def ensure_screenshot_dir(settings: Settings) -> Path:
    path = Path(settings.screenshot_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


async def _render_to_file(url: str, path: Path, settings: Settings) -> None:
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=_LAUNCH_ARGS)
        try:
            context = await browser.new_context(
                viewport=VIEWPORT,
                user_agent=settings.user_agent,
                java_script_enabled=True,
            )
            try:
                page = await context.new_page()
                await page.goto(url, wait_until="domcontentloaded", timeout=settings.navigation_timeout_ms)
                # Give client-side apps a moment to paint.
                await page.wait_for_timeout(settings.settle_delay_ms)
                await page.screenshot(path=str(path), type="png", full_page=False)
            finally:
                await context.close()
        finally:
            await browser.close()


async def capture_screenshot(url: str, website_id: int, *, settings: Settings) -> str | None:
    """Render ``url`` in a fresh headless browser and store a 1920x1080 PNG.

    Returns the public path of the stored image, or None when anything along
    the way fails (browser launch, navigation timeout, page errors, disk).
    The browser never outlives the call.
    """
    filename = screenshot_filename(website_id)
    try:
        target = ensure_screenshot_dir(settings) / filename
        await _render_to_file(url, target, settings)
    except Exception as e:
        logger.warning("Screenshot error for %s: %s", url, e)
        return None
    return f"{settings.screenshot_url_prefix}/{filename}"
