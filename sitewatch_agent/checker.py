from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence

from .certificate import inspect_certificate
from .models import CheckResult, WebsiteRecord
from .prober import probe_liveness
from .reconciler import reconcile
from .screenshot import capture_screenshot
from .settings import Settings

logger = logging.getLogger(__name__)


async def check_website(website: WebsiteRecord, *, settings: Settings) -> CheckResult:
    logger.info("Processing %s...", website.url)

    url = website.url.strip()
    # Independent probes; all three finish before reconciling.
    tasks = [
        asyncio.ensure_future(
            probe_liveness(url, timeout_s=settings.probe_timeout_s, user_agent=settings.user_agent)
        ),
        asyncio.ensure_future(inspect_certificate(url, timeout_s=settings.tls_timeout_s)),
        asyncio.ensure_future(capture_screenshot(url, website.id, settings=settings)),
    ]
    try:
        probe, certificate, screenshot_path = await asyncio.gather(*tasks)
    except Exception:
        # Don't leave a browser running behind a failed site.
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    if screenshot_path is not None and probe.status != "up":
        logger.info("Status override for %s: screenshot succeeded, marking as 'up' (probe said %s)", website.url, probe.status)

    return reconcile(website, probe, certificate, screenshot_path)


async def run_batch(websites: Sequence[WebsiteRecord], *, settings: Settings) -> list[CheckResult]:
    """Check every website, one after another, in the order given.

    Sites are deliberately not checked in parallel: each capture owns a whole
    browser process. The returned list lines up index-for-index with
    ``websites``.
    """
    if not websites:
        raise ValueError("No websites provided")

    t0 = time.perf_counter()
    results: list[CheckResult] = []
    for website in websites:
        results.append(await check_website(website, settings=settings))

    up = sum(1 for r in results if r.status == "up")
    logger.info(
        "Checked %d website(s) in %dms: %d up, %d down/error, %d screenshots",
        len(results),
        int((time.perf_counter() - t0) * 1000),
        up,
        len(results) - up,
        sum(1 for r in results if r.screenshot_path),
    )
    return results
