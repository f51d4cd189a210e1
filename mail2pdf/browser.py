"""Lifecycle of the headless Chromium instance shared by one conversion call."""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, Error as PlaywrightError, async_playwright

from mail2pdf.errors import RenderError
from mail2pdf.settings import BrowserSettings


logger = logging.getLogger(__name__)

# Known fragments that indicate the Playwright browser executable is missing.
_MISSING_BROWSER_MARKERS: tuple[str, ...] = (
    "executable doesn't exist at",
    "playwright install",
    "download new browsers",
)


def is_missing_browser_error(exc: BaseException | None) -> bool:
    """Return ``True`` when *exc* suggests the Playwright browser is missing."""
    if exc is None:
        return False
    lowered = (str(exc) or "").lower()
    return any(marker in lowered for marker in _MISSING_BROWSER_MARKERS)


@asynccontextmanager
async def launch_browser(settings: Optional[BrowserSettings] = None) -> AsyncIterator[Browser]:
    """Launch Chromium and guarantee it is closed on every exit path."""
    settings = settings or BrowserSettings.from_env()

    async with async_playwright() as p:
        start = time.time()
        try:
            browser = await p.chromium.launch(**settings.launch_kwargs())
        except PlaywrightError as exc:
            if is_missing_browser_error(exc):
                raise RenderError(
                    "Chromium is not installed for Playwright; run 'playwright install chromium'"
                ) from exc
            raise RenderError(f"Failed to launch Chromium: {exc}") from exc
        logger.info("Browser launched in %.2fs", time.time() - start)

        try:
            yield browser
        finally:
            await browser.close()
            logger.info("Browser closed")


__all__ = ["is_missing_browser_error", "launch_browser"]
