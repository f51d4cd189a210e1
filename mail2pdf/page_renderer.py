"""Rasterize a rendered HTML document to PDF in a Chromium page."""
from __future__ import annotations

import logging
import os
import time
from typing import Optional

from playwright.async_api import Browser, Error as PlaywrightError

from mail2pdf.errors import RenderError
from mail2pdf.settings import FOOTER_TEMPLATE, HEADER_TEMPLATE, PDF_MARGINS, PDF_PAGE_FORMAT


logger = logging.getLogger(__name__)


class PageRenderer:
    """Turns HTML into PDF bytes using pages of a shared browser.

    Every :meth:`render` call owns a fresh page and closes it before
    returning, so concurrent calls never share page state.
    """

    def __init__(self, browser: Browser) -> None:
        self.browser = browser

    async def render(self, html_content: str, out_path: Optional[str | os.PathLike] = None) -> bytes:
        start = time.time()
        try:
            page = await self.browser.new_page()
        except PlaywrightError as exc:
            raise RenderError(f"Failed to open browser page: {exc}") from exc

        try:
            logger.debug("Setting page content (%s characters)", len(html_content))
            await page.set_content(html_content)
            pdf = await page.pdf(
                path=os.fspath(out_path) if out_path is not None else None,
                format=PDF_PAGE_FORMAT,
                margin=dict(PDF_MARGINS),
                display_header_footer=True,
                header_template=HEADER_TEMPLATE,
                footer_template=FOOTER_TEMPLATE,
                print_background=True,
            )
        except PlaywrightError as exc:
            await self._close_quietly(page)
            raise RenderError(f"PDF generation failed: {exc}") from exc
        except BaseException:
            await self._close_quietly(page)
            raise

        try:
            await page.close()
        except PlaywrightError as exc:
            raise RenderError(f"Failed to close browser page: {exc}") from exc

        logger.info("PDF generated in %.2fs (%s bytes)", time.time() - start, len(pdf))
        if out_path is not None:
            logger.info("PDF written to %s", out_path)
        return pdf

    @staticmethod
    async def _close_quietly(page) -> None:
        # The render already failed; keep that error as the one the caller sees.
        try:
            await page.close()
        except PlaywrightError as exc:
            logger.warning("Failed to close page after render error: %s", exc)


__all__ = ["PageRenderer"]
