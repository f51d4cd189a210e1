"""Convert one or many ``.eml`` messages into PDFs.

The pipeline per email is decode -> view model -> HTML template -> Chromium
PDF. One browser is launched per call and shared by every email of the call;
each email renders in its own page, all of them concurrently. Results keep the
order of the inputs.
"""
from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import (
    Any,
    AsyncContextManager,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Union,
)

from playwright.async_api import Browser

from mail2pdf.assets import (
    DEFAULT_LANGUAGE,
    DEFAULT_TEMPLATE,
    AssetLoader,
    PackageAssetLoader,
    resolve_language,
    resolve_template_name,
)
from mail2pdf.browser import launch_browser
from mail2pdf.mail_decoder import EmlInput, decode_mail
from mail2pdf.models import ConversionResult
from mail2pdf.page_renderer import PageRenderer
from mail2pdf.settings import BrowserSettings
from mail2pdf.template_renderer import TemplateRenderer
from mail2pdf.view_model import build_view_model


logger = logging.getLogger(__name__)

BrowserLauncher = Callable[[Optional[BrowserSettings]], AsyncContextManager[Browser]]


class _Job:
    """Assets shared by every email of one conversion call."""

    def __init__(
        self,
        language: Optional[str],
        template_name: Optional[str],
        asset_loader: Optional[AssetLoader],
    ) -> None:
        loader = asset_loader or PackageAssetLoader()
        language = resolve_language(language)
        template_name = resolve_template_name(template_name)

        self.i18n_fallback: Dict[str, str] = loader.load_locale(DEFAULT_LANGUAGE)
        self.i18n: Dict[str, str] = (
            self.i18n_fallback if language == DEFAULT_LANGUAGE else loader.load_locale(language)
        )
        self.template = TemplateRenderer(loader.load_template(template_name), template_name)

    async def convert(
        self,
        source: EmlInput,
        page_renderer: PageRenderer,
        out_path: Optional[Union[str, os.PathLike]] = None,
    ) -> bytes:
        mail = await decode_mail(source)
        view_model = build_view_model(mail, self.i18n, self.i18n_fallback)
        html_content = self.template.render(view_model)
        return await page_renderer.render(html_content, out_path)


def _as_list(eml: Union[EmlInput, Sequence[EmlInput]]) -> List[EmlInput]:
    if isinstance(eml, (list, tuple)):
        return list(eml)
    return [eml]


async def _run(
    emls: List[EmlInput],
    job: _Job,
    settings: Optional[BrowserSettings],
    launcher: BrowserLauncher,
    out_path: Optional[Union[str, os.PathLike]] = None,
) -> List[Any]:
    start = time.time()
    async with launcher(settings) as browser:
        page_renderer = PageRenderer(browser)
        # Every task settles before the browser is closed.
        results = await asyncio.gather(
            *(job.convert(e, page_renderer, out_path) for e in emls),
            return_exceptions=True,
        )
    logger.info("Converted %s email(s) in %.2fs", len(emls), time.time() - start)
    return results


async def mail2pdf(
    eml: Union[EmlInput, Sequence[EmlInput]],
    *,
    language: Optional[str] = DEFAULT_LANGUAGE,
    template_name: Optional[str] = DEFAULT_TEMPLATE,
    out_path: Optional[Union[str, os.PathLike]] = None,
    asset_loader: Optional[AssetLoader] = None,
    settings: Optional[BrowserSettings] = None,
    launcher: BrowserLauncher = launch_browser,
) -> Union[bytes, List[bytes]]:
    """Render emails in ``.eml`` format as PDFs.

    :param eml: a single email or a list of emails. Each one is a file path,
        a ``bytes`` buffer, or a binary stream with the ``.eml`` content.
    :param language: language of the PDF labels (``en`` or ``de``); unknown
        values fall back to ``en``, missing labels fall back per key.
    :param template_name: bundled template to use; only ``thunderbird``.
    :param out_path: also write the PDF to this path. Only valid when
        converting a single email.
    :returns: one ``bytes`` PDF for a single email, otherwise a list of PDFs in
        input order. If any email fails the whole call fails.
    """
    emls = _as_list(eml)
    if not emls:
        return []
    if out_path is not None and len(emls) != 1:
        raise ValueError("out_path is only supported when converting a single email")

    job = _Job(language, template_name, asset_loader)
    results = await _run(emls, job, settings, launcher, out_path)

    for index, result in enumerate(results):
        if isinstance(result, BaseException):
            logger.error("Conversion of email #%s failed: %s", index, result)
            raise result

    return results[0] if len(results) == 1 else list(results)


async def mail2pdf_settled(
    emls: Sequence[EmlInput],
    *,
    language: Optional[str] = DEFAULT_LANGUAGE,
    template_name: Optional[str] = DEFAULT_TEMPLATE,
    asset_loader: Optional[AssetLoader] = None,
    settings: Optional[BrowserSettings] = None,
    launcher: BrowserLauncher = launch_browser,
) -> List[ConversionResult]:
    """Like :func:`mail2pdf` but reports each email's success or error separately."""
    emls = list(emls)
    if not emls:
        return []

    job = _Job(language, template_name, asset_loader)
    results = await _run(emls, job, settings, launcher)

    settled: List[ConversionResult] = []
    for index, result in enumerate(results):
        if isinstance(result, BaseException):
            logger.warning("Conversion of email #%s failed: %s", index, result)
            settled.append(ConversionResult(index=index, error=result))
        else:
            settled.append(ConversionResult(index=index, pdf=result))
    return settled


def mail2pdf_sync(eml: Union[EmlInput, Sequence[EmlInput]], **options: Any) -> Union[bytes, List[bytes]]:
    """Blocking variant of :func:`mail2pdf` for callers without an event loop."""
    return asyncio.run(mail2pdf(eml, **options))


__all__ = ["BrowserLauncher", "mail2pdf", "mail2pdf_settled", "mail2pdf_sync"]
