"""Shared fixtures: sample messages and an in-process stand-in for Chromium."""

from __future__ import annotations

import asyncio
import base64
import re
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import pytest


ATTACHMENT_PAYLOAD = bytes(range(256)) * 6  # 1536 bytes
INLINE_PNG = base64.b64decode("iVBORw0KGgo=")

RICH_EML = (
    'From: "Alice Example" <alice@example.com>\r\n'
    'To: Bob <bob@example.com>, "Carol, C." <carol@example.com>\r\n'
    'Cc: dave@example.com\r\n'
    'Subject: =?utf-8?q?Gr=C3=BC=C3=9Fe?=\r\n'
    'Date: Tue, 01 Sep 2020 10:30:00 +0200\r\n'
    'X-Priority: 1\r\n'
    'MIME-Version: 1.0\r\n'
    'Content-Type: multipart/mixed; boundary="outer"\r\n'
    '\r\n'
    '--outer\r\n'
    'Content-Type: multipart/related; boundary="rel"\r\n'
    '\r\n'
    '--rel\r\n'
    'Content-Type: text/html; charset=utf-8\r\n'
    '\r\n'
    '<p>Hello <img src="cid:logo@example"></p>\r\n'
    '--rel\r\n'
    'Content-Type: image/png\r\n'
    'Content-ID: <logo@example>\r\n'
    'Content-Disposition: inline\r\n'
    'Content-Transfer-Encoding: base64\r\n'
    '\r\n'
    'iVBORw0KGgo=\r\n'
    '--rel--\r\n'
    '--outer\r\n'
    'Content-Type: application/octet-stream\r\n'
    'Content-Disposition: attachment\r\n'
    'Content-Transfer-Encoding: base64\r\n'
    '\r\n'
    + base64.encodebytes(ATTACHMENT_PAYLOAD).decode("ascii").replace("\n", "\r\n")
    + '--outer\r\n'
    'Content-Type: application/pdf; name="report.pdf"\r\n'
    'Content-Disposition: attachment; filename="report.pdf"\r\n'
    'Content-Transfer-Encoding: base64\r\n'
    '\r\n'
    'JVBERi0xLjQK\r\n'
    '--outer--\r\n'
).encode("utf-8")

PLAIN_EML = (
    "From: alice@example.com\n"
    "Subject: Plain\n"
    "Content-Type: text/plain; charset=utf-8\n"
    "\n"
    "Line one\n"
    "Line two & more\n"
    "\n"
    "See https://example.com/x?a=1\n"
).encode("utf-8")

NOT_AN_EML = b"this is not an email at all\njust some words\n"


def make_eml(subject: str, body: str = "Hello") -> bytes:
    return (
        "From: sender@example.com\n"
        "To: receiver@example.com\n"
        f"Subject: {subject}\n"
        "Date: Mon, 07 Sep 2020 12:00:00 +0000\n"
        "Content-Type: text/plain; charset=utf-8\n"
        "\n"
        f"{body}\n"
    ).encode("utf-8")


_TITLE_RE = re.compile(r"<title>(.*?)</title>", re.S)
_DELAY_RE = re.compile(r"delay=([0-9.]+)")


class FakePage:
    def __init__(self, browser: "FakeBrowser") -> None:
        self.browser = browser
        self.content: Optional[str] = None
        self.pdf_options: Dict[str, object] = {}
        self.closed = False

    async def set_content(self, html: str) -> None:
        self.content = html

    async def pdf(self, **options) -> bytes:
        self.pdf_options = options
        if self.browser.fail_pdf:
            from playwright.async_api import Error

            raise Error("Target crashed")
        match = _DELAY_RE.search(self.content or "")
        if match:
            await asyncio.sleep(float(match.group(1)))
        title = _TITLE_RE.search(self.content or "")
        return b"%PDF-1.4 " + (title.group(1) if title else "").encode("utf-8")

    async def close(self) -> None:
        if self.browser.fail_close:
            from playwright.async_api import Error

            raise Error("Target page, context or browser has been closed")
        self.closed = True


class FakeBrowser:
    def __init__(self, fail_pdf: bool = False, fail_close: bool = False) -> None:
        self.fail_pdf = fail_pdf
        self.fail_close = fail_close
        self.pages: List[FakePage] = []
        self.closed = False

    async def new_page(self) -> FakePage:
        if self.closed:
            raise RuntimeError("browser already closed")
        page = FakePage(self)
        self.pages.append(page)
        return page


class FakeLauncher:
    """Records every browser it hands out and whether it was closed."""

    def __init__(self, fail_pdf: bool = False) -> None:
        self.fail_pdf = fail_pdf
        self.browsers: List[FakeBrowser] = []

    @asynccontextmanager
    async def __call__(self, settings=None):
        browser = FakeBrowser(fail_pdf=self.fail_pdf)
        self.browsers.append(browser)
        try:
            yield browser
        finally:
            browser.closed = True


class FakeAssetLoader:
    def __init__(self, locales: Dict[str, Dict[str, str]], template: str) -> None:
        self.locales = locales
        self.template = template
        self.template_requests: List[str] = []
        self.locale_requests: List[str] = []

    def load_template(self, name: str) -> str:
        self.template_requests.append(name)
        return self.template

    def load_locale(self, language: str) -> Dict[str, str]:
        self.locale_requests.append(language)
        return self.locales[language]


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()
