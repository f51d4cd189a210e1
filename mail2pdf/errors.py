"""Exceptions raised while converting emails to PDF."""

from __future__ import annotations


class Mail2PdfError(Exception):
    """Base class for every conversion failure."""


class InputReadError(Mail2PdfError):
    """The referenced email file could not be read."""


class ParseError(Mail2PdfError):
    """The input is not a well-formed MIME message."""


class TemplateError(Mail2PdfError):
    """The bundled HTML template failed to compile or render."""


class RenderError(Mail2PdfError):
    """Chromium could not be launched, load the page, or produce a PDF."""


__all__ = [
    "InputReadError",
    "Mail2PdfError",
    "ParseError",
    "RenderError",
    "TemplateError",
]
