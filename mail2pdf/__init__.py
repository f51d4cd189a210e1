"""Render ``.eml`` emails as PDFs resembling Thunderbird's print output."""

from mail2pdf.converter import mail2pdf, mail2pdf_settled, mail2pdf_sync
from mail2pdf.errors import (
    InputReadError,
    Mail2PdfError,
    ParseError,
    RenderError,
    TemplateError,
)
from mail2pdf.models import ConversionResult

__version__ = "1.0.0"

__all__ = [
    "ConversionResult",
    "InputReadError",
    "Mail2PdfError",
    "ParseError",
    "RenderError",
    "TemplateError",
    "mail2pdf",
    "mail2pdf_settled",
    "mail2pdf_sync",
]
