"""Map a :class:`ParsedMail` onto the flat variables the template consumes."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from mail2pdf.models import AddressList, ParsedMail


UNNAMED_ATTACHMENT = "<unnamed>"
BYTE_UNITS = ("B", "kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")


def pretty_bytes(size: int) -> str:
    """Human readable size in SI units with three significant digits.

    >>> pretty_bytes(1536)
    '1.54 kB'
    """
    if size < 0:
        return "-" + pretty_bytes(-size)
    if size < 1:
        return f"{size:g} B"

    exponent = min(int(math.log10(size) // 3), len(BYTE_UNITS) - 1)
    value = size / 1000 ** exponent
    digits = 2 - int(math.floor(math.log10(value)))
    value = round(value, digits)
    return f"{value:g} {BYTE_UNITS[exponent]}"


def merge_locales(requested: Mapping[str, str], fallback: Mapping[str, str]) -> Dict[str, str]:
    """Requested-language labels with per-key fallback to the baseline table."""
    return {**fallback, **requested}


def _address_text(addresses: Optional[AddressList]) -> Optional[str]:
    if not addresses:
        return None
    return addresses.text or None


def _iso_date(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_view_model(
    mail: ParsedMail,
    i18n: Mapping[str, str],
    i18n_fallback: Mapping[str, str],
) -> Dict[str, Any]:
    labels = merge_locales(i18n, i18n_fallback)

    attachments: List[Dict[str, Any]] = [
        {
            "filename": a.filename or UNNAMED_ATTACHMENT,
            "size": a.size,
            "pretty_size": pretty_bytes(a.size),
            "content_type": a.content_type,
        }
        for a in mail.attachments
        if a.content_disposition == "attachment"
    ]

    priority = mail.priority
    return {
        "subject": mail.subject,
        "has_html_body": mail.html is not None,
        "body": mail.html if mail.html is not None else mail.text_as_html,
        "from_": _address_text(mail.from_),
        "date": _iso_date(mail.date),
        "to": _address_text(mail.to),
        "cc": _address_text(mail.cc),
        "bcc": _address_text(mail.bcc),
        "priority": priority,
        "priority_label": labels.get(f"priority_{priority}", priority) if priority else None,
        "attachments": attachments,
        "i18n": labels,
    }


__all__ = ["UNNAMED_ATTACHMENT", "build_view_model", "merge_locales", "pretty_bytes"]
