"""Records passed between the decode, view-model and render stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Address:
    name: str = ""
    address: str = ""

    @property
    def text(self) -> str:
        if self.name and self.address:
            return f"{self.name} <{self.address}>"
        return self.address or self.name


@dataclass(frozen=True)
class AddressList:
    """All mailboxes of a single address header, in header order."""

    addresses: Tuple[Address, ...] = ()

    @property
    def text(self) -> str:
        return ", ".join(a.text for a in self.addresses if a.text)

    def __len__(self) -> int:
        return len(self.addresses)

    def __iter__(self):
        return iter(self.addresses)


@dataclass(frozen=True)
class AttachmentRef:
    filename: Optional[str]
    size: int
    content_type: str = "application/octet-stream"
    content_disposition: str = "attachment"
    content_id: Optional[str] = None


@dataclass(frozen=True)
class ParsedMail:
    """Structured view of one decoded MIME message."""

    subject: Optional[str] = None
    from_: Optional[AddressList] = None
    to: Optional[AddressList] = None
    cc: Optional[AddressList] = None
    bcc: Optional[AddressList] = None
    date: Optional[datetime] = None
    priority: Optional[str] = None
    html: Optional[str] = None
    text: Optional[str] = None
    text_as_html: Optional[str] = None
    attachments: Tuple[AttachmentRef, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of one email in a settled batch: either a PDF or the error."""

    index: int
    pdf: Optional[bytes] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


__all__ = ["Address", "AddressList", "AttachmentRef", "ConversionResult", "ParsedMail"]
