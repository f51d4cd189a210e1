"""Read raw ``.eml`` input and decode it into a :class:`ParsedMail`."""

from __future__ import annotations

import asyncio
import email
import html
import inspect
import logging
import os
import re
from datetime import datetime, timezone
from email import errors as email_errors
from email.header import decode_header
from email.message import Message
from email.policy import default
from email.utils import getaddresses, parseaddr, parsedate_to_datetime
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, Union

from mail2pdf.errors import InputReadError, ParseError
from mail2pdf.models import Address, AddressList, AttachmentRef, ParsedMail


logger = logging.getLogger(__name__)

EmlInput = Union[str, os.PathLike, bytes, bytearray, memoryview, Any]

# Structural defects that leave the multipart tree unusable.
FATAL_DEFECTS = (
    email_errors.NoBoundaryInMultipartDefect,
    email_errors.StartBoundaryNotFoundDefect,
    email_errors.MultipartInvariantViolationDefect,
)

_URL_RE = re.compile(r'(https?://[^\s<>"\']+)', re.IGNORECASE)
_PARAGRAPH_SPLIT_RE = re.compile(r'\n\s*\n')
_FALLBACK_ENCODINGS = ("utf-8", "cp1252", "latin-1")
_FOLD_RE = re.compile(r'\r?\n[ \t]+')


async def read_input(source: EmlInput) -> bytes:
    """Return the raw bytes of *source*.

    Paths and sync streams are read in a worker thread so the event loop
    keeps running. Buffers are copied, and async streams (awaitable
    ``read()`` or async iterables of chunks) are drained fully into memory.
    """
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise InputReadError(f"Cannot read email file '{path}': {exc}") from exc
        logger.debug("Read %s bytes from %s", len(data), path)
        return data

    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)

    if hasattr(source, "read"):
        try:
            if inspect.iscoroutinefunction(source.read):
                data = await source.read()
            else:
                data = await asyncio.to_thread(source.read)
                if inspect.isawaitable(data):
                    data = await data
        except OSError as exc:
            raise InputReadError(f"Cannot read email stream: {exc}") from exc
        return _as_bytes(data)

    if hasattr(source, "__aiter__"):
        chunks: List[bytes] = []
        try:
            async for chunk in source:
                chunks.append(_as_bytes(chunk))
        except OSError as exc:
            raise InputReadError(f"Cannot read email stream: {exc}") from exc
        return b"".join(chunks)

    raise TypeError(
        f"Unsupported email input of type {type(source).__name__}; "
        "expected a path, a bytes buffer or a binary stream"
    )


def _as_bytes(data: Any) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def safe_decode_header(value) -> str:
    if value is None:
        return ""
    if not isinstance(value, (str, bytes)):
        value = str(value)
    try:
        parts = decode_header(value)
    except email_errors.HeaderParseError:
        return str(value).strip()

    out: List[str] = []
    for chunk, enc in parts:
        if isinstance(chunk, bytes):
            try:
                out.append(chunk.decode(enc or 'utf-8', errors='replace'))
            except LookupError:
                out.append(chunk.decode('utf-8', errors='replace'))
        else:
            out.append(chunk)
    return ''.join(out).strip()


def _raw_header(msg: Message, name: str) -> str:
    """Unparsed text of the first *name* header, unfolded and decoded."""
    for key, value in msg.raw_items():
        if key.lower() != name.lower():
            continue
        if isinstance(value, str):
            # 8-bit header bytes arrive as surrogate escapes.
            value = value.encode('utf-8', 'surrogateescape').decode('utf-8', 'replace')
        return safe_decode_header(_FOLD_RE.sub(' ', str(value)))
    return ''


def _parse_address_list(msg: Message, name: str) -> Optional[AddressList]:
    raw = msg.get(name)
    if raw is None:
        return None

    candidate = safe_decode_header(raw)
    pairs: List[Tuple[str, str]] = []
    for display, addr in getaddresses([candidate]) if candidate else ():
        display = (display or '').strip()
        addr = (addr or '').strip()
        if display or addr:
            pairs.append((display, addr))

    if not pairs and candidate:
        fallback_display, fallback_addr = parseaddr(candidate)
        if fallback_display or fallback_addr:
            pairs.append((fallback_display.strip(), fallback_addr.strip()))

    if not pairs:
        # Nothing parseable: show the header as it was sent.
        original = _raw_header(msg, name)
        if not original:
            return None
        pairs.append((original, ''))

    return AddressList(tuple(Address(name=d, address=a) for d, a in pairs))


def _parse_date(msg: Message) -> Optional[datetime]:
    header = msg.get('Date')
    if header is None:
        return None

    parsed = getattr(header, 'datetime', None)
    if parsed is None:
        try:
            parsed = parsedate_to_datetime(str(header))
        except (TypeError, ValueError, IndexError):
            logger.warning("Unparseable Date header: %r", str(header))
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_priority(msg: Message) -> str:
    x_priority = msg.get('X-Priority')
    if x_priority:
        match = re.match(r'\s*(\d)', str(x_priority))
        if match:
            level = int(match.group(1))
            if level < 3:
                return 'high'
            if level > 3:
                return 'low'
            return 'normal'

    for name in ('X-MSMail-Priority', 'Importance'):
        value = str(msg.get(name) or '').strip().lower()
        if value in ('high', 'urgent'):
            return 'high'
        if value in ('low', 'non-urgent'):
            return 'low'

    return 'normal'


def get_part_content(part: Message) -> str:
    """Decoded text of a text/* part, tolerating bogus charsets."""
    try:
        content = part.get_content()
        if isinstance(content, str):
            return content
    except (LookupError, UnicodeDecodeError, KeyError) as exc:
        logger.debug("get_content failed (%s); decoding payload manually", exc)

    payload = part.get_payload(decode=True) or b""
    charset = part.get_content_charset()
    for enc in ((charset,) if charset else ()) + _FALLBACK_ENCODINGS:
        try:
            return payload.decode(enc)
        except (UnicodeDecodeError, LookupError):
            continue
    return payload.decode("utf-8", errors="replace")


def _iter_leaves(part: Message, is_root: bool = True) -> Iterator[Message]:
    # Embedded messages are attachments; do not descend into them.
    if not is_root and part.get_content_type() == 'message/rfc822':
        yield part
        return
    if part.is_multipart():
        for sub in part.get_payload():
            yield from _iter_leaves(sub, is_root=False)
        return
    yield part


def _part_size(part: Message) -> int:
    if part.get_content_type() == 'message/rfc822':
        payload = part.get_payload()
        if isinstance(payload, list) and payload:
            return len(payload[0].as_bytes())
    data = part.get_payload(decode=True)
    return len(data) if data else 0


def _attachment_ref(part: Message) -> AttachmentRef:
    content_id = part.get('Content-ID')
    if content_id:
        content_id = str(content_id).strip().strip('<>') or None

    disposition = part.get_content_disposition()
    if not disposition:
        disposition = 'inline' if content_id else 'attachment'

    filename = part.get_filename()
    return AttachmentRef(
        filename=safe_decode_header(filename) if filename else None,
        size=_part_size(part),
        content_type=part.get_content_type(),
        content_disposition=disposition,
        content_id=content_id,
    )


def text_to_html(text: str) -> str:
    """Render plain text as HTML paragraphs with line breaks and live links."""
    paragraphs = []
    for block in _PARAGRAPH_SPLIT_RE.split(text.replace('\r\n', '\n').strip('\n')):
        escaped = html.escape(block, quote=False)
        linked = _URL_RE.sub(r'<a href="\1">\1</a>', escaped)
        paragraphs.append('<p>' + linked.replace('\n', '<br/>') + '</p>')
    return '\n'.join(paragraphs)


def _check_defects(msg: Message) -> None:
    for part in msg.walk():
        for defect in getattr(part, 'defects', ()):
            if isinstance(defect, FATAL_DEFECTS):
                raise ParseError(f"Malformed MIME structure: {type(defect).__name__}")


def parse_mail(raw: bytes) -> ParsedMail:
    """Decode raw MIME bytes into a :class:`ParsedMail`."""
    if not raw or not raw.strip():
        raise ParseError("Email input is empty")

    try:
        msg = email.message_from_bytes(raw, policy=default)
    except Exception as exc:
        raise ParseError(f"Cannot parse email: {exc}") from exc

    if not msg.keys():
        raise ParseError("No MIME headers found in email input")
    _check_defects(msg)

    html_parts: List[str] = []
    text_parts: List[str] = []
    attachments: List[AttachmentRef] = []

    try:
        for part in _iter_leaves(msg):
            ctype = part.get_content_type()
            is_body = (
                ctype in ('text/html', 'text/plain')
                and part.get_content_disposition() != 'attachment'
                and not part.get_filename()
            )
            if is_body:
                target = html_parts if ctype == 'text/html' else text_parts
                target.append(get_part_content(part))
            else:
                attachments.append(_attachment_ref(part))

        subject = msg.get('Subject')
        text = '\n'.join(text_parts) if text_parts else None
        mail = ParsedMail(
            subject=safe_decode_header(subject) if subject is not None else None,
            from_=_parse_address_list(msg, 'From'),
            to=_parse_address_list(msg, 'To'),
            cc=_parse_address_list(msg, 'Cc'),
            bcc=_parse_address_list(msg, 'Bcc'),
            date=_parse_date(msg),
            priority=_parse_priority(msg),
            html='\n'.join(html_parts) if html_parts else None,
            text=text,
            text_as_html=text_to_html(text) if text is not None else None,
            attachments=tuple(attachments),
        )
    except (
        email_errors.MessageError,
        LookupError,  # IndexError from the header value parser
        AttributeError,
        ValueError,
        TypeError,
    ) as exc:
        raise ParseError(f"Cannot decode email: {exc}") from exc

    logger.info(
        "Parsed email: Subject='%s', html_body=%s, attachments=%s",
        mail.subject,
        mail.html is not None,
        len(mail.attachments),
    )
    return mail


async def decode_mail(source: EmlInput) -> ParsedMail:
    """Read *source* fully and decode it."""
    raw = await read_input(source)
    return parse_mail(raw)


__all__ = [
    "EmlInput",
    "decode_mail",
    "get_part_content",
    "parse_mail",
    "read_input",
    "safe_decode_header",
    "text_to_html",
]
