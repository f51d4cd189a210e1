"""Tests for reading and decoding raw .eml input."""

from __future__ import annotations

import io
import threading
from datetime import datetime, timezone

import pytest

from conftest import INLINE_PNG, NOT_AN_EML, PLAIN_EML, RICH_EML
from mail2pdf.errors import InputReadError, ParseError
from mail2pdf.mail_decoder import parse_mail, read_input, text_to_html


def test_rich_message_headers() -> None:
    """Encoded subjects, address lists, dates and priority are decoded."""

    mail = parse_mail(RICH_EML)

    assert mail.subject == "Grüße"
    assert mail.from_.text == "Alice Example <alice@example.com>"
    assert mail.to.text == "Bob <bob@example.com>, Carol, C. <carol@example.com>"
    assert [a.address for a in mail.to] == ["bob@example.com", "carol@example.com"]
    assert mail.cc.text == "dave@example.com"
    assert mail.bcc is None
    assert mail.date == datetime(2020, 9, 1, 8, 30, tzinfo=timezone.utc)
    assert mail.priority == "high"


def test_rich_message_body_and_attachments() -> None:
    """The HTML body is kept and every non-body leaf becomes an attachment ref."""

    mail = parse_mail(RICH_EML)

    assert mail.html is not None
    assert 'src="cid:logo@example"' in mail.html
    assert mail.text is None

    inline, unnamed, report = mail.attachments
    assert inline.content_disposition == "inline"
    assert inline.content_id == "logo@example"
    assert inline.size == len(INLINE_PNG)

    assert unnamed.filename is None
    assert unnamed.content_disposition == "attachment"
    assert unnamed.size == 1536

    assert report.filename == "report.pdf"
    assert report.content_type == "application/pdf"
    assert report.size == len(b"%PDF-1.4\n")


def test_plain_text_message_is_converted_to_html() -> None:
    """Plain bodies get an HTML rendition; missing headers stay None."""

    mail = parse_mail(PLAIN_EML)

    assert mail.html is None
    assert "Line two & more" in mail.text
    assert mail.text_as_html.startswith("<p>Line one<br/>Line two &amp; more</p>")
    assert '<a href="https://example.com/x?a=1">' in mail.text_as_html
    assert mail.to is None
    assert mail.cc is None
    assert mail.date is None
    assert mail.priority == "normal"
    assert mail.attachments == ()


def test_text_to_html_escapes_markup() -> None:
    assert text_to_html("<b>hi</b>") == "<p>&lt;b&gt;hi&lt;/b&gt;</p>"


def test_missing_subject_is_none() -> None:
    mail = parse_mail(b"From: a@example.com\n\nbody\n")

    assert mail.subject is None
    assert mail.text == "body\n"


@pytest.mark.parametrize(
    "headers, expected",
    [
        ("X-Priority: 5 (Lowest)\n", "low"),
        ("X-Priority: 3\n", "normal"),
        ("Importance: High\n", "high"),
        ("X-MSMail-Priority: Low\n", "low"),
    ],
)
def test_priority_headers(headers: str, expected: str) -> None:
    raw = ("From: a@example.com\n" + headers + "\nbody\n").encode("ascii")

    assert parse_mail(raw).priority == expected


@pytest.mark.parametrize(
    "raw",
    [
        b"",
        b"   \n",
        NOT_AN_EML,
        b"Subject: x\nContent-Type: multipart/mixed\n\nno boundary here\n",
        b'Subject: x\nContent-Type: multipart/mixed; boundary="b"\n\nnever starts\n',
        b'From: a@example.com\nTo: "\n\nbody\n',
    ],
)
def test_malformed_input_raises_parse_error(raw: bytes) -> None:
    with pytest.raises(ParseError):
        parse_mail(raw)


@pytest.mark.asyncio
async def test_read_input_from_path(tmp_path) -> None:
    path = tmp_path / "message.eml"
    path.write_bytes(PLAIN_EML)

    assert await read_input(str(path)) == PLAIN_EML
    assert await read_input(path) == PLAIN_EML


@pytest.mark.asyncio
async def test_read_input_missing_path(tmp_path) -> None:
    with pytest.raises(InputReadError):
        await read_input(tmp_path / "missing.eml")


@pytest.mark.asyncio
async def test_read_input_buffers_and_streams() -> None:
    async def chunks():
        yield PLAIN_EML[:10]
        yield PLAIN_EML[10:]

    assert await read_input(bytearray(PLAIN_EML)) == PLAIN_EML
    assert await read_input(io.BytesIO(PLAIN_EML)) == PLAIN_EML
    assert await read_input(chunks()) == PLAIN_EML


@pytest.mark.asyncio
async def test_read_input_rejects_unknown_types() -> None:
    with pytest.raises(TypeError):
        await read_input(42)


@pytest.mark.parametrize("value", ["a@b@c", "<<<>>>"])
def test_unparseable_address_keeps_header_text(value: str) -> None:
    raw = f"From: a@example.com\nTo: {value}\n\nbody\n".encode("ascii")

    mail = parse_mail(raw)

    assert mail.to.text == value


@pytest.mark.asyncio
async def test_sync_stream_is_read_off_the_event_loop() -> None:
    loop_thread = threading.get_ident()

    class Stream(io.BytesIO):
        def read(self, *args):
            self.reader_thread = threading.get_ident()
            return super().read(*args)

    stream = Stream(PLAIN_EML)

    assert await read_input(stream) == PLAIN_EML
    assert stream.reader_thread != loop_thread


@pytest.mark.asyncio
async def test_read_input_async_stream_and_read_errors() -> None:
    class AsyncStream:
        async def read(self) -> bytes:
            return PLAIN_EML

    class BrokenStream:
        def read(self) -> bytes:
            raise OSError("device not ready")

    assert await read_input(AsyncStream()) == PLAIN_EML
    with pytest.raises(InputReadError):
        await read_input(BrokenStream())
