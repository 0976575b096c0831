"""Encoded header records for RFC 2047 header fields."""

from __future__ import annotations

from email.errors import HeaderParseError
from email.header import decode_header, make_header

from ..models import EncodedHeader
from ..tags import as_utf8


def decode_encoded_header(raw: str) -> EncodedHeader:
    """Pair a raw header value with its decoded text and first declared charset.

    Decoding is left to :mod:`email.header`; a value it cannot handle is kept
    verbatim as the decoded text.
    """
    try:
        parts = decode_header(raw)
        decoded = str(make_header(parts)).strip()
    except (HeaderParseError, LookupError, UnicodeDecodeError):
        return EncodedHeader(raw=raw, decoded=as_utf8(raw), charset=None)
    charset = next((part_charset for _, part_charset in parts if part_charset), None)
    return EncodedHeader(raw=raw, decoded=as_utf8(decoded), charset=charset)
