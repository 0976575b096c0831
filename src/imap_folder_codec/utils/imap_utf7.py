"""Modified UTF-7 encoding of IMAP mailbox names (RFC 3501, section 5.1.3).

Printable US-ASCII other than ``&`` represents itself. Everything else is
written as UTF-16BE, base64 encoded with ``,`` in place of ``/`` and without
``=`` padding, between ``&`` and ``-``. A literal ``&`` is ``&-``.
"""

from __future__ import annotations

import base64
import binascii
import re

from mcp.server.fastmcp.utilities.logging import get_logger

from ..exceptions import MalformedEncodingError
from ..models import EncodingResult, Utf7Analysis
from ..tags import ImapUtf7String, Utf8String, as_imap_utf7, as_utf8

logger = get_logger(__name__)

SHIFT = "&"
UNSHIFT = "-"
_BASE64_ALPHABET = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+,")
_SHIFTED_RUN_PATTERN = re.compile(r"&[A-Za-z0-9+,]*-")


def _is_direct(ch: str) -> bool:
    return 0x20 <= ord(ch) <= 0x7E and ch != SHIFT


def _modified_base64(text: str) -> str:
    raw = text.encode("utf-16-be")
    return base64.b64encode(raw).decode("ascii").rstrip("=").replace("/", ",")


def _modified_unbase64(segment: str, *, original: str, position: int) -> str:
    padded = segment.replace(",", "/") + "=" * (-len(segment) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
    except binascii.Error as exc:
        raise MalformedEncodingError(
            f"Invalid modified base64 run at offset {position}: {exc}", original=original, position=position
        ) from exc
    if len(raw) % 2:
        raise MalformedEncodingError(
            f"Shifted run at offset {position} does not hold whole UTF-16 code units",
            original=original,
            position=position,
        )
    try:
        text = raw.decode("utf-16-be")
    except UnicodeDecodeError as exc:
        raise MalformedEncodingError(
            f"Unpaired surrogate in shifted run at offset {position}", original=original, position=position
        ) from exc
    # An encoder never shifts printable ASCII and never leaves stray pad bits.
    if any(0x20 <= ord(ch) <= 0x7E for ch in text):
        raise MalformedEncodingError(
            f"Shifted run at offset {position} holds printable ASCII", original=original, position=position
        )
    if _modified_base64(text) != segment:
        raise MalformedEncodingError(
            f"Shifted run at offset {position} is not canonically encoded", original=original, position=position
        )
    return text


def encode_imap_utf7(text: Utf8String | str) -> ImapUtf7String:
    """Encode decoded text as a Modified UTF-7 mailbox name."""
    res: list[str] = []
    buffer: list[str] = []

    def flush() -> None:
        if not buffer:
            return
        res.append(f"{SHIFT}{_modified_base64(''.join(buffer))}{UNSHIFT}")
        buffer.clear()

    for ch in text:
        if _is_direct(ch):
            flush()
            res.append(ch)
        elif ch == SHIFT:
            flush()
            res.append(SHIFT + UNSHIFT)
        else:
            buffer.append(ch)
    flush()
    return as_imap_utf7("".join(res))


def decode_imap_utf7(encoded: ImapUtf7String | str) -> Utf8String:
    """Decode a Modified UTF-7 mailbox name.

    A shifted run ends at the first character outside the modified base64
    alphabet; a ``-`` terminator is consumed, any other one is kept.

    Raises:
        MalformedEncodingError: on an unterminated run, a shift character that
            starts neither a run nor ``&-``, a run that does not decode to
            valid UTF-16, or a run no encoder would produce (printable ASCII
            inside it, or stray pad bits).
    """
    value = str(encoded)
    if SHIFT not in value:
        return as_utf8(value)

    result: list[str] = []
    i = 0
    length = len(value)
    while i < length:
        ch = value[i]
        if ch != SHIFT:
            result.append(ch)
            i += 1
            continue

        j = i + 1
        while j < length and value[j] in _BASE64_ALPHABET:
            j += 1
        if j == length:
            raise MalformedEncodingError(
                f"Unterminated shifted run starting at offset {i}", original=value, position=i
            )
        segment = value[i + 1 : j]
        if not segment:
            if value[j] != UNSHIFT:
                raise MalformedEncodingError(
                    f"Invalid character {value[j]!r} after shift at offset {i}", original=value, position=i
                )
            result.append(SHIFT)
            i = j + 1
            continue

        result.append(_modified_unbase64(segment, original=value, position=i))
        i = j + 1 if value[j] == UNSHIFT else j
    return as_utf8("".join(result))


def safe_decode_imap_utf7(encoded: str) -> EncodingResult[Utf8String]:
    """Decode without raising; failures are reported in the result."""
    try:
        decoded = decode_imap_utf7(encoded)
    except MalformedEncodingError as exc:
        return EncodingResult[Utf8String](success=False, error=str(exc), original=encoded)
    return EncodingResult[Utf8String](success=True, value=decoded, original=encoded)


def safe_encode_imap_utf7(decoded: str) -> EncodingResult[ImapUtf7String]:
    """Encode without raising; lone surrogates in ``decoded`` are reported as failures."""
    try:
        encoded = encode_imap_utf7(decoded)
    except UnicodeEncodeError as exc:
        return EncodingResult[ImapUtf7String](
            success=False, error=f"Text cannot be represented as UTF-16: {exc.reason}", original=decoded
        )
    return EncodingResult[ImapUtf7String](success=True, value=encoded, original=decoded)


def has_non_ascii(value: str) -> bool:
    """Return True when ``value`` holds anything outside printable ASCII."""
    return any(not 0x20 <= ord(ch) <= 0x7E for ch in value)


def verify_round_trip(original: str) -> bool:
    """Check that encoding then decoding gives ``original`` back."""
    try:
        return decode_imap_utf7(encode_imap_utf7(original)) == original
    except (MalformedEncodingError, UnicodeEncodeError):
        return False


def looks_like_imap_utf7(value: str) -> bool:
    """Guess whether ``value`` is Modified UTF-7 rather than decoded text.

    True when the string holds at least one ``&`` followed by modified base64
    characters and an explicit ``-``. Plain ASCII and CJK/Hangul text without
    ``&`` never match; ASCII that happens to fit the grammar (``&AB-``) does.
    """
    return bool(_SHIFTED_RUN_PATTERN.search(value))


def ensure_decoded(value: str) -> Utf8String:
    """Decode ``value`` if it looks encoded, otherwise return it unchanged.

    A string that looks encoded but fails to decode is returned as-is so that
    the folder is still shown under some name.
    """
    if not looks_like_imap_utf7(value):
        return as_utf8(value)
    outcome = safe_decode_imap_utf7(value)
    if outcome.success and outcome.value is not None:
        return outcome.value
    logger.debug("Keeping undecodable mailbox name %r: %s", value, outcome.error)
    return as_utf8(value)


def analyze_string(value: str) -> Utf7Analysis:
    """Describe the Modified UTF-7 state of ``value``."""
    looks_encoded = looks_like_imap_utf7(value)
    non_ascii = has_non_ascii(value)
    analysis = Utf7Analysis(
        original=value,
        length=len(value),
        has_non_ascii=non_ascii,
        looks_encoded=looks_encoded,
        hex_dump=value.encode("utf-8", errors="surrogatepass").hex(),
    )
    if looks_encoded:
        decoded = safe_decode_imap_utf7(value)
        if decoded.success:
            analysis.decoded = decoded.value
    if non_ascii:
        encoded = safe_encode_imap_utf7(value)
        if encoded.success:
            analysis.encoded = encoded.value
    return analysis
