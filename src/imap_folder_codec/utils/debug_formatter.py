"""Terminal-safe rendering of strings for logs and diagnostics.

Nothing here takes part in encoding or decoding; these helpers exist so that a
mailbox name can be logged without the console mangling it.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Literal

from mcp.server.fastmcp.utilities.logging import get_logger

from ..models import CharHexEntry, DebugStringInfo, EscapeMode
from .imap_utf7 import looks_like_imap_utf7

logger = get_logger(__name__)

LogLevel = Literal["debug", "info", "warn", "error"]

EMPTY_PLACEHOLDER = "<empty>"
ELLIPSIS = "..."


def _utf8(value: str) -> bytes:
    return value.encode("utf-8", errors="surrogatepass")


def _hex_escape(ch: str) -> str:
    return "".join(f"\\x{byte:02x}" for byte in _utf8(ch))


def _unicode_escape(ch: str) -> str:
    code = ord(ch)
    if code > 0xFFFF:
        return f"\\U{code:08x}"
    return f"\\u{code:04x}"


def to_safe_string(
    value: str,
    mode: EscapeMode | str = EscapeMode.MIXED,
    *,
    max_length: int = 200,
    show_control_chars: bool = True,
) -> str:
    """Render ``value`` for a log line.

    Printable ASCII is kept. Control characters become ``\\xNN`` (or vanish
    when ``show_control_chars`` is false). Other characters are kept as-is in
    ``mixed`` mode, written as ``\\uXXXX`` in ``unicode`` mode and as UTF-8
    ``\\xNN`` bytes in ``hex`` mode.
    """
    if not value:
        return EMPTY_PLACEHOLDER

    mode = EscapeMode(mode)
    pieces: list[str] = []
    size = 0
    for ch in value:
        code = ord(ch)
        if code < 0x20 or code == 0x7F:
            piece = f"\\x{code:02x}" if show_control_chars else ""
        elif code <= 0x7E:
            piece = ch
        elif mode is EscapeMode.HEX:
            piece = _hex_escape(ch)
        elif mode is EscapeMode.UNICODE:
            piece = _unicode_escape(ch)
        else:
            piece = ch
        if size + len(piece) > max_length:
            return "".join(pieces)[: max(max_length - len(ELLIPSIS), 0)] + ELLIPSIS
        pieces.append(piece)
        size += len(piece)
    return "".join(pieces)


def hex_dump(value: str) -> str:
    """Lowercase UTF-8 hex of ``value`` without separators."""
    return _utf8(value).hex()


def hex_dump_detailed(value: str) -> str:
    return _utf8(value).hex(" ")


def char_hex_dump(value: str) -> list[CharHexEntry]:
    return [CharHexEntry(char=ch, hex=hex_dump(ch), code=ord(ch)) for ch in value]


def debug_string(value: str) -> DebugStringInfo:
    """Collect length, byte and encoding facts about ``value``."""
    encoded = _utf8(value)
    return DebugStringInfo(
        value=to_safe_string(value),
        length=len(value),
        byte_length=len(encoded),
        hex=encoded.hex(),
        has_non_ascii=any(not ch.isascii() for ch in value),
        looks_encoded=looks_like_imap_utf7(value),
    )


def compare_strings(strings: dict[str, str]) -> dict[str, dict[str, Any]]:
    """Debug info for each labelled string plus the labels holding an equal value."""
    result: dict[str, dict[str, Any]] = {}
    for key, value in strings.items():
        info = debug_string(value).model_dump()
        info["equals"] = [other for other, candidate in strings.items() if other != key and candidate == value]
        result[key] = info
    return result


def _sanitize_log_data(data: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = to_safe_string(value)
            if not value.isascii():
                result[f"{key}_hex"] = hex_dump(value)
        elif isinstance(value, dict):
            result[key] = _sanitize_log_data(value)
        elif isinstance(value, (list, tuple)):
            result[key] = [to_safe_string(item) if isinstance(item, str) else item for item in value]
        else:
            result[key] = value
    return result


def format_log_message(level: LogLevel, message: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a structured log record whose strings are terminal-safe."""
    return {
        "level": level,
        "message": message,
        "data": _sanitize_log_data(data) if data else None,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


def to_json_log(level: LogLevel, message: str, data: dict[str, Any] | None = None) -> str:
    return json.dumps(format_log_message(level, message, data), ensure_ascii=False)


def _first_difference(a: str, b: str) -> str:
    for index in range(max(len(a), len(b))):
        left = a[index] if index < len(a) else None
        right = b[index] if index < len(b) else None
        if left != right:
            left_hex = hex_dump(left) if left is not None else "N/A"
            right_hex = hex_dump(right) if right is not None else "N/A"
            return f'index {index}: "{left or "<end>"}"({left_hex}) vs "{right or "<end>"}"({right_hex})'
    return "no difference found"


def log_string(label: str, value: str) -> None:
    info = debug_string(value)
    logger.debug(
        "[STRING DEBUG] %s: value=%r length=%d bytes=%d hex=%s non_ascii=%s looks_encoded=%s",
        label,
        info.value,
        info.length,
        info.byte_length,
        info.hex,
        info.has_non_ascii,
        info.looks_encoded,
    )


def log_compare(label_a: str, a: str, label_b: str, b: str) -> None:
    log_string(label_a, a)
    log_string(label_b, b)
    if a == b:
        logger.debug("[STRING COMPARE] %s == %s", label_a, label_b)
    else:
        logger.debug("[STRING COMPARE] %s != %s, first difference at %s", label_a, label_b, _first_difference(a, b))


def _char_category(code: int) -> str:
    if code < 0x20:
        return "CTRL"
    if code < 0x7F:
        return "ASCII"
    if code == 0x7F:
        return "DEL"
    if code < 0x100:
        return "Latin-1"
    if 0xAC00 <= code <= 0xD7AF:
        return "Hangul"
    if 0x3040 <= code <= 0x309F:
        return "Hiragana"
    if 0x30A0 <= code <= 0x30FF:
        return "Katakana"
    if 0x4E00 <= code <= 0x9FFF:
        return "CJK"
    if 0x1F300 <= code <= 0x1F9FF:
        return "Emoji"
    return "Other"


def visualize_encoding(value: str) -> str:
    """Multi-line per-character breakdown of ``value``."""
    lines = [
        f'Input: "{to_safe_string(value)}"',
        f"Length: {len(value)} chars, {len(_utf8(value))} bytes",
        "",
        "Character breakdown:",
        "-" * 60,
    ]
    for index, ch in enumerate(value):
        code = ord(ch)
        lines.append(
            f'[{index:>3}] "{to_safe_string(ch, EscapeMode.UNICODE)}" '
            f"U+{code:04X} ({hex_dump(ch)}) [{_char_category(code)}]"
        )
    return "\n".join(lines)
