"""Parsing of IMAP LIST responses into boundary rows.

The IMAP session itself lives elsewhere; this module only turns the untagged
``* LIST`` payload it hands over into :class:`ImapListRow` records. Names are
left exactly as the server sent them.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from mcp.server.fastmcp.utilities.logging import get_logger

from .models import ImapListRow

logger = get_logger(__name__)

_LIST_PATTERN = re.compile(
    r'^(?:\*\s+(?:X?LIST|LSUB)\s+)?\((?P<flags>[^)]*)\)\s+(?P<delimiter>"(?:[^"\\]|\\.)*"|NIL)\s+(?P<name>.+)$',
    re.IGNORECASE,
)
_LITERAL_MARKER = re.compile(r"\{\d+\}\s*$")

# RFC 6154 special-use attributes.
_SPECIAL_USE_FLAGS = {
    "\\all": "all",
    "\\archive": "archive",
    "\\drafts": "drafts",
    "\\flagged": "flagged",
    "\\junk": "spam",
    "\\sent": "sent",
    "\\trash": "trash",
}

DEFAULT_DELIMITER = "/"


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return re.sub(r"\\(.)", r"\1", value[1:-1])
    return value


def _special_use(flags: Iterable[str], name: str) -> str | None:
    for flag in flags:
        use = _SPECIAL_USE_FLAGS.get(flag.lower())
        if use:
            return use
    if name.upper() == "INBOX":
        return "inbox"
    return None


def _as_text(value: bytes | str) -> str:
    return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value


def _join_literal(entry: tuple) -> str:
    prefix = _as_text(entry[0])
    literal = _as_text(entry[1]) if len(entry) > 1 else ""
    quoted = literal.replace("\\", "\\\\").replace('"', '\\"')
    return f'{_LITERAL_MARKER.sub("", prefix)}"{quoted}"'


def parse_list_line(raw: bytes | str) -> ImapListRow | None:
    """Parse one LIST response line, or return None when it is not one."""
    line = _as_text(raw)
    match = _LIST_PATTERN.match(line.strip())
    if not match:
        logger.debug("Skipping unparsable LIST line: %r", line)
        return None
    flags = tuple(match.group("flags").split())
    delimiter_token = match.group("delimiter")
    delimiter = DEFAULT_DELIMITER if delimiter_token.upper() == "NIL" else _unquote(delimiter_token)
    path = _unquote(match.group("name"))
    return ImapListRow(
        name=path,
        path=path,
        delimiter=delimiter or DEFAULT_DELIMITER,
        special_use=_special_use(flags, path),
        flags=flags,
    )


def parse_list_response(data: Iterable[bytes | str | tuple | None] | None) -> list[ImapListRow]:
    """Parse an ``imaplib``-style LIST payload.

    ``None`` entries are skipped. Literal names arrive from ``imaplib`` as a
    ``(prefix, literal)`` tuple and are joined back into one line.
    """
    rows: list[ImapListRow] = []
    for entry in data or []:
        if entry is None:
            continue
        if isinstance(entry, tuple):
            entry = _join_literal(entry)
        row = parse_list_line(entry)
        if row is not None:
            rows.append(row)
    return rows
