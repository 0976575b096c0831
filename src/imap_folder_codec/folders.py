"""Folder identifier adapter.

Turns raw LIST rows into :class:`FolderIdentifier` records whose display name
and path are decoded UTF-8 and whose wire name is always re-derived from the
decoded text, so the same folder compares equal however it arrived.
"""

from __future__ import annotations

import re
from collections import OrderedDict
from collections.abc import Iterable, Mapping
from typing import Any

from mcp.server.fastmcp.utilities.logging import get_logger

from .models import FolderIdentifier, FolderTrace, ImapListRow, MailFolder
from .tags import ImapUtf7String, Utf8String, as_utf8
from .utils.debug_formatter import hex_dump, to_safe_string
from .utils.imap_utf7 import decode_imap_utf7, encode_imap_utf7, ensure_decoded, looks_like_imap_utf7
from .utils.unicode import normalize_nfc, sort_key

logger = get_logger(__name__)

DEFAULT_DELIMITER = "/"

RowLike = ImapListRow | Mapping[str, Any]


def _canonical(value: str) -> Utf8String:
    return normalize_nfc(ensure_decoded(value))


def _coerce_row(row: RowLike) -> ImapListRow:
    if isinstance(row, ImapListRow):
        return row
    data = dict(row)
    if not data.get("delimiter"):
        data["delimiter"] = DEFAULT_DELIMITER
    if data.get("flags") is not None:
        data["flags"] = tuple(data["flags"])
    return ImapListRow.model_validate(data)


def create_folder_identifier(row: RowLike) -> FolderIdentifier:
    """Build the canonical identifier for one LIST row.

    ``name`` and ``path`` may arrive encoded or decoded. The display name and
    path are both the decoded, NFC-normalized name; the wire name is encoded
    from that and never copied from the input.
    """
    item = _coerce_row(row)
    decoded_name = _canonical(item.name)
    decoded_path = _canonical(item.path)
    if not decoded_name:
        decoded_name = decoded_path
    elif decoded_path and decoded_path != decoded_name:
        logger.debug(
            "LIST row name %s differs from path %s; using the name",
            to_safe_string(decoded_name),
            to_safe_string(decoded_path),
        )
    return FolderIdentifier(
        display_name=decoded_name,
        wire_name=encode_imap_utf7(decoded_name),
        path=decoded_name,
        delimiter=item.delimiter,
        special_use=item.special_use,
    )


def create_folder_identifier_from_path(
    path: str,
    delimiter: str = DEFAULT_DELIMITER,
    special_use: str | None = None,
) -> FolderIdentifier:
    """Identifier for a folder known only by its full path.

    Unlike LIST rows, the display name here is the last path segment.
    """
    normalized = _canonical(path)
    leaf = normalized.rsplit(delimiter, 1)[-1] or normalized
    return FolderIdentifier(
        display_name=as_utf8(leaf),
        wire_name=encode_imap_utf7(normalized),
        path=normalized,
        delimiter=delimiter,
        special_use=special_use,
    )


def to_wire_path(folder: FolderIdentifier) -> str:
    return str(folder.wire_name)


def to_storage_path(folder: FolderIdentifier) -> str:
    return str(folder.path)


def to_display_name(folder: FolderIdentifier) -> str:
    return str(folder.display_name)


def path_to_wire(display_path: str) -> ImapUtf7String:
    """Encode a storage/display path for use in an IMAP command."""
    return encode_imap_utf7(_canonical(display_path))


def wire_to_storage(wire_name: str) -> Utf8String:
    """Decode a wire name for storage, falling back to the raw text when malformed."""
    return _canonical(wire_name)


def convert_imap_list_to_folders(rows: Iterable[RowLike] | None) -> list[FolderIdentifier]:
    """Map LIST rows to identifiers, keeping order and duplicates."""
    if rows is None:
        return []
    return [create_folder_identifier(row) for row in rows]


def build_folder_tree(rows: Iterable[RowLike] | None) -> list[MailFolder]:
    """Nest LIST rows into a folder tree ordered by name.

    Rows sharing a path collapse into one node (the last row wins). A row
    whose parent is not listed becomes a root.
    """
    nodes: dict[str, MailFolder] = {}
    for row in rows or []:
        item = _coerce_row(row)
        path = _canonical(item.path or item.name)
        leaf = path.rsplit(item.delimiter, 1)[-1] or path
        nodes[path] = MailFolder(
            name=leaf,
            path=path,
            delimiter=item.delimiter,
            flags=list(item.flags),
            special_use=item.special_use or detect_special_use(path),
        )

    roots: list[MailFolder] = []
    for path, folder in nodes.items():
        parent_path, sep, _ = path.rpartition(folder.delimiter)
        parent = nodes.get(parent_path) if sep else None
        if parent is not None and parent is not folder:
            parent.children.append(folder)
        else:
            roots.append(folder)

    def _sort(folders: list[MailFolder]) -> None:
        folders.sort(key=lambda folder: sort_key(folder.name))
        for folder in folders:
            _sort(folder.children)

    _sort(roots)
    return roots


def is_same_path(a: str, b: str) -> bool:
    """Compare two folder paths regardless of how each one is encoded."""
    return _canonical(a) == _canonical(b)


def find_folder_by_path(folders: Iterable[FolderIdentifier], path: str) -> FolderIdentifier | None:
    target = _canonical(path)
    return next((folder for folder in folders if folder.path == target), None)


def find_mail_folder_by_path(folders: Iterable[MailFolder], path: str, recursive: bool = True) -> MailFolder | None:
    target = _canonical(path)
    pending = list(folders)
    while pending:
        folder = pending.pop(0)
        if folder.path == target:
            return folder
        if recursive:
            pending.extend(folder.children)
    return None


_SPECIAL_USE_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "inbox": (re.compile(r"^inbox$", re.IGNORECASE),),
    "sent": tuple(re.compile(p, re.IGNORECASE) for p in (r"sent", r"보낸", r"送信", r"已发送")),
    "drafts": tuple(re.compile(p, re.IGNORECASE) for p in (r"draft", r"임시", r"下書き", r"草稿")),
    "spam": tuple(re.compile(p, re.IGNORECASE) for p in (r"spam", r"junk", r"스팸", r"迷惑", r"垃圾邮件")),
    "trash": tuple(re.compile(p, re.IGNORECASE) for p in (r"trash", r"deleted", r"휴지통", r"ゴミ箱", r"垃圾")),
    "archive": tuple(re.compile(p, re.IGNORECASE) for p in (r"archive", r"보관", r"アーカイブ", r"归档")),
}


def detect_special_use(path: str) -> str | None:
    """Guess a special-use role from a decoded folder path."""
    for use, patterns in _SPECIAL_USE_PATTERNS.items():
        if any(pattern.search(path) for pattern in patterns):
            return use
    return None


def is_special_folder(path: str) -> bool:
    return detect_special_use(path) is not None


def debug_folder(folder: FolderIdentifier) -> str:
    lines = [
        "FolderIdentifier:",
        f'  display_name: "{to_safe_string(folder.display_name)}"',
        f'  wire_name: "{to_safe_string(folder.wire_name)}"',
        f'  path: "{to_safe_string(folder.path)}"',
        f'  delimiter: "{folder.delimiter}"',
        f"  special_use: {folder.special_use or 'none'}",
        f"  path.hex: {hex_dump(folder.path)}",
        f"  wire_name.hex: {hex_dump(folder.wire_name)}",
    ]
    return "\n".join(lines)


def trace_folder_conversion(value: str) -> FolderTrace:
    """Record each step of taking ``value`` to storage form and back to the wire."""
    decoded = ensure_decoded(value)
    normalized = normalize_nfc(decoded)
    reencoded = encode_imap_utf7(normalized)
    return FolderTrace(
        input=value,
        input_hex=hex_dump(value),
        looks_encoded=looks_like_imap_utf7(value),
        decoded=decoded,
        decoded_hex=hex_dump(decoded),
        normalized=normalized,
        normalized_hex=hex_dump(normalized),
        reencoded=reencoded,
        reencoded_hex=hex_dump(reencoded),
        round_trip_success=decode_imap_utf7(reencoded) == normalized,
    )


class FolderPathCache:
    """Bounded two-way cache of wire <-> storage path conversions.

    Create one per sync pass (or other call tree) and pass it along. There is
    no module-level instance.
    """

    def __init__(self, max_size: int = 1000) -> None:
        if max_size < 1:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._wire_to_storage: OrderedDict[str, str] = OrderedDict()
        self._storage_to_wire: OrderedDict[str, str] = OrderedDict()

    def _remember(self, cache: OrderedDict[str, str], key: str, value: str) -> None:
        cache[key] = value
        cache.move_to_end(key)
        while len(cache) > self.max_size:
            cache.popitem(last=False)

    def wire_to_storage(self, wire_name: str) -> str:
        cached = self._wire_to_storage.get(wire_name)
        if cached is not None:
            return cached
        storage = wire_to_storage(wire_name)
        self._remember(self._wire_to_storage, wire_name, storage)
        self._remember(self._storage_to_wire, storage, encode_imap_utf7(storage))
        return storage

    def storage_to_wire(self, storage_path: str) -> str:
        cached = self._storage_to_wire.get(storage_path)
        if cached is not None:
            return cached
        wire = path_to_wire(storage_path)
        self._remember(self._storage_to_wire, storage_path, wire)
        self._remember(self._wire_to_storage, wire, storage_path)
        return wire

    def clear(self) -> None:
        self._wire_to_storage.clear()
        self._storage_to_wire.clear()

    def stats(self) -> dict[str, int]:
        return {"wire_to_storage": len(self._wire_to_storage), "storage_to_wire": len(self._storage_to_wire)}
