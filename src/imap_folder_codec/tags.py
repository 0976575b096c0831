"""Encoding-state tags for strings crossing the IMAP/UI/filesystem boundary.

The tags are ``typing.NewType`` wrappers: they cost nothing at runtime and let a
type checker stop a display name from being written to the wire (or a wire name
from being shown to a user). Tagging a value is a promise made by its producer;
nothing downstream re-validates it.
"""

from __future__ import annotations

from enum import Enum
from typing import NewType


class EncodingTag(str, Enum):
    """Known representations a mailbox string can be in."""

    UTF8 = "utf8"
    IMAP_UTF7 = "imap-utf7"
    FS_SAFE = "fs-safe"
    RAW = "raw"


Utf8String = NewType("Utf8String", str)
"""Decoded text used internally, in storage and in the UI."""

ImapUtf7String = NewType("ImapUtf7String", str)
"""RFC 3501 Modified UTF-7 text; only ever sent to or read from the server."""

FsSafeString = NewType("FsSafeString", str)
"""Text that can be used as a single path segment on the host filesystem."""

RawString = str
"""Untrusted external input whose representation is unknown."""


def as_utf8(value: str) -> Utf8String:
    """Mark ``value`` as decoded UTF-8 text."""
    return Utf8String(value)


def as_imap_utf7(value: str) -> ImapUtf7String:
    """Mark ``value`` as Modified UTF-7 wire text."""
    return ImapUtf7String(value)


def as_fs_safe(value: str) -> FsSafeString:
    """Mark ``value`` as filesystem-safe."""
    return FsSafeString(value)


def to_plain(value: Utf8String | ImapUtf7String | FsSafeString | str) -> str:
    """Drop the tag, e.g. before handing the value to a third-party library."""
    return str(value)


_TAG_CONSTRUCTORS = {
    EncodingTag.UTF8: as_utf8,
    EncodingTag.IMAP_UTF7: as_imap_utf7,
    EncodingTag.FS_SAFE: as_fs_safe,
    EncodingTag.RAW: str,
}


def tag_as(value: str, tag: EncodingTag | str):
    """Tag ``value`` with the representation named by ``tag``."""
    return _TAG_CONSTRUCTORS[EncodingTag(tag)](value)


# Multilingual corpus shared by the codec tests and by round-trip diagnostics.
ENCODING_TEST_STRINGS: dict[str, tuple[str, ...]] = {
    "korean": ("받은편지함", "보낸편지함", "잡다", "임시보관함", "휴지통", "한글 폴더", "테스트"),
    "japanese": ("受信トレイ", "送信済み", "フォルダ名", "テスト"),
    "chinese": ("收件箱", "已发送", "文件夹", "测试"),
    "arabic": ("البريد الوارد", "المرسلة"),
    "russian": ("Входящие", "Отправленные", "Тест"),
    "mixed": ("Inbox-받은편지함", "Test フォルダ 测试", "Почта-메일"),
    "special": ("Folder & Name", "Test+Plus", "With/Slash", "Has Space", "Under_Score"),
    "emoji": ("📧 Mail", "🎉 Fun", "📁 Folder"),
    "edge": ("", " ", "  ", "a", "가", "&", "&-", "&&"),
}
