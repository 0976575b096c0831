"""Filesystem-safe names for folders and files mirrored to local storage."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path, PurePath

from ..models import AsciiAlternative, SanitizeOptions
from ..tags import FsSafeString, as_fs_safe, as_utf8

FORBIDDEN_CHARS = frozenset(':*?"<>|/\\')
UNIX_FORBIDDEN_CHARS = frozenset("/\x00")

WINDOWS_RESERVED_NAMES = frozenset(
    {"CON", "PRN", "AUX", "NUL"}
    | {f"COM{index}" for index in range(1, 10)}
    | {f"LPT{index}" for index in range(1, 10)}
)

MAX_PATH_LENGTH_WINDOWS = 260
MAX_PATH_LENGTH_UNIX = 4096

DEFAULT_OPTIONS = SanitizeOptions()
_FOLDER_DEFAULT_NAME = "folder"


def _is_forbidden(ch: str, windows_compat: bool) -> bool:
    if windows_compat:
        return ch in FORBIDDEN_CHARS or ord(ch) < 0x20
    return ch in UNIX_FORBIDDEN_CHARS


def _is_reserved(name: str) -> bool:
    return name.split(".", 1)[0].upper() in WINDOWS_RESERVED_NAMES


def truncate_to_byte_length(value: str, max_bytes: int) -> str:
    """Cut ``value`` to at most ``max_bytes`` UTF-8 bytes without splitting a character."""
    encoded = value.encode("utf-8", errors="surrogatepass")
    if len(encoded) <= max_bytes:
        return value
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def sanitize_filename(name: str, options: SanitizeOptions | None = None) -> FsSafeString:
    """Make ``name`` usable as a single file or directory name.

    Forbidden characters are replaced one for one; Windows device names
    (``CON``, ``LPT1``, ...) get the replacement prepended. Non-ASCII text is
    left alone.

    >>> sanitize_filename("report:2024.pdf")
    'report_2024.pdf'
    >>> sanitize_filename("CON.txt")
    '_CON.txt'
    """
    opts = options or DEFAULT_OPTIONS
    if not name or not name.strip():
        return as_fs_safe(opts.default_name)

    sanitized = "".join(opts.replacement if _is_forbidden(ch, opts.windows_compat) else ch for ch in name)
    if opts.windows_compat:
        # Windows drops trailing dots and spaces on its own.
        sanitized = sanitized.rstrip(". ")
        if sanitized and _is_reserved(sanitized):
            sanitized = opts.replacement + sanitized
    sanitized = truncate_to_byte_length(sanitized, opts.max_length)
    if opts.windows_compat:
        sanitized = sanitized.rstrip(". ")

    if not sanitized:
        return as_fs_safe(opts.default_name)
    return as_fs_safe(sanitized)


def is_filename_valid(name: str, options: SanitizeOptions | None = None) -> bool:
    """True when :func:`sanitize_filename` would leave ``name`` unchanged."""
    return sanitize_filename(name, options) == name


def sanitize_foldername(name: str, options: SanitizeOptions | None = None) -> FsSafeString:
    opts = options or DEFAULT_OPTIONS
    if opts.default_name == DEFAULT_OPTIONS.default_name:
        opts = opts.model_copy(update={"default_name": _FOLDER_DEFAULT_NAME})
    return sanitize_filename(name, opts)


def sanitize_path(path: str, options: SanitizeOptions | None = None) -> FsSafeString:
    """Sanitize every segment of a ``/`` or ``\\`` separated relative path."""
    opts = options or DEFAULT_OPTIONS
    segments = [segment for segment in path.replace("\\", "/").split("/") if segment]
    result = "/".join(sanitize_filename(segment, opts) for segment in segments)
    limit = MAX_PATH_LENGTH_WINDOWS if opts.windows_compat else MAX_PATH_LENGTH_UNIX
    return as_fs_safe(truncate_to_byte_length(result, limit))


def is_path_safe(base_path: str | PurePath, target_path: str | PurePath) -> bool:
    """True when ``target_path`` resolved against ``base_path`` stays inside it."""
    base = Path(base_path).resolve()
    target = (base / target_path).resolve()
    return target == base or base in target.parents


def safe_path(base_path: str | PurePath, relative_path: str) -> FsSafeString | None:
    """Join ``relative_path`` onto ``base_path``, or None if it would escape."""
    cleaned = relative_path.replace("..", "").lstrip("/\\")
    if not is_path_safe(base_path, cleaned):
        return None
    return as_fs_safe(str(Path(base_path) / cleaned))


def extract_safe_filename(path: str) -> FsSafeString:
    return sanitize_filename(PurePath(path.replace("\\", "/")).name)


def email_id_to_filename(message_id: str, extension: str = ".eml") -> FsSafeString:
    """File name for a stored message; unusable Message-IDs are hashed."""
    cleaned = re.sub(r"^<|>$", "", message_id)
    if not is_filename_valid(cleaned):
        cleaned = hashlib.sha256(message_id.encode("utf-8")).hexdigest()[:32]
    return sanitize_filename(cleaned + extension)


def folder_path_to_directory_name(
    folder_path: str, delimiter: str = "/", options: SanitizeOptions | None = None
) -> FsSafeString:
    """Flatten a mailbox path into one directory name."""
    return sanitize_foldername(folder_path.replace(delimiter, "_"), options)


def create_ascii_alternative(filename: str) -> AsciiAlternative:
    """Pair ``filename`` with an ASCII-only name for legacy filesystems."""
    if filename.isascii():
        return AsciiAlternative(
            original=as_utf8(filename), ascii=sanitize_filename(filename), has_non_ascii=False
        )
    ascii_version = "".join(ch if ch.isascii() else f"_{ord(ch):x}_" for ch in filename)
    return AsciiAlternative(
        original=as_utf8(filename), ascii=sanitize_filename(ascii_version), has_non_ascii=True
    )
