"""Stdio entrypoint for the mailbox name encoding MCP server."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Annotated, Any, Iterable

import anyio
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.utilities.logging import get_logger
from pydantic import Field, ValidationError

from .config import CodecSettings, load_settings
from .folders import convert_imap_list_to_folders, is_same_path
from .imap_list import parse_list_line
from .models import FolderIdentifier, ImapListRow, SanitizeOptions
from .tooling import (
    ChosungMatchResult,
    FilenameSanitizeResult,
    FolderConversion,
    FolderItem,
    FolderListResult,
    FolderRowInput,
    SamePathResult,
    TextInspectResult,
)
from .utils.debug_formatter import debug_string, to_safe_string
from .utils.imap_utf7 import (
    analyze_string as analyze_utf7,
    ensure_decoded,
    looks_like_imap_utf7,
    safe_decode_imap_utf7,
    safe_encode_imap_utf7,
)
from .utils.path_sanitizer import (
    create_ascii_alternative,
    folder_path_to_directory_name,
    is_filename_valid,
    sanitize_filename,
)
from .utils.unicode import analyze_string as analyze_unicode, extract_chosung, match_chosung, normalize_nfc

logger = get_logger(__name__)


def _serialise_folder(folder: FolderIdentifier, options: SanitizeOptions) -> FolderItem:
    return FolderItem(
        display_name=folder.display_name,
        wire_name=folder.wire_name,
        path=folder.path,
        delimiter=folder.delimiter,
        special_use=folder.special_use,
        filesystem_name=folder_path_to_directory_name(folder.path, folder.delimiter, options),
    )


def _rows_from_input(rows: Iterable[FolderRowInput], default_delimiter: str) -> list[ImapListRow]:
    return [
        ImapListRow(
            name=row.name,
            path=row.path,
            delimiter=row.delimiter or default_delimiter,
            special_use=row.special_use,
            flags=tuple(row.flags),
        )
        for row in rows
    ]


def _build_folder_list(rows: list[ImapListRow], options: SanitizeOptions, skipped: int = 0) -> FolderListResult:
    folders = [_serialise_folder(folder, options) for folder in convert_imap_list_to_folders(rows)]
    return FolderListResult(folders=folders, count=len(folders), skipped_lines=skipped)


def _parse_lines(lines: Iterable[str]) -> tuple[list[ImapListRow], int]:
    rows: list[ImapListRow] = []
    skipped = 0
    for line in lines:
        row = parse_list_line(line)
        if row is None:
            skipped += 1
            continue
        rows.append(row)
    return rows, skipped


def _decode_folder_name(value: str) -> FolderConversion:
    looks_encoded = looks_like_imap_utf7(value)
    if not looks_encoded:
        return FolderConversion(input=value, success=True, decoded=value, encoded=None, looks_encoded=False)
    outcome = safe_decode_imap_utf7(value)
    if not outcome.success:
        logger.warning("Could not decode mailbox name %s: %s", to_safe_string(value), outcome.error)
        return FolderConversion(
            input=value,
            success=False,
            decoded=ensure_decoded(value),
            encoded=None,
            looks_encoded=True,
            error=outcome.error,
        )
    return FolderConversion(input=value, success=True, decoded=outcome.value, encoded=value, looks_encoded=True)


def _encode_folder_name(value: str) -> FolderConversion:
    outcome = safe_encode_imap_utf7(normalize_nfc(value))
    return FolderConversion(
        input=value,
        success=outcome.success,
        decoded=value,
        encoded=outcome.value,
        looks_encoded=looks_like_imap_utf7(value),
        error=outcome.error,
    )


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _server_options() -> dict[str, Any]:
    """FastMCP settings read from ``FASTMCP_*`` environment variables."""
    log_level = os.environ.get("FASTMCP_LOG_LEVEL", "INFO").upper()
    if log_level not in _LOG_LEVELS:
        print(f"[imap-folder-codec] Unsupported FASTMCP_LOG_LEVEL {log_level!r}; using INFO.", flush=True)
        log_level = "INFO"
    return {
        "host": os.environ.get("FASTMCP_HOST", "127.0.0.1"),
        "port": _coerce_int(os.environ.get("FASTMCP_PORT"), default=8000),
        "streamable_http_path": os.environ.get("FASTMCP_STREAMABLE_HTTP_PATH", "/mcp"),
        "log_level": log_level,
        "debug": os.environ.get("FASTMCP_DEBUG", "false").lower() in ("1", "true", "yes", "on"),
    }


def create_server(settings: CodecSettings) -> FastMCP:
    """Create a configured FastMCP application instance."""

    mcp = FastMCP("imap-folder-codec", **_server_options())

    sanitize_options = settings.sanitizer.to_options()

    async def _run(func, *args, **kwargs):
        return await anyio.to_thread.run_sync(func, *args, **kwargs)

    @mcp.tool(
        name="folder.decode",
        description="Decode an IMAP Modified UTF-7 mailbox name. Plain names are returned unchanged.",
        structured_output=True,
    )
    async def folder_decode(
        name: Annotated[str, Field(description="Mailbox name as received from the server.")],
    ) -> FolderConversion:
        return _decode_folder_name(name)

    @mcp.tool(
        name="folder.encode",
        description="Encode a display name as the Modified UTF-7 wire name used in IMAP commands.",
        structured_output=True,
    )
    async def folder_encode(
        name: Annotated[str, Field(description="Decoded folder name or path.")],
    ) -> FolderConversion:
        return _encode_folder_name(name)

    @mcp.tool(
        name="folder.normalize_list",
        description=(
            "Convert LIST rows (name/path/delimiter/specialUse) into folders with decoded display names, "
            "fresh wire names and filesystem-safe directory names. Order and duplicates are preserved."
        ),
        structured_output=True,
    )
    async def folder_normalize_list(
        rows: Annotated[list[FolderRowInput], Field(description="LIST rows in server order.")],
    ) -> FolderListResult:
        list_rows = _rows_from_input(rows, settings.default_delimiter)
        try:
            result = await _run(_build_folder_list, list_rows, sanitize_options)
        except ValidationError as exc:
            logger.exception("folder.normalize_list produced an invalid folder: %s\nrows=%r", exc, rows)
            raise
        logger.debug("folder.normalize_list returning %d folders", result.count)
        return result

    @mcp.tool(
        name="folder.parse_list",
        description="Parse raw IMAP LIST response lines and convert them into folders.",
        structured_output=True,
    )
    async def folder_parse_list(
        lines: Annotated[list[str], Field(description='Untagged LIST lines, e.g. (\\HasNoChildren) "/" "&x6Gy5A-".')],
    ) -> FolderListResult:
        list_rows, skipped = await _run(_parse_lines, lines)
        if skipped:
            logger.warning("folder.parse_list skipped %d unparsable lines", skipped)
        return await _run(_build_folder_list, list_rows, sanitize_options, skipped)

    @mcp.tool(
        name="folder.same_path",
        description="Check whether two folder paths name the same mailbox, whichever encoding each is in.",
        structured_output=True,
    )
    async def folder_same_path(
        a: Annotated[str, Field(description="First folder path.")],
        b: Annotated[str, Field(description="Second folder path.")],
    ) -> SamePathResult:
        return SamePathResult(
            same=is_same_path(a, b),
            canonical_a=normalize_nfc(ensure_decoded(a)),
            canonical_b=normalize_nfc(ensure_decoded(b)),
        )

    @mcp.tool(
        name="filename.sanitize",
        description="Make a name safe to use as a file or directory name on the local filesystem.",
        structured_output=True,
    )
    async def filename_sanitize(
        name: Annotated[str, Field(description="Arbitrary display name.")],
    ) -> FilenameSanitizeResult:
        return FilenameSanitizeResult(
            original=name,
            sanitized=sanitize_filename(name, sanitize_options),
            valid=is_filename_valid(name, sanitize_options),
            ascii_alternative=create_ascii_alternative(name).ascii,
        )

    @mcp.tool(
        name="text.inspect",
        description="Show bytes, code points, script and encoding state of a string for debugging.",
        structured_output=True,
    )
    async def text_inspect(
        value: Annotated[str, Field(description="Any string.")],
    ) -> TextInspectResult:
        return TextInspectResult(
            safe=to_safe_string(value, settings.debug_escape_mode, max_length=settings.debug_max_length),
            debug=debug_string(value),
            unicode=analyze_unicode(value),
            imap_utf7=analyze_utf7(value),
        )

    @mcp.tool(
        name="text.chosung_match",
        description="Korean initial-consonant search: does the query prefix the target's leading consonants?",
        structured_output=True,
    )
    async def text_chosung_match(
        target: Annotated[str, Field(description="Text to search, e.g. a folder name.")],
        query: Annotated[str, Field(description="Initial consonants typed so far, e.g. ㅂㅇ.")],
    ) -> ChosungMatchResult:
        return ChosungMatchResult(
            target=target,
            query=query,
            chosung=extract_chosung(target),
            matches=match_chosung(target, query),
        )

    return mcp


TRANSPORT_CHOICES = ("stdio", "streamable-http")


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the mailbox name encoding MCP server.")
    parser.add_argument(
        "--config",
        default=os.environ.get("MAIL_CODEC_CONFIG_FILE"),
        help="Path to an optional configuration YAML file.",
    )
    parser.add_argument(
        "--transport",
        choices=TRANSPORT_CHOICES,
        default=os.environ.get("FASTMCP_TRANSPORT", "stdio").lower(),
        help="MCP transport to run (default: FASTMCP_TRANSPORT or stdio).",
    )
    args = parser.parse_args(argv)
    if args.transport not in TRANSPORT_CHOICES:
        parser.error(f"unsupported FASTMCP_TRANSPORT {args.transport!r}")
    return args


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    settings = load_settings(Path(args.config) if args.config else None)
    server = create_server(settings)

    if args.transport == "streamable-http":
        print(
            f"[imap-folder-codec] Starting StreamableHTTP server on "
            f"{server.settings.host}:{server.settings.port} (path={server.settings.streamable_http_path})",
            flush=True,
        )
    else:
        print("[imap-folder-codec] Starting stdio transport", flush=True)
    server.run(transport=args.transport)


def _coerce_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"[imap-folder-codec] FASTMCP_PORT must be an integer, got {value!r}; using {default}", flush=True)
        return default


if __name__ == "__main__":
    main()
