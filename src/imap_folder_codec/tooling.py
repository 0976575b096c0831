"""Pydantic models describing tool inputs and outputs for MCP tools."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .models import DebugStringInfo, StringAnalysis, Utf7Analysis


def _nullable_string_field(*, description: str, examples: list[str] | None = None) -> Any:
    """Helper to declare nullable string fields with custom schema metadata."""
    return Field(
        default=None,
        description=description,
        examples=examples,
        json_schema_extra={"nullable": True},
    )


class FolderRowInput(BaseModel):
    """One LIST row as supplied by an IMAP client."""

    model_config = ConfigDict(
        title="folder row",
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"name": "INBOX", "path": "INBOX", "delimiter": "/", "specialUse": "\\Inbox"},
                {"name": "&x6Gy5A-", "path": "&x6Gy5A-", "delimiter": "/"},
            ]
        },
    )

    name: str = Field(default="", description="Mailbox name, encoded or decoded.")
    path: str = Field(default="", description="Mailbox path, encoded or decoded.")
    delimiter: str | None = _nullable_string_field(description="Hierarchy delimiter; the configured default if omitted.")
    special_use: str | None = Field(
        default=None,
        alias="specialUse",
        description="Special-use attribute reported by the server.",
        json_schema_extra={"nullable": True},
    )
    flags: list[str] = Field(default_factory=list, description="Mailbox attributes.")


class FolderConversion(BaseModel):
    """Result of converting a single mailbox name."""

    input: str = Field(description="Value as received.")
    success: bool = Field(description="False when the value could not be converted.")
    decoded: str | None = _nullable_string_field(description="Decoded UTF-8 name.")
    encoded: str | None = _nullable_string_field(description="Modified UTF-7 wire name.")
    looks_encoded: bool = Field(description="True when the input looked Modified UTF-7 encoded.")
    error: str | None = _nullable_string_field(description="Reason for a failed conversion.")


class FolderItem(BaseModel):
    """A folder with every representation a client may need."""

    display_name: str = Field(description="Decoded name for display.")
    wire_name: str = Field(description="Modified UTF-7 name for IMAP commands. Never show this to users.")
    path: str = Field(description="Decoded path for storage and lookups.")
    delimiter: str = Field(description="Hierarchy delimiter.")
    special_use: str | None = _nullable_string_field(description="Special-use role.")
    filesystem_name: str = Field(description="Directory name to use when the folder is mirrored to disk.")


class FolderListResult(BaseModel):
    """Folders in the order the server listed them."""

    folders: list[FolderItem] = Field(default_factory=list, description="Converted folders.")
    count: int = Field(description="Number of folders returned.")
    skipped_lines: int = Field(default=0, description="Raw LIST lines that could not be parsed.")


class SamePathResult(BaseModel):
    """Whether two folder paths name the same mailbox."""

    same: bool
    canonical_a: str = Field(description="Decoded, NFC-normalized form of the first path.")
    canonical_b: str = Field(description="Decoded, NFC-normalized form of the second path.")


class FilenameSanitizeResult(BaseModel):
    """Filesystem-safe rendering of a name."""

    original: str
    sanitized: str
    valid: bool = Field(description="True when the original could be used unchanged.")
    ascii_alternative: str = Field(description="ASCII-only fallback name.")


class TextInspectResult(BaseModel):
    """Diagnostic breakdown of a string."""

    safe: str = Field(description="Terminal-safe rendering using the configured escape mode.")
    debug: DebugStringInfo
    unicode: StringAnalysis
    imap_utf7: Utf7Analysis


class ChosungMatchResult(BaseModel):
    """Korean initial-consonant search outcome."""

    target: str
    query: str
    chosung: str = Field(description="Initial consonants of the target.")
    matches: bool
