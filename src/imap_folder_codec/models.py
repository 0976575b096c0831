"""Shared data models used by the mailbox text-encoding layer."""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .tags import FsSafeString, ImapUtf7String, Utf8String

T = TypeVar("T")


class ScriptClassification(str, Enum):
    """Dominant writing system of a string."""

    HANGUL = "hangul"
    JAPANESE = "japanese"
    CHINESE = "chinese"
    MIXED = "mixed"
    OTHER = "other"


class NormalizationForm(str, Enum):
    """Unicode normalization forms accepted by :func:`unicodedata.normalize`."""

    NFC = "NFC"
    NFD = "NFD"
    NFKC = "NFKC"
    NFKD = "NFKD"


class EscapeMode(str, Enum):
    """How the debug formatter renders non-ASCII characters."""

    MIXED = "mixed"
    UNICODE = "unicode"
    HEX = "hex"


class EncodingResult(BaseModel, Generic[T]):
    """Outcome of a conversion that must not raise across the library boundary."""

    model_config = ConfigDict(frozen=True)

    success: bool = Field(description="True when the conversion produced a value.")
    value: T | None = Field(default=None, description="Converted value on success.")
    error: str | None = Field(default=None, description="Failure reason when success is false.")
    original: str | None = Field(default=None, description="Input as received, kept for diagnostics.")


class FolderIdentifier(BaseModel):
    """Every representation of one mailbox, each meant for a single consumer."""

    model_config = ConfigDict(frozen=True)

    display_name: Utf8String = Field(description="Decoded name shown in the UI.")
    wire_name: ImapUtf7String = Field(description="Modified UTF-7 name sent to the IMAP server.")
    path: Utf8String = Field(description="Decoded path used for storage and lookups.")
    delimiter: str = Field(description="Server supplied hierarchy delimiter.")
    special_use: str | None = Field(default=None, description="Special-use role (inbox, sent, drafts, ...).")

    @field_validator("delimiter")
    @classmethod
    def _single_character(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("delimiter must be a single character")
        return value


class EncodedHeader(BaseModel):
    """An RFC 2047 header value next to its decoded text."""

    model_config = ConfigDict(frozen=True)

    raw: str = Field(description="Header value as it appeared in the message.")
    decoded: Utf8String = Field(description="Decoded header text.")
    charset: str | None = Field(default=None, description="First charset declared by an encoded word.")


class ImapListRow(BaseModel):
    """One mailbox as reported by an IMAP LIST response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(default="", description="Mailbox name, possibly still Modified UTF-7 encoded.")
    path: str = Field(default="", description="Full mailbox path, possibly still Modified UTF-7 encoded.")
    delimiter: str = Field(default="/", description="Hierarchy delimiter reported by the server.")
    special_use: str | None = Field(default=None, alias="specialUse", description="Special-use attribute.")
    flags: tuple[str, ...] = Field(default=(), description="Mailbox attributes from the LIST response.")


class MailFolder(BaseModel):
    """Folder tree node handed to the UI and storage layers."""

    name: str = Field(description="Decoded leaf display name.")
    path: str = Field(description="Decoded full path.")
    delimiter: str = Field(description="Hierarchy delimiter.")
    flags: list[str] = Field(default_factory=list, description="Mailbox attributes.")
    special_use: str | None = Field(default=None, description="Special-use role.")
    children: list[MailFolder] = Field(default_factory=list, description="Nested folders.")


class StringAnalysis(BaseModel):
    """Unicode properties of a string."""

    length: int = Field(description="Number of UTF-16 code units, as an IMAP server counts them.")
    char_count: int = Field(description="Number of code points.")
    byte_length: int = Field(description="UTF-8 byte length.")
    script: ScriptClassification
    has_hangul: bool
    has_cjk: bool
    has_emoji: bool
    is_normalized: bool = Field(description="True when the string is already NFC.")
    normalization_form: NormalizationForm | None = None


class Utf7Analysis(BaseModel):
    """Encoding state of a string with respect to Modified UTF-7."""

    original: str
    length: int
    has_non_ascii: bool
    looks_encoded: bool
    hex_dump: str
    decoded: str | None = None
    encoded: str | None = None


class DebugStringInfo(BaseModel):
    """Byte, character and encoding facts about a string, for logs."""

    value: str = Field(description="Terminal-safe rendering of the string.")
    length: int = Field(description="Number of code points.")
    byte_length: int = Field(description="UTF-8 byte length.")
    hex: str = Field(description="Lowercase UTF-8 hex dump without separators.")
    has_non_ascii: bool
    looks_encoded: bool = Field(description="True when the string looks Modified UTF-7 encoded.")


class CharHexEntry(BaseModel):
    """One character of a per-character hex dump."""

    char: str
    hex: str
    code: int


class FolderTrace(BaseModel):
    """Every intermediate value of a wire -> storage -> wire conversion."""

    input: str
    input_hex: str
    looks_encoded: bool
    decoded: str
    decoded_hex: str
    normalized: str
    normalized_hex: str
    reencoded: str
    reencoded_hex: str
    round_trip_success: bool


class SanitizeOptions(BaseModel):
    """Knobs for the filesystem-name sanitizer."""

    model_config = ConfigDict(frozen=True)

    replacement: str = Field(default="_", description="Substitute for forbidden characters.")
    windows_compat: bool = Field(default=True, description="Apply Windows naming rules as well.")
    max_length: int = Field(default=255, gt=0, description="Maximum UTF-8 byte length of a name.")
    default_name: str = Field(default="unnamed", description="Name used when nothing usable remains.")


class AsciiAlternative(BaseModel):
    """A Unicode file name together with an ASCII-only fallback."""

    original: Utf8String
    ascii: FsSafeString
    has_non_ascii: bool
