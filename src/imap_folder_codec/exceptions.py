"""Custom exceptions for the mailbox text-encoding layer."""


class CodecError(Exception):
    """Base exception for encoding layer failures."""


class ConfigurationError(CodecError):
    """Raised when configuration is invalid or incomplete."""


class MalformedEncodingError(CodecError, ValueError):
    """Raised when a Modified UTF-7 string cannot be decoded."""

    def __init__(self, message: str, *, original: str | None = None, position: int | None = None) -> None:
        super().__init__(message)
        self.original = original
        self.position = position
