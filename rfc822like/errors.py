"""
Errors raised while reading or writing the RFC822-like format.

Every error is a ValueError so callers that only care about "bad input"
can catch that. Each one carries enough position information (line
number on read, key/char/position on write) to find the offending spot.
"""

from __future__ import annotations

from pathlib import Path


class RFC822Error(ValueError):
    """Base error for this package."""


# =============================================================================
# Decoding
# =============================================================================

class DecodeError(RFC822Error):
    """Reading a record failed."""


class MissingColonError(DecodeError):
    """A non-blank line that is not a continuation has no colon."""

    def __init__(self, line: int) -> None:
        self.line = line
        super().__init__(f"Line {line} doesn't contain a colon")


class AmbiguousTypeError(DecodeError):
    """Decoding was requested without saying what to decode into."""

    def __init__(self) -> None:
        super().__init__(
            "The deserialized type is ambiguous and must be explicitly specified. "
            "(RFC822 is NOT self-describing.)"
        )


class DecodeIOError(DecodeError):
    """The byte source failed. The OSError is chained as __cause__."""

    def __init__(self, line: int) -> None:
        self.line = line
        super().__init__(f"I/O error after line {line}")


class CustomDecodeError(DecodeError):
    """Raised by the schema layer: missing fields, bad conversions, etc."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.message = message
        self.line = line
        if line:
            message = f"{message} (record at line {line})"
        super().__init__(message)


class MissingFieldError(CustomDecodeError):
    """A required field is absent. The only binding error that can end a sequence."""

    def __init__(self, key: str, line: int | None = None) -> None:
        self.key = key
        super().__init__(f"missing field `{key}`", line)


# =============================================================================
# Encoding
# =============================================================================

class EncodeError(RFC822Error):
    """Writing a record failed."""


class UnsupportedTypeError(EncodeError):
    """The value has a shape the format cannot represent."""

    def __init__(self, type_name: str, key: str | None = None) -> None:
        self.type_name = type_name
        self.key = key
        where = f" for key '{key}'" if key is not None else ""
        super().__init__(f"unsupported data type {type_name}{where}")


class EmptyKeyError(EncodeError):

    def __init__(self) -> None:
        super().__init__("empty key is not allowed")


class InvalidKeyCharError(EncodeError):

    def __init__(self, key: str, char: str, position: int) -> None:
        self.key = key
        self.char = char
        self.position = position
        super().__init__(f"invalid char {char!r} in key {key!r} at position {position}")


class WriteFailedError(EncodeError):
    """The sink failed. The OSError is chained as __cause__."""

    def __init__(self) -> None:
        super().__init__("failed to write")


# =============================================================================
# Files
# =============================================================================

class ReadFileError(RFC822Error):
    """Loading a file failed. The underlying error is chained as __cause__."""

    def __init__(self, message: str, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(message)


class OpenFileError(ReadFileError):

    def __init__(self, path: str | Path) -> None:
        super().__init__(f"failed to open file {path} for reading", path)


class LoadFileError(ReadFileError):

    def __init__(self, path: str | Path) -> None:
        super().__init__(f"failed to load file {path}", path)
