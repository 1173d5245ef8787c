"""
RFC822-like Format Specification
================================

Layout (Debian control files, apt ``Packages`` indexes):
    Package: foo                 <- key, colon, value
    Depends: libc6, python3      <- list values are comma separated
    Description: The Foo         <- first line shares the line with the key
     A longer description that   <- continuation lines start with a space or tab
     spans several lines.
     .                           <- paragraph marker: an empty logical line
     Second paragraph.
                                 <- blank line ends the record
    Package: bar
    Description: The Bar

Design Decisions:
    - Not self-describing: a value is a string, a list or an optional
      string only because the caller says so. Decoding needs a schema.
    - The first physical line of a value is never wrapped (it follows "Key: ")
    - Continuation indent on write is a single space
    - "Key:value" and "Key:\\n value" are accepted on read
    - Commas inside list items cannot be escaped
    - A logical line that is exactly "." cannot be written

Folding:
    - Writer: "a\\n\\nb" for key X  ->  "X: a\\n .\\n b\\n"
    - Reader: "X: a\\n .\\n b"       ->  "a\\n\\nb"
    - Lists:  ["a", "b"] for key X  ->  "X: a,\\n   b\\n"
"""

from __future__ import annotations

from rfc822like.errors import EmptyKeyError, InvalidKeyCharError

# Separators
KEY_SEPARATOR = ":"
LIST_SEPARATOR = ","
LINE_END = "\n"
BLANK_LINE = "\n"

# Continuation lines start with one of these
CONTINUATION_CHARS = (" ", "\t")

# Written in place of an empty line inside a folded value
PARAGRAPH_MARKER = "."
PARAGRAPH_LINE = " " + PARAGRAPH_MARKER

# Writer defaults (see writer.WriterConfig)
WRAP_WIDTH = 80
CONTINUATION_INDENT = " "

# Characters a key must not contain on write
FORBIDDEN_KEY_CHARS = frozenset(":\n")

# Safety limits
MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB max file size for reader

# File extensions commonly used for this format
EXTENSIONS = (".control", ".dsc", ".changes", ".deb822")

ENCODING = "utf-8"


def is_continuation(line: str) -> bool:
    """True for a physical line that continues the previous field's value."""
    return line.startswith(CONTINUATION_CHARS)


def unfold_value(raw: str) -> str:
    """Turn a raw (still folded) value into its logical multi-line form.

    The first line is kept verbatim. Every continuation line loses its
    leading spaces/tabs, and a line that is exactly " ." becomes empty.
    A value read from a single physical line is returned unchanged.
    """
    if LINE_END not in raw:
        return raw
    lines = raw.split(LINE_END)
    unfolded = [lines[0]]
    for line in lines[1:]:
        if line == PARAGRAPH_LINE:
            unfolded.append("")
        else:
            unfolded.append(line.lstrip(" \t"))
    return LINE_END.join(unfolded)


def split_sequence(value: str) -> list[str]:
    """Split a logical value into trimmed, comma separated items.

    There is no escaping: an item can never contain a comma.
    """
    return [item.strip() for item in value.split(LIST_SEPARATOR)]


def find_invalid_key_char(key: str) -> int:
    """Index of the first character that may not appear in a written key, or -1."""
    for pos, c in enumerate(key):
        if c in FORBIDDEN_KEY_CHARS:
            return pos
    return -1


def check_key(key: str) -> None:
    """Validate a key before it is written.

    Raises EmptyKeyError or InvalidKeyCharError.
    """
    if not key:
        raise EmptyKeyError()
    pos = find_invalid_key_char(key)
    if pos >= 0:
        raise InvalidKeyCharError(key, key[pos], pos)
