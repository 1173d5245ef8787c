"""
RFC822-like Writer - Folds records into Debian-control-style text.

Writing model:
  - Fields are written in the order the producer gives them
  - A scalar value is written as "Key: " plus the folded value: the first
    logical line shares the key's line, later lines get a one-space indent
    and an empty logical line becomes " ."
  - A list value is written as comma-joined items, one per line, aligned
    under the first item. An empty list writes nothing at all.
  - None writes nothing
  - Records are separated by exactly one blank line; a record with nothing
    to write is skipped entirely
  - Optional word wrapping never touches the first line of a value
"""

from __future__ import annotations

import enum
import io
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import IO, Any, Callable, Iterable, Iterator, Mapping

from uniseg.graphemecluster import grapheme_clusters
from uniseg.wordbreak import words

from rfc822like.document import Record
from rfc822like.errors import EncodeError, UnsupportedTypeError, WriteFailedError
from rfc822like.spec import (
    CONTINUATION_INDENT, ENCODING, LINE_END, PARAGRAPH_MARKER, WRAP_WIDTH, check_key,
)

logger = logging.getLogger(__name__)

Write = Callable[[str], Any]


def display_width(text: str) -> int:
    """Width of text in grapheme clusters."""
    return sum(1 for _ in grapheme_clusters(text))


@dataclass(frozen=True)
class WriterConfig:
    """Folding options.

    The reader only recognises " ." as the paragraph marker, so an indent
    other than a single space is only wire compatible for values without
    empty lines.
    """
    wrap: bool = False
    width: int = WRAP_WIDTH
    indent: str = CONTINUATION_INDENT

    def __post_init__(self) -> None:
        if not self.indent or self.indent.strip(" \t"):
            raise ValueError(f"Continuation indent must be spaces or tabs, got {self.indent!r}")
        if self.width <= display_width(self.indent):
            raise ValueError(f"Wrap width {self.width} leaves no room after the indent")


DEFAULT_CONFIG = WriterConfig()


def write_wrapped(
    write: Write, line: str, width: int = WRAP_WIDTH, indent: str = CONTINUATION_INDENT,
) -> None:
    """Greedy word wrap of one continuation line.

    Each physical line starts with the indent already counted (the caller
    writes the indent itself). A single word longer than the width is never
    split, and whitespace is not carried over to the start of a new line.
    """
    start = display_width(indent)
    written = start
    for word in words(line):
        word_len = display_width(word)
        if written + word_len > width:
            write(LINE_END + indent)
            written = start
        if not (written == start and not word.strip()):
            write(word)
            written += word_len


class FieldWriterState(enum.Enum):
    FIRST_LINE = "first_line"
    NEUTRAL = "neutral"
    ENDED_WITH_NEWLINE = "ended_with_newline"


class FieldWriter:
    """
    Folds one logical value that may arrive in several chunks.

    Whether a chunk's trailing newline starts an empty line or just ends the
    line is only known once the next chunk arrives, so the decision is kept
    in the state.

    Usage:
        w = FieldWriter(out.write)
        w.write("first line\\n")
        w.write("second line")
        w.finish()      # out: "first line\\n second line\\n"
    """

    def __init__(self, write: Write, config: WriterConfig = DEFAULT_CONFIG) -> None:
        self._write = write
        self._config = config
        self.state = FieldWriterState.FIRST_LINE

    def _write_line(self, line: str) -> None:
        if self._config.wrap:
            write_wrapped(self._write, line, self._config.width, self._config.indent)
        else:
            self._write(line)

    def write(self, chunk: str) -> None:
        if not chunk:
            return

        first, *rest = chunk.split(LINE_END)
        if self.state is FieldWriterState.FIRST_LINE:
            # Shares the line with "Key: ", never wrapped
            self._write(first)
        elif self.state is FieldWriterState.ENDED_WITH_NEWLINE and not first:
            self._write(PARAGRAPH_MARKER)
        else:
            self._write_line(first)

        last = len(rest) - 1
        for i, line in enumerate(rest):
            self._write(LINE_END + self._config.indent)
            if not line:
                # An empty last piece may still get content from the next chunk
                if i < last:
                    self._write(PARAGRAPH_MARKER)
            else:
                self._write_line(line)

        if rest or self.state is not FieldWriterState.FIRST_LINE:
            if chunk.endswith(LINE_END):
                self.state = FieldWriterState.ENDED_WITH_NEWLINE
            else:
                self.state = FieldWriterState.NEUTRAL

    def finish(self) -> None:
        """Terminate the field with exactly one newline."""
        if self.state is not FieldWriterState.ENDED_WITH_NEWLINE:
            self._write(LINE_END)


class ListWriter:
    """
    Writes a list value: "Key: a,\\n<indent>b\\n" with items aligned under
    the first one. Items are written as-is; they must not contain newlines.
    """

    def __init__(self, write: Write, key: str) -> None:
        self._write = write
        self._key = key
        self._indent: int | None = None   # None until the first item is written

    def element(self, text: str) -> None:
        if LINE_END in text:
            raise EncodeError(f"list item for key {self._key!r} contains a newline: {text!r}")
        if self._indent is None:
            self._write(f"{self._key}: ")
            self._indent = display_width(self._key) + 2
        else:
            self._write("," + LINE_END + " " * self._indent)
        self._write(text)

    def end(self) -> None:
        if self._indent is not None:
            self._write(LINE_END)


# Values that have a text form in Python but no meaning in this format
_UNSUPPORTED = (bool, int, float, complex, bytes, bytearray, tuple, set, frozenset)


def scalar_text(value: Any) -> str:
    """Text form of a scalar value, or UnsupportedTypeError."""
    if isinstance(value, enum.Enum):
        return value.value if isinstance(value.value, str) else value.name
    if isinstance(value, str):
        return value
    if isinstance(value, _UNSUPPORTED + (list, Mapping, Record)):
        raise UnsupportedTypeError(type(value).__name__)
    if type(value).__str__ is object.__str__:
        raise UnsupportedTypeError(type(value).__name__)
    return str(value)


def iter_fields(fields: Record | Mapping[str, Any] | Iterable[tuple[str, Any]]) -> Iterator[tuple[str, Any]]:
    """(key, value) pairs of anything that looks like a record."""
    if isinstance(fields, Record):
        for f in fields:
            yield f.key, f.value
    elif isinstance(fields, Mapping):
        yield from fields.items()
    else:
        for pair in fields:
            if not isinstance(pair, tuple) or len(pair) != 2:
                raise UnsupportedTypeError(type(pair).__name__)
            yield pair


def text_sink(sink: IO | Write) -> Write:
    """A str-accepting write callable for a text file, binary file or callable."""
    if callable(sink) and not hasattr(sink, "write"):
        return sink
    if isinstance(sink, (io.RawIOBase, io.BufferedIOBase)) or "b" in getattr(sink, "mode", ""):
        return lambda text: sink.write(text.encode(ENCODING))
    return sink.write


class RecordWriter:
    """
    Writes records to a sink, one field at a time.

    Sink failures become WriteFailedError with the OSError chained;
    nothing already written is rolled back.
    """

    def __init__(self, sink: IO | Write, config: WriterConfig = DEFAULT_CONFIG) -> None:
        self._sink = text_sink(sink)
        self.config = config
        self.records_written = 0

    def _put(self, text: str) -> None:
        try:
            self._sink(text)
        except OSError as e:
            raise WriteFailedError() from e

    def write_field(self, key: str, value: Any) -> None:
        self._write_field(self._put, key, value)

    def _write_field(self, put: Write, key: str, value: Any) -> None:
        check_key(key)
        if value is None:
            return
        if isinstance(value, list):
            items = ListWriter(put, key)
            for item in value:
                if item is None:
                    raise UnsupportedTypeError("NoneType", key)
                try:
                    text = scalar_text(item)
                except UnsupportedTypeError as e:
                    raise UnsupportedTypeError(e.type_name, key) from None
                items.element(text)
            items.end()
            return
        try:
            text = scalar_text(value)
        except UnsupportedTypeError as e:
            raise UnsupportedTypeError(e.type_name, key) from None
        put(f"{key}: ")
        folder = FieldWriter(put, self.config)
        folder.write(text)
        folder.finish()

    def write_record(self, fields: Record | Mapping[str, Any] | Iterable[tuple[str, Any]]) -> None:
        """Write one record. A record that produces no text writes no separator either."""
        buffer: list[str] = []
        for key, value in iter_fields(fields):
            self._write_field(buffer.append, key, value)
        if not buffer:
            return
        if self.records_written:
            self._put(LINE_END)
        self._put("".join(buffer))
        self.records_written += 1

    def write_records(self, records: Iterable[Record | Mapping[str, Any]]) -> None:
        for record in records:
            self.write_record(record)


class RFC822Writer:

    @staticmethod
    def write_record(
        sink: IO | Write,
        fields: Record | Mapping[str, Any] | Iterable[tuple[str, Any]],
        config: WriterConfig = DEFAULT_CONFIG,
    ) -> None:
        """Write a single record to a sink."""
        RecordWriter(sink, config).write_record(fields)

    @staticmethod
    def serialize(
        records: Iterable[Record | Mapping[str, Any]], config: WriterConfig = DEFAULT_CONFIG,
    ) -> str:
        """Serialize records to a string, one blank line between records."""
        parts: list[str] = []
        RecordWriter(parts.append, config).write_records(records)
        return "".join(parts)

    @staticmethod
    def serialize_record(
        fields: Record | Mapping[str, Any] | Iterable[tuple[str, Any]],
        config: WriterConfig = DEFAULT_CONFIG,
    ) -> str:
        parts: list[str] = []
        RecordWriter(parts.append, config).write_record(fields)
        return "".join(parts)

    @staticmethod
    def write(
        records: Iterable[Record | Mapping[str, Any]],
        path: str,
        config: WriterConfig = DEFAULT_CONFIG,
        mode: int = 0o644,
    ) -> int:
        """Write records to a file atomically. Returns bytes written.

        Serializes fully in memory first, then uses write-to-temp-then-rename
        so the target is never left half written. For writing records as they
        are produced, use RecordStreamWriter instead.
        """
        data = RFC822Writer.serialize(records, config).encode(ENCODING)
        dir_name = os.path.dirname(os.path.abspath(path)) or "."
        fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        logger.debug("wrote %d bytes to %s", len(data), path)
        return len(data)
