"""
RFC822-like Reader - Line scanner for Debian-control-style files.

Scanning model:
  - One physical line is read at a time and kept in a single lookahead slot
  - A key is the text before the first colon of a non-continuation line
  - A value is the rest of that line plus every following line that starts
    with a space or tab, trimmed once as a whole (still folded)
  - A line that is exactly "\\n" ends the record
  - The source is consumed strictly in order and never rewound

Sequence decoding:
  - Records are decoded one after another until the stream ends
  - A scanning error or a missing required field, raised while the last
    boundary crossed was a blank line, ends the sequence quietly instead of
    failing. That is how a trailing blank line (or a trailing empty record)
    terminates a list of records without an extra element.
  - Bad values, duplicate and unknown fields always propagate
"""

from __future__ import annotations

import builtins
import io
import logging
from pathlib import Path
from typing import IO, Callable, Iterator, TypeVar

from rfc822like.document import Record
from rfc822like.errors import (
    DecodeError, DecodeIOError, LoadFileError, MissingColonError, MissingFieldError, OpenFileError,
)
from rfc822like.spec import (
    BLANK_LINE, ENCODING, KEY_SEPARATOR, MAX_FILE_SIZE, is_continuation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordReader:
    """
    Stateful scanner over a line source (binary or text file-like).

    Not reentrant: one reader owns its source for the whole operation.

    Usage:
        reader = RecordReader(io.BytesIO(b"Package: foo\\n"))
        while (key := reader.next_key()) is not None:
            raw = reader.next_value()
    """

    def __init__(self, source: IO) -> None:
        self._source = source
        self._pending: str | None = None   # lookahead: line read but not consumed
        self._pending_line = 0
        self._exhausted = False            # source returned 0 bytes
        self.line = 0                      # physical lines read so far
        self.eof = False                   # next_key() hit the end of the stream
        self.saw_blank = False             # last boundary crossed was a blank line

    def _read_line(self) -> str:
        if self._exhausted:
            return ""
        try:
            data = self._source.readline()
        except OSError as e:
            raise DecodeIOError(self.line) from e
        if not data:
            self._exhausted = True
            return ""
        self.line += 1
        if isinstance(data, bytes):
            try:
                return data.decode(ENCODING)
            except UnicodeDecodeError as e:
                raise DecodeIOError(self.line) from e
        return data

    def next_key(self) -> str | None:
        """Key of the next field, or None at the end of the record/stream.

        The key line stays pending until next_value() consumes it.
        """
        if self._pending is None:
            line = self._read_line()
            if not line:
                self.eof = True
                return None
            self._pending = line
            self._pending_line = self.line

        if self._pending == BLANK_LINE:
            self._pending = None
            self.saw_blank = True
            return None

        pos = self._pending.find(KEY_SEPARATOR)
        if pos < 0:
            raise MissingColonError(self._pending_line)
        self.saw_blank = False
        return self._pending[:pos]

    def next_value(self) -> str:
        """Raw value of the field whose key was just returned by next_key()."""
        if self._pending is None:
            raise RuntimeError("next_value() called before next_key()")

        first = self._pending
        parts = [first[first.find(KEY_SEPARATOR) + 1:]]
        self._pending = None
        while True:
            line = self._read_line()
            if not line:
                break
            if not is_continuation(line):
                # Stopping line belongs to whatever comes next
                self._pending = line
                self._pending_line = self.line
                break
            parts.append(line)
        return "".join(parts).strip()

    def read_record(self) -> Record:
        """Read fields up to the next blank line or the end of the stream.

        Returns an empty Record when no field was found.
        """
        record = Record()
        while True:
            key = self.next_key()
            if key is None:
                break
            line = self._pending_line
            if not record:
                record.line = line
            record.add_raw(key, self.next_value(), line)
        return record

    def iter_decoded(
        self, bind: Callable[[Record], T], skip_empty: bool = False,
    ) -> Iterator[T]:
        """Decode records one by one until the stream ends.

        A scanning error, or a MissingFieldError from bind, raised while
        saw_blank is set ends the sequence instead of propagating. Any other
        bind error (a bad value, a duplicate field) always propagates. An
        empty record at the end of the stream is never passed to bind.
        """
        while not self.eof:
            try:
                record = self.read_record()
            except DecodeError as e:
                if self.saw_blank:
                    logger.debug("sequence ended after line %d: %s", self.line, e)
                    return
                raise
            if not record and (self.eof or skip_empty):
                continue
            try:
                value = bind(record)
            except MissingFieldError as e:
                if self.saw_blank:
                    logger.debug("sequence ended at record line %d: %s", record.line, e)
                    return
                raise
            yield value

    def iter_records(self) -> Iterator[Record]:
        """Every non-empty record left in the stream."""
        return self.iter_decoded(lambda record: record, skip_empty=True)


def as_source(data: bytes | str | IO) -> IO:
    if isinstance(data, (bytes, bytearray)):
        return io.BytesIO(bytes(data))
    if isinstance(data, str):
        return io.StringIO(data)
    return data


class RFC822Reader:
    """
    Entry points for reading RFC822-like data.

    Usage:
        # Full parse (loads every record)
        records = RFC822Reader.read("debian/control")

        # Lazy iteration over a large index file
        with RFC822Reader.open("/var/lib/apt/lists/..._Packages") as handle:
            for record in handle:
                print(record.get("Package"))
    """

    @staticmethod
    def parse_record(source: bytes | str | IO) -> Record:
        """Decode a single record. Anything after its terminating blank line is left unread."""
        return RecordReader(as_source(source)).read_record()

    @staticmethod
    def iter_records(source: bytes | str | IO) -> Iterator[Record]:
        """Decode a sequence of records lazily."""
        return RecordReader(as_source(source)).iter_records()

    @classmethod
    def parse(cls, data: bytes | str | IO, max_size: int = MAX_FILE_SIZE) -> list[Record]:
        """Decode every record from bytes, text or a file-like."""
        if isinstance(data, (bytes, bytearray, str)) and len(data) > max_size:
            raise ValueError(
                f"Input size {len(data)} exceeds maximum {max_size} bytes. "
                f"Pass max_size= to override."
            )
        return list(cls.iter_records(data))

    @classmethod
    def read(cls, path: str | Path, max_size: int = MAX_FILE_SIZE) -> list[Record]:
        """Decode every record of a file.

        Raises OpenFileError / LoadFileError carrying the path.
        """
        with cls.open(path, max_size=max_size) as handle:
            records = list(handle)
        logger.debug("read %d records from %s", len(records), path)
        return records

    @classmethod
    def open(cls, path: str | Path, max_size: int = MAX_FILE_SIZE) -> RecordFileHandle:
        """Open a file for lazy, record-by-record reading."""
        path = Path(path)
        try:
            file_size = path.stat().st_size
            f = builtins_open(path, "rb")
        except OSError as e:
            raise OpenFileError(path) from e
        if file_size > max_size:
            f.close()
            raise ValueError(
                f"File size {file_size} exceeds maximum {max_size} bytes. "
                f"Pass max_size= to override."
            )
        return RecordFileHandle(f, path)

    @staticmethod
    def looks_like_rfc822(path: str | Path) -> bool:
        """Fast check: does the first line of the file look like a field?"""
        with builtins_open(path, "rb") as f:
            head = f.readline(4096)
        if not head.endswith(b"\n") and len(head) == 4096:
            return False
        return b":" in head and not head[:1].isspace()


# Keep builtins reference so 'open' classmethod doesn't shadow
builtins_open = builtins.open


class RecordFileHandle:
    """
    Handle for lazy access to the records of a file.

    Iterating reads one record at a time; decode failures are re-raised as
    LoadFileError with the path attached.
    """

    def __init__(self, handle: IO[bytes], path: Path) -> None:
        self._handle = handle
        self.path = path
        self._reader = RecordReader(handle)

    def __iter__(self) -> Iterator[Record]:
        try:
            yield from self._reader.iter_records()
        except DecodeError as e:
            raise LoadFileError(self.path) from e

    def decode(self, bind: Callable[[Record], T]) -> Iterator[T]:
        """Like iteration, but bind each record through a schema."""
        try:
            yield from self._reader.iter_decoded(bind)
        except DecodeError as e:
            raise LoadFileError(self.path) from e

    def first(self) -> Record:
        """Decode only the first record."""
        try:
            return self._reader.read_record()
        except DecodeError as e:
            raise LoadFileError(self.path) from e

    @property
    def line(self) -> int:
        return self._reader.line

    def close(self) -> None:
        self._handle.close()

    def __enter__(self) -> RecordFileHandle:
        return self

    def __exit__(self, *args) -> None:
        self.close()
