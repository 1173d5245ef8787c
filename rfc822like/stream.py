"""
RFC822-like Streaming Writer - Append records to a file as they are produced.

Each record is serialized in memory, written with one call, then flushed
and fsynced, so a crash loses at most the record being written:

    Package: foo                  <- record 1, on disk once write_record returns
    Version: 1.0
                                  <- separator written together with record 2
    Package: bar
    Version: 2.0

Usage:
    with RecordStreamWriter("Packages") as w:
        for pkg in build_packages():
            w.write_record({"Package": pkg.name, "Version": pkg.version})

    # Append mode (resume after crash):
    with RecordStreamWriter("Packages", append=True) as w:
        w.write_record({"Package": "baz"})
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import IO, Any, Iterable, Mapping

from rfc822like.document import Record
from rfc822like.errors import DecodeError, LoadFileError, WriteFailedError
from rfc822like.reader import RFC822Reader
from rfc822like.spec import ENCODING, LINE_END
from rfc822like.writer import DEFAULT_CONFIG, RFC822Writer, WriterConfig

logger = logging.getLogger(__name__)


class RecordStreamWriter:
    """
    Streaming writer. Records are flushed to disk immediately.
    """

    def __init__(
        self,
        path: str | Path,
        config: WriterConfig = DEFAULT_CONFIG,
        append: bool = False,
    ) -> None:
        self.path = Path(path)
        self.config = config
        self._closed = False
        self._records = 0

        if append and self.path.exists() and self.path.stat().st_size > 0:
            self._handle, self._records = _recover(self.path)
            self._handle.seek(0, 2)
        else:
            self._handle = open(self.path, "wb")

    def write_record(self, fields: Record | Mapping[str, Any] | Iterable[tuple[str, Any]]) -> bool:
        """Write one record and sync it to disk.

        Returns False when every value was None and nothing was written.
        """
        if self._closed:
            raise RuntimeError("Cannot write to a closed RecordStreamWriter")

        text = RFC822Writer.serialize_record(fields, self.config)
        if not text:
            return False
        if self._records:
            text = LINE_END + text
        try:
            self._handle.write(text.encode(ENCODING))
            self._handle.flush()
            os.fsync(self._handle.fileno())
        except OSError as e:
            raise WriteFailedError() from e
        self._records += 1
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._handle.close()
        self._closed = True
        logger.debug("closed %s after %d records", self.path, self._records)

    def __enter__(self) -> RecordStreamWriter:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @property
    def records_written(self) -> int:
        """Records in the file, including those found on append."""
        return self._records

    @property
    def bytes_written(self) -> int:
        return self._handle.tell() if not self._closed else self.path.stat().st_size


def _recover(path: Path) -> tuple[IO[bytes], int]:
    """
    Reopen an existing file for appending, e.g. after a crash.

    Backs the file up first, drops a trailing partial line and any trailing
    blank lines, then counts the complete records left. Returns the handle
    and the record count. A file that does not decode raises LoadFileError.
    """
    backup_path = path.with_suffix(path.suffix + ".bak")
    shutil.copy2(path, backup_path)

    raw = path.read_bytes()
    keep = raw
    if not keep.endswith(b"\n"):
        keep = keep[:keep.rfind(b"\n") + 1]
    keep = keep.rstrip(b"\n")
    if keep:
        keep += b"\n"

    try:
        count = sum(1 for _ in RFC822Reader.iter_records(keep))
    except DecodeError as e:
        raise LoadFileError(path) from e

    if len(keep) != len(raw):
        logger.warning("truncating %s from %d to %d bytes", path, len(raw), len(keep))
    handle = open(path, "r+b")
    handle.seek(len(keep))
    handle.truncate()
    return handle, count
