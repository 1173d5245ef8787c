"""
rfc822like - Debian-control-style (RFC822-like) records.

Not self-describing: decoding always goes through a schema.
"""

__version__ = "0.1.0"

from rfc822like.document import Record, RecordField
from rfc822like.errors import (
    DecodeError, EncodeError, LoadFileError, MissingFieldError, OpenFileError, RFC822Error,
)
from rfc822like.reader import RecordReader, RFC822Reader
from rfc822like.writer import FieldWriter, ListWriter, RecordWriter, RFC822Writer, WriterConfig
from rfc822like.schema import FieldShape, FieldSpec, ListOf, MapSchema, RecordSchema
from rfc822like.stream import RecordStreamWriter
from rfc822like.api import dump, dump_file, dumps, load, load_file, loads
