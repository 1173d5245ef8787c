"""
Convenience entry points: load/loads/load_file and dump/dumps/dump_file.

Decoding always needs a schema, since nothing in the text says whether a
value is a string, a list or absent:

    loads(text, RecordSchema.from_dataclass(Package))   # one Package
    loads(text, ListOf(MapSchema()))                    # list of dicts
    loads(text, Record)                                 # one raw Record
    loads(text, None)                                   # AmbiguousTypeError
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import IO, Any, Iterable, Mapping

from rfc822like.document import Record
from rfc822like.errors import AmbiguousTypeError, DecodeError, LoadFileError, OpenFileError
from rfc822like.reader import RecordReader, as_source, builtins_open
from rfc822like.schema import ListOf, MapSchema, RawSchema, RecordSchema
from rfc822like.writer import DEFAULT_CONFIG, RecordWriter, RFC822Writer, WriterConfig

logger = logging.getLogger(__name__)


def _resolve(schema: Any) -> Any:
    """Accept a schema object, a dataclass type, dict or Record."""
    if schema is None:
        raise AmbiguousTypeError()
    if isinstance(schema, ListOf):
        return ListOf(_resolve(schema.schema))
    if schema is Record:
        return RawSchema()
    if schema is dict:
        return MapSchema()
    if isinstance(schema, type) and dataclasses.is_dataclass(schema):
        return RecordSchema.from_dataclass(schema)
    if isinstance(schema, (RecordSchema, MapSchema, RawSchema)):
        return schema
    raise TypeError(f"Not a schema: {schema!r}")


def load(fp: IO, schema: Any) -> Any:
    """Decode from a binary (or text) file-like."""
    schema = _resolve(schema)
    reader = RecordReader(fp)
    if isinstance(schema, ListOf):
        inner = schema.schema
        if isinstance(inner, RawSchema):
            return list(reader.iter_records())
        return list(reader.iter_decoded(inner.bind))
    return schema.bind(reader.read_record())


def loads(data: bytes | str, schema: Any) -> Any:
    """Decode from bytes or str."""
    return load(as_source(data), schema)


def load_file(path: str | Path, schema: Any) -> Any:
    """Decode a file. Failures carry the path.

    Raises OpenFileError if the file cannot be opened and LoadFileError if
    reading or decoding fails, with the underlying error chained.
    """
    schema = _resolve(schema)
    try:
        f = builtins_open(path, "rb")
    except OSError as e:
        raise OpenFileError(path) from e
    logger.debug("decoding %s with %s", path, type(schema).__name__)
    with f:
        try:
            return load(f, schema)
        except DecodeError as e:
            raise LoadFileError(path) from e


def _to_records(value: Any, schema: Any) -> list[Any]:
    """Output records for value: a list of field sources for the writer."""
    if isinstance(schema, ListOf):
        return [schema.schema.unbind(item) for item in value]
    if schema is not None:
        return [schema.unbind(value)]
    if isinstance(value, (Record, Mapping)):
        return [value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return [RecordSchema.from_dataclass(type(value)).unbind(value)]
    if isinstance(value, list):
        records = []
        for item in value:
            records.extend(_to_records(item, None))
        return records
    raise TypeError(f"Cannot write {type(value).__name__} without a schema")


def _config(wrap: bool, config: WriterConfig | None) -> WriterConfig:
    if config is not None:
        return config
    return WriterConfig(wrap=True) if wrap else DEFAULT_CONFIG


def dumps(value: Any, schema: Any = None, wrap: bool = False, config: WriterConfig | None = None) -> str:
    """Encode to a string.

    Without a schema, value may be a Record, a mapping, a dataclass
    instance or a list of those.
    """
    schema = _resolve(schema) if schema is not None else None
    return RFC822Writer.serialize(_to_records(value, schema), _config(wrap, config))


def dump(
    value: Any, fp: IO, schema: Any = None, wrap: bool = False, config: WriterConfig | None = None,
) -> None:
    """Encode to a text or binary file-like."""
    schema = _resolve(schema) if schema is not None else None
    RecordWriter(fp, _config(wrap, config)).write_records(_to_records(value, schema))


def dump_file(
    value: Any, path: str | Path, schema: Any = None, wrap: bool = False,
    config: WriterConfig | None = None,
) -> int:
    """Encode to a file, replacing it atomically. Returns bytes written."""
    schema = _resolve(schema) if schema is not None else None
    records: Iterable[Any] = _to_records(value, schema)
    return RFC822Writer.write(records, str(path), _config(wrap, config))
