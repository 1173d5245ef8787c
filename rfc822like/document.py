"""
Record - In-memory representation of one paragraph of an RFC822-like file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping

from rfc822like.spec import split_sequence, unfold_value


@dataclass
class RecordField:
    """A single key/value pair, value kept as read (folded, outer-trimmed)."""
    key: str
    raw: str
    line: int = field(default=0, compare=False)  # physical line of the key (populated on read)

    @property
    def value(self) -> str:
        """Logical value: continuation indent removed, " ." turned into ""."""
        return unfold_value(self.raw)

    @property
    def items(self) -> list[str]:
        """Value read as a comma separated list."""
        return split_sequence(self.value)

    @classmethod
    def from_value(cls, key: str, value: str) -> RecordField:
        """Build a field from a logical value by folding it the way the writer does."""
        from io import StringIO
        from rfc822like.writer import FieldWriter

        out = StringIO()
        writer = FieldWriter(out.write)
        writer.write(value)
        writer.finish()
        return cls(key=key, raw=out.getvalue().strip())


@dataclass
class Record:
    """
    One record (paragraph): ordered fields, duplicate keys allowed.

    Usage:
        record = Record.from_pairs([("Package", "foo"), ("Depends", "a, b")])
        record.get("Package")          # "foo"
        record.get_list("Depends")     # ["a", "b"]
        record.to_dict()
    """

    fields: list[RecordField] = field(default_factory=list)
    line: int = field(default=0, compare=False)  # line of the first key (populated on read)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]] | Mapping[str, str]) -> Record:
        """Create a record from logical (unfolded) values."""
        if isinstance(pairs, Mapping):
            pairs = pairs.items()
        record = cls()
        for key, value in pairs:
            record.add(key, value)
        return record

    def add(self, key: str, value: str) -> RecordField:
        """Append a field with a logical value. Returns the field for chaining."""
        f = RecordField.from_value(key, value)
        self.fields.append(f)
        return f

    def add_raw(self, key: str, raw: str, line: int = 0) -> RecordField:
        """Append a field exactly as read from the wire."""
        f = RecordField(key=key, raw=raw, line=line)
        self.fields.append(f)
        return f

    def get_field(self, key: str) -> RecordField | None:
        """First field with this key. O(n) scan."""
        for f in self.fields:
            if f.key == key:
                return f
        return None

    def get(self, key: str, default: str | None = None) -> str | None:
        """Logical value of the first field with this key."""
        f = self.get_field(key)
        return f.value if f else default

    def get_list(self, key: str) -> list[str] | None:
        """First field with this key read as a comma separated list."""
        f = self.get_field(key)
        return f.items if f else None

    def get_all(self, key: str) -> list[str]:
        """Logical values of every field with this key, in order."""
        return [f.value for f in self.fields if f.key == key]

    def keys(self) -> list[str]:
        return [f.key for f in self.fields]

    def items(self) -> list[tuple[str, str]]:
        """(key, logical value) pairs in file order, duplicates included."""
        return [(f.key, f.value) for f in self.fields]

    def to_dict(self) -> dict[str, str]:
        """Key -> logical value. First occurrence wins on duplicate keys."""
        result: dict[str, str] = {}
        for f in self.fields:
            if f.key not in result:
                result[f.key] = f.value
        return result

    def __contains__(self, key: object) -> bool:
        return any(f.key == key for f in self.fields)

    def __iter__(self) -> Iterator[RecordField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __bool__(self) -> bool:
        return bool(self.fields)

    def __repr__(self) -> str:
        return f"Record(line={self.line}, keys={self.keys()})"
