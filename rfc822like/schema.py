"""
Schema - Binds records to Python values and back.

The format is not self-describing: "a, b" is a string or a two item list
only because a schema says so. Every field of a schema has a shape:

  SCALAR    - required string (or anything buildable from one)
  OPTIONAL  - may be absent; absent reads as None and None is not written
  SEQUENCE  - comma separated list
  ENUM      - one member of an Enum, written by value (or name)

Usage:
    @dataclass
    class Package:
        package: str
        version: str
        depends: list[str] = field(default_factory=list)
        homepage: Optional[str] = None

    schema = RecordSchema.from_dataclass(Package, rename="Train-Case")
    pkg = schema.bind(record)
    fields = schema.unbind(pkg)
"""

from __future__ import annotations

import dataclasses
import enum
import re
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Union

from rfc822like.document import Record, RecordField
from rfc822like.errors import CustomDecodeError, MissingFieldError

# Field metadata key overriding the written name of a dataclass field
METADATA_KEY = "rfc822"


class FieldShape(enum.Enum):
    SCALAR = "scalar"
    OPTIONAL = "optional"
    SEQUENCE = "sequence"
    ENUM = "enum"


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


class _Skip:
    def __repr__(self) -> str:
        return "SKIP"


MISSING: Any = _Missing()   # no default: the field is required
SKIP: Any = _Skip()         # absent field is left out so the factory's own default applies


def parse_yes_no(text: str) -> bool:
    """Debian style boolean ("Essential: yes")."""
    lowered = text.lower()
    if lowered == "yes":
        return True
    if lowered == "no":
        return False
    raise ValueError(f"expected 'yes' or 'no', got {text!r}")


def format_yes_no(value: bool) -> str:
    return "yes" if value else "no"


def _convert(convert: Callable[[str], Any], text: str) -> Any:
    if isinstance(convert, type) and issubclass(convert, enum.Enum):
        for member in convert:
            if member.value == text:
                return member
        try:
            return convert[text]
        except KeyError:
            raise ValueError(f"unknown variant {text!r} of {convert.__name__}") from None
    return convert(text)


@dataclass(frozen=True)
class FieldSpec:
    """How one key of a record maps to one attribute of the target."""
    key: str
    attr: str = ""
    shape: FieldShape = FieldShape.SCALAR
    convert: Callable[[str], Any] = str
    default: Any = MISSING
    to_text: Callable[[Any], Any] | None = None   # applied to each value on write

    def __post_init__(self) -> None:
        if not self.attr:
            object.__setattr__(self, "attr", self.key)
        if self.shape is FieldShape.ENUM and not (
            isinstance(self.convert, type) and issubclass(self.convert, enum.Enum)
        ):
            raise TypeError(f"ENUM field {self.key!r} needs an Enum type as convert")

    def missing(self, line: int = 0) -> Any:
        """Value used when the key is absent from the record."""
        if self.default is not MISSING:
            return self.default
        if self.shape is FieldShape.OPTIONAL:
            return None
        raise MissingFieldError(self.key, line)

    def decode(self, f: RecordField, line: int = 0) -> Any:
        try:
            if self.shape is FieldShape.SEQUENCE:
                return [_convert(self.convert, item) for item in f.items]
            return _convert(self.convert, f.value)
        except (ValueError, TypeError) as e:
            raise CustomDecodeError(f"invalid value for field `{self.key}`: {e}", line) from e

    def encode(self, value: Any) -> Any:
        """Output value for the writer. None means the field is omitted."""
        if value is None:
            return None
        if self.shape is FieldShape.SEQUENCE:
            if isinstance(value, str):
                value = [value]
            return [self.to_text(item) if self.to_text else item for item in value]
        return self.to_text(value) if self.to_text else value


# =============================================================================
# Naming
# =============================================================================

def _words(name: str) -> list[str]:
    return [w for w in re.split(r"_+", name) if w]


_RENAMES: dict[str, Callable[[str], str]] = {
    "PascalCase": lambda name: "".join(w[:1].upper() + w[1:] for w in _words(name)),
    "Train-Case": lambda name: "-".join(w[:1].upper() + w[1:] for w in _words(name)),
    "kebab-case": lambda name: "-".join(_words(name)),
}


def _rename_func(rename: str | Callable[[str], str] | None) -> Callable[[str], str]:
    if rename is None:
        return lambda name: name
    if callable(rename):
        return rename
    try:
        return _RENAMES[rename]
    except KeyError:
        raise ValueError(
            f"Unknown rename rule {rename!r}. Use one of: {', '.join(_RENAMES)}"
        ) from None


# =============================================================================
# Type hints -> field shapes
# =============================================================================

def _optional_inner(tp: Any) -> Any | None:
    origin = typing.get_origin(tp)
    if origin is Union or origin is getattr(types, "UnionType", None):
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(tp)) == 2:
            return args[0]
    return None


def _scalar(tp: Any, name: str) -> tuple[Callable[[str], Any], Callable[[Any], Any] | None]:
    if tp is str:
        return str, None
    if tp is bool:
        return parse_yes_no, format_yes_no
    if tp in (int, float):
        return tp, str
    if isinstance(tp, type) and issubclass(tp, enum.Enum):
        return tp, None
    raise TypeError(f"Field {name!r} has unsupported type {tp!r}")


def _shape_of(tp: Any, name: str) -> tuple[FieldShape, Callable[[str], Any], Callable[[Any], Any] | None]:
    inner = _optional_inner(tp)
    if inner is not None:
        convert, to_text = _scalar(inner, name)
        return FieldShape.OPTIONAL, convert, to_text
    if typing.get_origin(tp) is list:
        args = typing.get_args(tp) or (str,)
        convert, to_text = _scalar(args[0], name)
        return FieldShape.SEQUENCE, convert, to_text
    convert, to_text = _scalar(tp, name)
    if isinstance(tp, type) and issubclass(tp, enum.Enum):
        return FieldShape.ENUM, convert, to_text
    return FieldShape.SCALAR, convert, to_text


# =============================================================================
# Schemas
# =============================================================================

class RecordSchema:
    """
    Fixed set of fields bound to a target built by `factory(**attrs)`.

    Unknown keys are ignored unless ignore_unknown is False.
    A key present twice in one record is an error.
    """

    def __init__(
        self,
        fields: Iterable[FieldSpec],
        ignore_unknown: bool = True,
        factory: Callable[..., Any] = dict,
    ) -> None:
        self.fields = list(fields)
        self.ignore_unknown = ignore_unknown
        self.factory = factory
        self._by_key = {spec.key: spec for spec in self.fields}
        if len(self._by_key) != len(self.fields):
            raise ValueError("Duplicate key in schema fields")

    @classmethod
    def from_dataclass(
        cls,
        target: type,
        rename: str | Callable[[str], str] | None = None,
        ignore_unknown: bool = True,
    ) -> RecordSchema:
        """Derive a schema from a dataclass' type hints.

        str -> SCALAR, Optional[X] -> OPTIONAL, list[X] -> SEQUENCE,
        Enum subclass -> ENUM. int, float and bool (yes/no) are converted
        from and to their text form. `field(metadata={"rfc822": "Key"})`
        overrides the written name of a single field.
        """
        if not dataclasses.is_dataclass(target) or not isinstance(target, type):
            raise TypeError(f"{target!r} is not a dataclass type")
        hints = typing.get_type_hints(target)
        to_key = _rename_func(rename)
        specs = []
        for f in dataclasses.fields(target):
            if not f.init:
                continue
            shape, convert, to_text = _shape_of(hints[f.name], f.name)
            has_default = (
                f.default is not dataclasses.MISSING
                or f.default_factory is not dataclasses.MISSING
            )
            specs.append(FieldSpec(
                key=f.metadata.get(METADATA_KEY) or to_key(f.name),
                attr=f.name,
                shape=shape,
                convert=convert,
                default=SKIP if has_default else MISSING,
                to_text=to_text,
            ))
        return cls(specs, ignore_unknown=ignore_unknown, factory=target)

    def bind(self, record: Record) -> Any:
        """Build the target from a record.

        Raises MissingFieldError for an absent required field and
        CustomDecodeError for duplicate or unknown fields and bad values.
        """
        found: dict[str, RecordField] = {}
        for f in record:
            if f.key in found:
                raise CustomDecodeError(f"duplicate field `{f.key}`", record.line)
            if f.key not in self._by_key:
                if self.ignore_unknown:
                    continue
                raise CustomDecodeError(f"unknown field `{f.key}`", record.line)
            found[f.key] = f

        attrs: dict[str, Any] = {}
        for spec in self.fields:
            f = found.get(spec.key)
            value = spec.decode(f, record.line) if f is not None else spec.missing(record.line)
            if value is not SKIP:
                attrs[spec.attr] = value
        return self.factory(**attrs)

    def unbind(self, obj: Any) -> list[tuple[str, Any]]:
        """Output fields of a target object, in schema order."""
        fields = []
        for spec in self.fields:
            if isinstance(obj, Mapping):
                value = obj.get(spec.attr)
            else:
                value = getattr(obj, spec.attr, None)
            fields.append((spec.key, spec.encode(value)))
        return fields


class MapSchema:
    """Every field of a record into a dict; a later duplicate key wins."""

    def __init__(self, value_shape: FieldShape = FieldShape.SCALAR) -> None:
        if value_shape not in (FieldShape.SCALAR, FieldShape.SEQUENCE):
            raise ValueError(f"MapSchema values must be SCALAR or SEQUENCE, not {value_shape.name}")
        self.value_shape = value_shape

    def bind(self, record: Record) -> dict[str, Any]:
        if self.value_shape is FieldShape.SEQUENCE:
            return {f.key: f.items for f in record}
        return {f.key: f.value for f in record}

    def unbind(self, obj: Mapping[str, Any]) -> list[tuple[str, Any]]:
        return list(obj.items())


class RawSchema:
    """Records as they are read, no binding."""

    def bind(self, record: Record) -> Record:
        return record

    def unbind(self, obj: Any) -> Any:
        return obj


@dataclass(frozen=True)
class ListOf:
    """A homogeneous sequence of records, each bound with `schema`."""
    schema: RecordSchema | MapSchema | RawSchema


Schema = Union[RecordSchema, MapSchema, RawSchema, ListOf]
