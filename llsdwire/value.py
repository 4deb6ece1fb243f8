"""LLSD value model.

A ``Value`` is a closed tagged union over the kinds in ``Kind``. Arrays and
maps own their children: anything stored into a container is copied, so two
trees never share nodes. Maps keep their entries in a plain dict and present
them in lexicographic key order, which is the order every formatter writes.
"""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Iterator, Mapping
from typing import Any

from .constants import INT32_MAX, INT32_MIN, Kind
from .errors import LLSDSerializationError

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
NULL_UUID = uuid.UUID(int=0)


class URI(str):
    """Marker type for LLSD URI values."""

    pass


def wrap_int32(n: int) -> int:
    """Reduce an arbitrary int to signed 32-bit two's complement."""
    if INT32_MIN <= n <= INT32_MAX:
        return n
    return ((n - INT32_MIN) & 0xFFFFFFFF) + INT32_MIN


def to_utc(when: datetime.date) -> datetime.datetime:
    """Normalize a date or datetime to an aware UTC datetime.

    Naive datetimes are taken to already be in UTC.
    """
    if not isinstance(when, datetime.datetime):
        when = datetime.datetime.combine(when, datetime.time(0))
    if when.tzinfo is None:
        return when.replace(tzinfo=datetime.timezone.utc)
    return when.astimezone(datetime.timezone.utc)


def date_from_seconds(seconds: float) -> datetime.datetime:
    """Build a UTC datetime from (fractional) seconds since the epoch."""
    whole = int(seconds // 1)
    micros = round((seconds - whole) * 1_000_000)
    return EPOCH + datetime.timedelta(seconds=whole, microseconds=micros)


def date_to_seconds(when: datetime.datetime) -> float:
    delta = when - EPOCH
    return delta.days * 86400 + delta.seconds + delta.microseconds / 1_000_000


_ZEROES: dict[Kind, Any] = {
    Kind.UNDEFINED: None,
    Kind.BOOLEAN: False,
    Kind.INTEGER: 0,
    Kind.REAL: 0.0,
    Kind.STRING: "",
    Kind.UUID: NULL_UUID,
    Kind.DATE: EPOCH,
    Kind.URI: "",
    Kind.BINARY: b"",
}


class Value:
    """A single LLSD node.

    ``Value()`` is Undefined. ``Value(thing)`` converts a native Python object
    via ``from_python``; the explicit constructors (``Value.integer(3)``,
    ``Value.uri("http://...")`` ...) pick the kind directly.
    """

    __slots__ = ("_kind", "_data")

    def __init__(self, thing: Any = None) -> None:
        self._kind = Kind.UNDEFINED
        self._data: Any = None
        if thing is not None:
            other = Value.from_python(thing)
            self._kind, self._data = other._kind, other._data

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def _make(cls, kind: Kind, data: Any) -> Value:
        value = cls()
        value._kind = kind
        value._data = data
        return value

    @classmethod
    def boolean(cls, flag: bool) -> Value:
        return cls._make(Kind.BOOLEAN, bool(flag))

    @classmethod
    def integer(cls, n: int) -> Value:
        return cls._make(Kind.INTEGER, wrap_int32(int(n)))

    @classmethod
    def real(cls, x: float) -> Value:
        return cls._make(Kind.REAL, float(x))

    @classmethod
    def string(cls, s: str) -> Value:
        return cls._make(Kind.STRING, str(s))

    @classmethod
    def uuid(cls, u: uuid.UUID | str | None = None) -> Value:
        if u is None:
            u = NULL_UUID
        elif not isinstance(u, uuid.UUID):
            u = uuid.UUID(u)
        return cls._make(Kind.UUID, u)

    @classmethod
    def date(cls, when: datetime.date | float) -> Value:
        if isinstance(when, (int, float)):
            return cls._make(Kind.DATE, date_from_seconds(float(when)))
        return cls._make(Kind.DATE, to_utc(when))

    @classmethod
    def uri(cls, text: str) -> Value:
        return cls._make(Kind.URI, str(text))

    @classmethod
    def binary(cls, data: bytes | bytearray | memoryview) -> Value:
        return cls._make(Kind.BINARY, bytes(data))

    @classmethod
    def array(cls, items: Any = ()) -> Value:
        return cls._make(Kind.ARRAY, [Value.from_python(item) for item in items])

    @classmethod
    def map(cls, entries: Mapping[str, Any] | None = None) -> Value:
        value = cls._make(Kind.MAP, {})
        for key, item in (entries or {}).items():
            value[key] = item
        return value

    @classmethod
    def from_python(cls, thing: Any) -> Value:
        """Convert a native Python object (or a Value) into a new Value tree."""
        if isinstance(thing, Value):
            return thing.copy()
        if thing is None:
            return cls()
        # bool is a subclass of int, so it must be tested first
        if isinstance(thing, bool):
            return cls.boolean(thing)
        if isinstance(thing, int):
            return cls.integer(thing)
        if isinstance(thing, float):
            return cls.real(thing)
        if isinstance(thing, URI):
            return cls.uri(thing)
        if isinstance(thing, str):
            return cls.string(thing)
        if isinstance(thing, uuid.UUID):
            return cls.uuid(thing)
        if isinstance(thing, datetime.date):
            return cls.date(thing)
        if isinstance(thing, (bytes, bytearray, memoryview)):
            return cls.binary(thing)
        if isinstance(thing, Mapping):
            for key in thing:
                if not isinstance(key, str):
                    raise LLSDSerializationError(f"map key must be a string, got {type(key).__name__}")
            return cls.map(thing)
        if isinstance(thing, (list, tuple)):
            return cls.array(thing)
        raise LLSDSerializationError(f"Cannot convert unknown type: {type(thing).__name__} ({thing!r})")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def kind(self) -> Kind:
        return self._kind

    @property
    def data(self) -> Any:
        """The raw payload: a Python scalar, a list of Values or a dict of Values."""
        return self._data

    def is_undefined(self) -> bool:
        return self._kind is Kind.UNDEFINED

    def is_map(self) -> bool:
        return self._kind is Kind.MAP

    def is_array(self) -> bool:
        return self._kind is Kind.ARRAY

    def size(self) -> int:
        """Number of children; 0 for scalars."""
        if self._kind in (Kind.MAP, Kind.ARRAY):
            return len(self._data)
        return 0

    __len__ = size

    def __bool__(self) -> bool:
        return self.as_boolean()

    # ------------------------------------------------------------------
    # Container operations
    # ------------------------------------------------------------------

    def append(self, item: Any) -> None:
        """Append to an Array. An Undefined value becomes an empty Array first."""
        if self._kind is Kind.UNDEFINED:
            self._kind, self._data = Kind.ARRAY, []
        if self._kind is not Kind.ARRAY:
            raise TypeError(f"append() on {self._kind.name} value")
        self._data.append(Value.from_python(item))

    def __getitem__(self, key: str | int) -> Value:
        if isinstance(key, str):
            if self._kind is Kind.MAP and key in self._data:
                return self._data[key]
            return Value()
        if self._kind is Kind.ARRAY and -len(self._data) <= key < len(self._data):
            return self._data[key]
        return Value()

    def __setitem__(self, key: str | int, item: Any) -> None:
        if isinstance(key, str):
            if self._kind is Kind.UNDEFINED:
                self._kind, self._data = Kind.MAP, {}
            if self._kind is not Kind.MAP:
                raise TypeError(f"string key on {self._kind.name} value")
            self._data[key] = Value.from_python(item)
            return
        if self._kind is Kind.UNDEFINED:
            self._kind, self._data = Kind.ARRAY, []
        if self._kind is not Kind.ARRAY:
            raise TypeError(f"integer index on {self._kind.name} value")
        if key < 0:
            key += len(self._data)
            if key < 0:
                raise IndexError("array index out of range")
        while len(self._data) <= key:
            self._data.append(Value())
        self._data[key] = Value.from_python(item)

    def __delitem__(self, key: str | int) -> None:
        if self._kind is Kind.MAP and isinstance(key, str):
            self._data.pop(key, None)
        elif self._kind is Kind.ARRAY and isinstance(key, int):
            del self._data[key]

    def __contains__(self, key: object) -> bool:
        return self._kind is Kind.MAP and key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        if key in self:
            return self._data[key]
        return default

    def keys(self) -> list[str]:
        if self._kind is not Kind.MAP:
            return []
        return sorted(self._data)

    def values(self) -> list[Value]:
        if self._kind is Kind.ARRAY:
            return list(self._data)
        return [self._data[key] for key in self.keys()]

    def items(self) -> list[tuple[str, Value]]:
        return [(key, self._data[key]) for key in self.keys()]

    def __iter__(self) -> Iterator[Any]:
        if self._kind is Kind.ARRAY:
            return iter(list(self._data))
        return iter(self.keys())

    def clear(self) -> None:
        """Empty a container; any scalar reverts to Undefined."""
        if self._kind is Kind.MAP:
            self._data.clear()
        elif self._kind is Kind.ARRAY:
            self._data.clear()
        else:
            self._kind, self._data = Kind.UNDEFINED, None

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def as_boolean(self) -> bool:
        if self._kind in (Kind.BOOLEAN, Kind.INTEGER, Kind.REAL):
            return bool(self._data)
        if self._kind in (Kind.STRING, Kind.URI, Kind.BINARY, Kind.MAP, Kind.ARRAY):
            return len(self._data) > 0
        if self._kind is Kind.UUID:
            return self._data != NULL_UUID
        return False

    def as_integer(self) -> int:
        if self._kind in (Kind.BOOLEAN, Kind.INTEGER):
            return int(self._data)
        if self._kind is Kind.REAL:
            if self._data != self._data or self._data in (float("inf"), float("-inf")):
                return 0
            return wrap_int32(int(self._data))
        if self._kind is Kind.STRING:
            try:
                return wrap_int32(int(float(self._data)))
            except (ValueError, OverflowError):
                return 0
        if self._kind is Kind.DATE:
            return wrap_int32(int(date_to_seconds(self._data)))
        return 0

    def as_real(self) -> float:
        if self._kind in (Kind.BOOLEAN, Kind.INTEGER, Kind.REAL):
            return float(self._data)
        if self._kind is Kind.STRING:
            try:
                return float(self._data)
            except ValueError:
                return 0.0
        if self._kind is Kind.DATE:
            return date_to_seconds(self._data)
        return 0.0

    def as_string(self) -> str:
        if self._kind is Kind.UNDEFINED:
            return ""
        if self._kind is Kind.BOOLEAN:
            return "true" if self._data else "false"
        if self._kind in (Kind.INTEGER, Kind.REAL):
            return repr(self._data)
        if self._kind is Kind.UUID:
            return str(self._data)
        if self._kind is Kind.DATE:
            return format_date(self._data)
        if self._kind in (Kind.STRING, Kind.URI):
            return self._data
        return ""

    def to_python(self) -> Any:
        """Convert back to native Python objects (URIs come back as ``URI``)."""
        if self._kind is Kind.MAP:
            return {key: item.to_python() for key, item in self.items()}
        if self._kind is Kind.ARRAY:
            return [item.to_python() for item in self._data]
        if self._kind is Kind.URI:
            return URI(self._data)
        return self._data

    def copy(self) -> Value:
        """Deep copy."""
        if self._kind is Kind.MAP:
            return Value._make(Kind.MAP, {key: item.copy() for key, item in self._data.items()})
        if self._kind is Kind.ARRAY:
            return Value._make(Kind.ARRAY, [item.copy() for item in self._data])
        return Value._make(self._kind, self._data)

    # ------------------------------------------------------------------
    # Equality
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            try:
                other = Value.from_python(other)
            except LLSDSerializationError:
                return NotImplemented
        if self._kind is not other._kind:
            return False
        if self._kind is Kind.ARRAY:
            return len(self._data) == len(other._data) and all(
                a == b for a, b in zip(self._data, other._data)
            )
        if self._kind is Kind.MAP:
            if self._data.keys() != other._data.keys():
                return False
            return all(item == other._data[key] for key, item in self._data.items())
        return self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._kind is Kind.UNDEFINED:
            return "Value()"
        if self._kind is Kind.MAP:
            inner = ", ".join(f"{key!r}: {item!r}" for key, item in self.items())
            return f"Value.map({{{inner}}})"
        if self._kind is Kind.ARRAY:
            return f"Value.array([{', '.join(repr(item) for item in self._data)}])"
        return f"Value.{self._kind.name.lower()}({self._data!r})"


# ----------------------------------------------------------------------------
# Date text shared by the notation and XML codecs
# ----------------------------------------------------------------------------


def format_date(when: datetime.datetime) -> str:
    """Render a UTC datetime as ISO-8601 with a trailing ``Z``.

    Fractional seconds are written only when present, with at least two
    digits: ``2006-04-24T16:11:33Z``, ``2007-12-28T09:22:53.10Z``.
    """
    when = to_utc(when)
    # years before 1000 still take four digits
    text = (
        f"{when.year:04d}-{when.month:02d}-{when.day:02d}"
        f"T{when.hour:02d}:{when.minute:02d}:{when.second:02d}"
    )
    if when.microsecond:
        frac = f"{when.microsecond:06d}".rstrip("0")
        text += "." + frac.ljust(2, "0")
    return text + "Z"


def parse_date(text: str) -> datetime.datetime:
    """Parse ``YYYY-MM-DDTHH:MM:SS[.ffff]Z``; an empty string is the epoch.

    Raises ValueError on anything else.
    """
    if text == "":
        return EPOCH
    if len(text) < 20 or text[-1] != "Z" or text[10] != "T":
        raise ValueError(f"invalid date string {text!r}")
    base = datetime.datetime.strptime(text[:19], "%Y-%m-%dT%H:%M:%S")
    frac = text[19:-1]
    micros = 0
    if frac:
        if frac[0] != "." or not frac[1:].isdigit():
            raise ValueError(f"invalid date string {text!r}")
        micros = round(float("0" + frac) * 1_000_000)
    return base.replace(tzinfo=datetime.timezone.utc) + datetime.timedelta(microseconds=micros)
