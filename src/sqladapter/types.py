"""
Type handling for scanning rows into caller-supplied destinations.

This module provides:
- Dest: a slot that receives one decoded column value
- convert_value: decode a raw column value into a Python type
- convert_date/convert_datetime: sqlite3 converters for DATE/DATETIME columns
"""
import datetime
import logging
from collections.abc import Callable
from typing import Any

import dateutil.parser

logger = logging.getLogger(__name__)

TRUE_STRINGS: set[str] = {'1', 't', 'true', 'y', 'yes', 'on'}
FALSE_STRINGS: set[str] = {'0', 'f', 'false', 'n', 'no', 'off'}


def _text(value: str | bytes) -> str:
    if isinstance(value, bytes):
        return value.decode()
    return value


def _to_int(value: Any) -> int:
    if isinstance(value, bool | int):
        return int(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f'converting {value!r} to int loses precision')
        return int(value)
    if isinstance(value, str | bytes):
        return int(_text(value).strip())
    raise TypeError(f'unsupported conversion of {type(value).__name__} to int')


def _to_float(value: Any) -> float:
    if isinstance(value, str | bytes):
        return float(_text(value).strip())
    return float(value)


def _to_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode()
    if isinstance(value, datetime.date | datetime.time):
        return value.isoformat()
    return str(value)


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value)
    return _to_str(value).encode()


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in {0, 1}:
        return bool(value)
    if isinstance(value, str | bytes):
        text = _text(value).strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise ValueError(f'converting {value!r} to bool is unsupported')


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str | bytes):
        return dateutil.parser.isoparse(_text(value))
    raise TypeError(f'unsupported conversion of {type(value).__name__} to datetime')


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str | bytes):
        return dateutil.parser.isoparse(_text(value)).date()
    raise TypeError(f'unsupported conversion of {type(value).__name__} to date')


_CONVERTERS: dict[type, Callable[[Any], Any]] = {
    int: _to_int,
    float: _to_float,
    str: _to_str,
    bytes: _to_bytes,
    bool: _to_bool,
    datetime.datetime: _to_datetime,
    datetime.date: _to_date,
}


def convert_value(value: Any, kind: Any = None, nullable: bool = False) -> Any:
    """Decode a raw column value into ``kind``.

    ``None`` and ``object`` leave the value untouched. Any other callable that
    is not a known type is called with the value.

    Raises TypeError or ValueError when the value cannot be converted,
    including NULL into a non-nullable destination.
    """
    if kind is None or kind is object:
        return value
    if value is None:
        if nullable:
            return None
        name = getattr(kind, '__name__', repr(kind))
        raise TypeError(f'converting NULL to {name} is unsupported')
    if type(value) is kind:
        return value
    converter = _CONVERTERS.get(kind)
    if converter is not None:
        return converter(value)
    return kind(value)


class Dest:
    """A scan destination holding one decoded column value.

    Examples
        >>> d = Dest(int)
        >>> d.assign('42')
        42
        >>> d.value
        42
    """

    __slots__ = ('kind', 'nullable', 'value')

    def __init__(self, kind: Any = None, nullable: bool = False) -> None:
        self.kind = kind
        self.nullable = nullable
        self.value = None

    def assign(self, value: Any) -> Any:
        """Convert and store ``value``, returning the stored result."""
        self.value = convert_value(value, self.kind, self.nullable)
        return self.value

    def __repr__(self) -> str:
        name = getattr(self.kind, '__name__', self.kind)
        return f'Dest({name}, value={self.value!r})'


def decode_row(row: tuple, dest: tuple) -> tuple:
    """Decode ``row`` into ``dest`` positionally.

    Raises ValueError on a count mismatch. Any failure converting a column
    is re-raised as TypeError or ValueError naming the column index.
    """
    if len(row) != len(dest):
        raise ValueError(f'expected {len(row)} destination arguments in scan, not {len(dest)}')
    decoded = []
    for i, (value, target) in enumerate(zip(row, dest)):
        try:
            if isinstance(target, Dest):
                decoded.append(target.assign(value))
            else:
                decoded.append(convert_value(value, target))
        except Exception as exc:
            error_cls = TypeError if isinstance(exc, TypeError) else ValueError
            raise error_cls(f'converting column index {i}: {exc}') from exc
    return tuple(decoded)


def convert_date(val: bytes) -> datetime.date:
    """Convert ISO 8601 date string to date object."""
    return dateutil.parser.isoparse(val.decode()).date()


def convert_datetime(val: bytes) -> datetime.datetime:
    """Convert ISO 8601 datetime string to datetime object."""
    return dateutil.parser.isoparse(val.decode())
