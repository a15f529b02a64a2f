"""
Encoding of row values into SQL literals.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Callable, Sequence

from .models import ExportOptions, FieldMeta
from .utils import add_slashes, backquote

# Control characters that would break a dump line; \x08 and \x09 are left as is.
CONTROL_ESCAPES = (
    ('\x00', '\\0'),
    ('\n', '\\n'),
    ('\r', '\\r'),
    ('\x1a', '\\Z'),
)


def escape_control_chars(value: str) -> str:
    for search, replace in CONTROL_ESCAPES:
        value = value.replace(search, replace)
    return value


def printable_bit_value(value: Any, length: int | None) -> str:
    """Render a BIT column value as a string of 0 and 1 characters."""
    if isinstance(value, (bytes, bytearray)):
        number = int.from_bytes(value, 'big')
    else:
        number = int(value)
    bits = format(number, 'b')
    if length:
        bits = bits.zfill(length)[-length:]
    return bits


def _format_timedelta(value: timedelta) -> str:
    micro = value // timedelta(microseconds=1)
    sign = '-' if micro < 0 else ''
    seconds, micro = divmod(abs(micro), 1_000_000)
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
    if micro:
        text += f".{micro:06d}"
    return text


def _decode(value: bytes | bytearray) -> str:
    return bytes(value).decode('utf-8')


def is_raw_binary(value: Any) -> bool:
    """True for bytes that cannot be written as UTF-8 text."""
    if not isinstance(value, (bytes, bytearray)):
        return False
    try:
        bytes(value).decode('utf-8')
    except UnicodeDecodeError:
        return True
    return False


# Text conversion for values that end up in quoted literals
_TEXT_FORMATTERS: dict[type, Callable[[Any], str]] = {
    str: lambda v: v,
    bytes: _decode,
    bytearray: _decode,
    datetime: lambda v: v.isoformat(sep=' '),
    date: lambda v: v.isoformat(),
    time: lambda v: v.isoformat(),
    timedelta: _format_timedelta,
    Decimal: str,
    bool: lambda v: '1' if v else '0',
}


def to_text(value: Any) -> str:
    formatter = _TEXT_FORMATTERS.get(type(value))
    if formatter:
        return formatter(value)
    return str(value)


class ValueEncoder:
    """Encodes fetched values as SQL literals according to export options."""

    def __init__(self, options: ExportOptions, escape: Callable[[str], str] = add_slashes):
        self.options = options
        self.escape = escape

    def encode(self, value: Any, field: FieldMeta) -> str:
        if value is None:
            return 'NULL'

        # timestamp is numeric on some servers and blobs sometimes are too
        if field.numeric and not field.is_timestamp and not field.blob:
            return to_text(value)

        # a TEXT column reports blob too, only a real BLOB is also binary
        if field.binary and field.blob and self.options.hex_for_blob:
            raw = value if isinstance(value, (bytes, bytearray)) else to_text(value).encode('utf-8')
            if not raw:
                return "''"
            return '0x' + bytes(raw).hex()

        if field.is_bit:
            return "b'" + self.escape(printable_bit_value(value, field.length)) + "'"

        # binary strings and BLOBs dumped without hex would not survive a text dump
        if is_raw_binary(value):
            return '0x' + bytes(value).hex()

        return "'" + escape_control_chars(self.escape(to_text(value))) + "'"

    def encode_row(self, row: Sequence[Any], fields: Sequence[FieldMeta]) -> list[str]:
        return [self.encode(value, field) for value, field in zip(row, fields)]


def build_unique_condition(
    fields: Sequence[FieldMeta],
    row: Sequence[Any],
    escape: Callable[[str], str] = add_slashes,
    backquotes: bool = True
) -> tuple[str, bool]:
    """
    Build a WHERE condition that identifies a row.

    Uses the primary key columns when the result contains them, otherwise the
    unique key columns, otherwise every column.

    Returns:
        Tuple of (condition, whether the condition is unique).
    """
    primary_key: list[str] = []
    unique_key: list[str] = []
    non_primary: list[str] = []

    for field, value in zip(fields, row):
        column = backquote(field.orgname or field.name, backquotes)

        if value is None:
            condition = f"{column} IS NULL"
        elif field.numeric and not field.is_timestamp and not field.blob:
            condition = f"{column} = {to_text(value)}"
        elif field.binary and field.blob:
            raw = value if isinstance(value, (bytes, bytearray)) else to_text(value).encode('utf-8')
            condition = f"{column} = CAST(0x{bytes(raw).hex()} AS BINARY)"
        elif field.is_bit:
            condition = f"{column} = b'{escape(printable_bit_value(value, field.length))}'"
        elif is_raw_binary(value):
            condition = f"{column} = 0x{bytes(value).hex()}"
        else:
            condition = f"{column} = '{escape_control_chars(escape(to_text(value)))}'"

        if field.primary_key:
            primary_key.append(condition)
        elif field.unique_key:
            unique_key.append(condition)
        non_primary.append(condition)

    if primary_key:
        return ' AND '.join(primary_key), True
    if unique_key:
        return ' AND '.join(unique_key), True
    return ' AND '.join(non_primary), False
