"""
Row Codec
=========
Converts a record to cell text (encode) and cell text back to a record
(decode) for a given header list.

Cell text is canonical and locale independent:

* ``None``      -> ``""``
* ``bool``      -> ``"true"`` / ``"false"``
* ``int``       -> plain digits
* ``float``     -> plain decimal, no exponent, no grouping (``1e20`` -> ``"100000000000000000000"``)
* ``Decimal``   -> plain decimal
* ``datetime``, ``date``, ``time`` -> ISO-8601

Encoding is lenient: a column whose accessor or formatter fails becomes a
blank cell.  Decoding is strict: text that cannot be coerced to the declared
field type raises :class:`ConversionError`.
"""

import dataclasses
import datetime
import logging
import math
import types
import typing
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import ConversionError, SchemaError
from .schema import column_descriptors

logger = logging.getLogger(__name__)

TRUE_TEXT = "true"
FALSE_TEXT = "false"
_TRUE_WORDS = {"true", "t", "yes", "y", "1"}
_FALSE_WORDS = {"false", "f", "no", "n", "0"}

_UNION_TYPES = (typing.Union, getattr(types, "UnionType", typing.Union))


# ------------------------------------------------------------------
# Single values
# ------------------------------------------------------------------

def to_text(value) -> str:
    """Canonical cell text for *value*."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return TRUE_TEXT if value else FALSE_TEXT
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return repr(value)
        # repr gives the shortest text that round-trips
        return format(Decimal(repr(value)), "f")
    if isinstance(value, Decimal):
        return format(value, "f") if value.is_finite() else str(value)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def from_text(text: str, target_type) -> Any:
    """Coerce non-blank cell *text* to *target_type*.

    Raises ``ValueError`` when the text does not parse.  Types outside the
    supported primitive set are returned as text.
    """
    target = unwrap_optional(target_type)
    if target is bool:
        word = text.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        raise ValueError(f"not a boolean: {text!r}")
    if target is int:
        _check_plain_number(text)
        try:
            return int(text)
        except ValueError:
            number = _decimal(text)
            if number != number.to_integral_value():
                raise ValueError(f"not an integer: {text!r}")
            return int(number)
    if target is float:
        _check_plain_number(text)
        return float(text)
    if target is Decimal:
        _check_plain_number(text)
        return _decimal(text)
    if target is datetime.datetime:
        return datetime.datetime.fromisoformat(text.strip())
    if target is datetime.date:
        text = text.strip()
        try:
            return datetime.date.fromisoformat(text)
        except ValueError:
            # date cells read back from a workbook come out as midnight datetimes
            moment = datetime.datetime.fromisoformat(text)
            if moment.time() != datetime.time(0):
                raise
            return moment.date()
    if target is datetime.time:
        return datetime.time.fromisoformat(text.strip())
    return text


def unwrap_optional(target_type):
    """``Optional[X]`` -> ``X``; anything else unchanged."""
    if typing.get_origin(target_type) in _UNION_TYPES:
        args = [a for a in typing.get_args(target_type) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return target_type


def _check_plain_number(text):
    # int(), float() and Decimal() also take "1_000" and non-ASCII digits
    if "_" in text or not text.isascii():
        raise ValueError(f"not a plain decimal number: {text!r}")


def _decimal(text):
    try:
        return Decimal(text.strip())
    except InvalidOperation:
        raise ValueError(f"not a number: {text!r}") from None


# ------------------------------------------------------------------
# Rows
# ------------------------------------------------------------------

def encode(record, headers, columns=None) -> dict:
    """Map every header to the cell text of *record*.

    Headers without a matching column fall back to an attribute of the same
    name; anything unresolvable becomes ``""``.
    """
    if columns is None:
        columns = columns_for(type(record))
    by_name = {c.name: c for c in columns}
    return {header: _encode_cell(record, header, by_name.get(header))
            for header in headers}


def _encode_cell(record, header, col):
    try:
        value = col.resolve(record) if col is not None else getattr(record, header)
        if col is not None and col.formatter is not None:
            return to_text(col.formatter(value))
        return to_text(value)
    except Exception as exc:
        logger.debug(f"Writing blank cell for column '{header}': {exc}")
        return ""


def columns_for(record_type):
    """Columns of *record_type*, or none when it only has plain attributes."""
    try:
        return column_descriptors(record_type)
    except SchemaError as exc:
        logger.debug(f"Encoding {record_type.__name__} by attribute name only: {exc}")
        return []


def decode(cells, headers, record_type, columns=None):
    """Build a *record_type* instance from positional *cells*.

    Short rows are padded with ``""``.  Blank cells decode to ``""`` for
    ``str`` fields; other fields (``Optional[str]`` included) keep their
    declared default, or get ``None``.
    """
    if columns is None:
        columns = column_descriptors(record_type)
    cells = normalize_row(cells, len(headers))
    position = {}
    for i, header in enumerate(headers):
        position.setdefault(header, i)

    defaults = _fields_with_defaults(record_type)
    kwargs = {}
    for col in columns:
        if not col.init or col.field_name is None:
            continue
        raw = cells[position[col.name]] if col.name in position else ""
        if raw == "" and col.type is not str:
            if col.field_name in defaults:
                continue
            kwargs[col.field_name] = None
            continue
        kwargs[col.field_name] = decode_cell(raw, col)

    try:
        return record_type(**kwargs)
    except TypeError as exc:
        raise SchemaError(f"Cannot construct {record_type.__name__} from row: {exc}") from exc


def decode_cell(raw: str, col):
    try:
        if col.parser is not None:
            return col.parser(raw)
        return from_text(raw, col.type)
    except (ValueError, TypeError, ArithmeticError) as exc:
        raise ConversionError(col.name, raw, unwrap_optional(col.type)) from exc


def normalize_row(cells, width: int) -> list:
    """Pad with ``""`` or truncate *cells* to *width* text values."""
    row = ["" if v is None else v if isinstance(v, str) else to_text(v)
           for v in list(cells)[:width]]
    row.extend([""] * (width - len(row)))
    return row


def _fields_with_defaults(record_type) -> set:
    if not dataclasses.is_dataclass(record_type):
        return set()
    return {f.name for f in dataclasses.fields(record_type)
            if f.default is not dataclasses.MISSING
            or f.default_factory is not dataclasses.MISSING}
