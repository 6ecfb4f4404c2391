"""
Value classification at the ingestion boundary.

Every cell is tagged once with a :class:`ValueKind`; statistics and
detectors dispatch on the tag rather than probing Python types again.
"""

from datetime import date, datetime
from enum import Enum
import math
import numbers
import re
from typing import Any


class ValueKind(str, Enum):
    """Closed set of type tags recorded in field statistics."""

    NULL = "null"
    UNDEFINED = "undefined"
    ARRAY = "array"
    OBJECT = "object"
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    BOOLEAN_STRING = "boolean-string"
    DATE = "date"


class _Undefined:
    """Marker for a key that is absent from a row."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2})?$")
SLASH_DATE_PATTERN = re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}$")

SCALAR_KINDS = frozenset(
    {
        ValueKind.NULL,
        ValueKind.STRING,
        ValueKind.INTEGER,
        ValueKind.NUMBER,
        ValueKind.BOOLEAN,
        ValueKind.BOOLEAN_STRING,
        ValueKind.DATE,
    }
)
NUMERIC_KINDS = frozenset({ValueKind.INTEGER, ValueKind.NUMBER})


def is_missing(value: Any) -> bool:
    """None, the undefined marker, or a float NaN (pandas' missing value)."""
    if value is None or value is UNDEFINED:
        return True
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return math.isnan(value)
    # pandas NaT compares unequal to itself
    return isinstance(value, datetime) and value != value


def is_numeric(value: Any) -> bool:
    """Finite real number that is not a boolean."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


def is_date_string(value: str) -> bool:
    if ISO_DATE_PATTERN.match(value):
        try:
            datetime.fromisoformat(value)
        except ValueError:
            return False
        return True
    return bool(SLASH_DATE_PATTERN.match(value))


def classify_value(value: Any) -> ValueKind:
    """
    Tag a raw cell value.

    Integral floats are tagged ``integer``; infinities count as ``number``.
    ISO dates and ``d/m/y`` strings are ``date``, ``"true"``/``"false"``
    are ``boolean-string``.
    """
    if value is UNDEFINED:
        return ValueKind.UNDEFINED
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, numbers.Real):
        number = float(value)
        if math.isnan(number):
            return ValueKind.NULL
        if isinstance(value, numbers.Integral) or (
            math.isfinite(number) and number.is_integer()
        ):
            return ValueKind.INTEGER
        return ValueKind.NUMBER
    if isinstance(value, str):
        if is_date_string(value):
            return ValueKind.DATE
        if value in ("true", "false"):
            return ValueKind.BOOLEAN_STRING
        return ValueKind.STRING
    if isinstance(value, (datetime, date)):
        return ValueKind.NULL if is_missing(value) else ValueKind.DATE
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    return ValueKind.OBJECT
