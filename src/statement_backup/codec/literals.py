"""Literal codec: scalar values to and from the backup text syntax.

Three literal forms exist:

* text - single-quoted, embedded quotes doubled (``'It''s'``)
* null - the bare ``NULL`` token, any case
* number - optional minus, digits, optional ``.digits``

Extraction is deliberately lenient. Anything between literals that is not
one of the three forms (commas, whitespace, stray punctuation) is skipped,
so an unrecognised token silently disappears from the value list instead of
failing the row.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional, Union

QUOTE = "'"
NULL_TOKEN = "NULL"

_VALUE_PATTERN = re.compile(
    r"'((?:[^']|'')*)'"      # quoted text, '' is an escaped quote
    r"|(NULL)"               # null token
    r"|(-?\d+(?:\.\d+)?)",   # plain decimal number
    re.IGNORECASE,
)
_NUMERIC_TEXT = re.compile(r"^\s*-?\d+(?:\.\d+)?\s*$")


class ValueKind(Enum):
    """Kind of a literal found inside a tuple"""
    TEXT = "text"
    NUMBER = "number"
    NULL = "null"


@dataclass(frozen=True)
class SqlValue:
    """One scalar extracted from a tuple, tagged with its literal kind"""
    kind: ValueKind
    value: Union[str, Decimal, None] = None

    @classmethod
    def text(cls, value: str) -> 'SqlValue':
        return cls(ValueKind.TEXT, value)

    @classmethod
    def number(cls, value: Decimal) -> 'SqlValue':
        return cls(ValueKind.NUMBER, value)

    @classmethod
    def null(cls) -> 'SqlValue':
        return cls(ValueKind.NULL)

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def matches(self, token: str) -> bool:
        """True only for a text literal exactly equal to ``token``"""
        return self.kind is ValueKind.TEXT and self.value == token

    def as_text(self, default: str = "") -> str:
        """Text form of the value; null and empty text give ``default``"""
        if self.kind is ValueKind.TEXT:
            return self.value or default
        if self.kind is ValueKind.NUMBER:
            return format_number(self.value)
        return default

    def as_decimal(self, default: Optional[Decimal] = None) -> Optional[Decimal]:
        """Numeric form of the value; quoted numbers are accepted too"""
        if self.kind is ValueKind.NUMBER:
            return self.value
        if self.kind is ValueKind.TEXT and _NUMERIC_TEXT.match(self.value):
            try:
                return Decimal(self.value.strip())
            except InvalidOperation:
                return default
        return default

    def as_int(self, default: Optional[int] = None) -> Optional[int]:
        number = self.as_decimal()
        if number is None:
            return default
        return int(number)


def escape_literal(value: Optional[str]) -> str:
    """Render text as a quoted literal, or ``NULL`` for None.

    >>> escape_literal("It's")
    "'It''s'"
    """
    if value is None:
        return NULL_TOKEN
    return QUOTE + str(value).replace(QUOTE, QUOTE * 2) + QUOTE


def format_number(value: Union[int, float, Decimal]) -> str:
    """Render a number in plain positional notation (never exponent form)"""
    if value is None or isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, int):
        return str(value)

    number = value if isinstance(value, Decimal) else Decimal(str(value))
    if not number.is_finite():
        raise ValueError(f"Cannot encode non-finite number: {value}")
    return format(number, 'f')


def extract_values(tuple_text: str) -> List[SqlValue]:
    """Extract the ordered literals from the inner text of one tuple.

    Args:
        tuple_text: Text between a tuple's outer parentheses

    Returns:
        Values in the order they appear
    """
    values = []

    for match in _VALUE_PATTERN.finditer(tuple_text):
        quoted, null, number = match.groups()
        if quoted is not None:
            values.append(SqlValue.text(quoted.replace(QUOTE * 2, QUOTE)))
        elif null is not None:
            values.append(SqlValue.null())
        else:
            values.append(SqlValue.number(Decimal(number)))

    return values
