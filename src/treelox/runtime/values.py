"""
Runtime values for the interpreter.

Every runtime value is a ``Value`` carrying its ``ValueKind`` tag. The set of
kinds is closed: nil, boolean, number, string and function. Equality,
truthiness and printing all dispatch on the tag, never on the Python type of
``data`` (so a boolean never compares equal to a number).
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


class ValueKind(Enum):
    """The kinds of runtime value."""
    NIL = "nil"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    CALLABLE = "function"


@dataclass
class Value:
    """
    A runtime value.

    The `data` field holds the Python payload: None, bool, float, str, or a
    Callable object. The `kind` field is the language-level type tag.
    """
    data: Any
    kind: ValueKind

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.kind.value})"

    def __str__(self) -> str:
        return stringify(self)

    def is_truthy(self) -> bool:
        """Only nil and false are falsy."""
        if self.kind == ValueKind.NIL:
            return False
        if self.kind == ValueKind.BOOLEAN:
            return bool(self.data)
        return True

    @property
    def is_number(self) -> bool:
        return self.kind == ValueKind.NUMBER


# Convenience constructors

def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return TRUE if b else FALSE


def number_val(x: float) -> Value:
    """Create a number value."""
    return Value(float(x), ValueKind.NUMBER)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueKind.STRING)


def callable_val(fn) -> Value:
    """Wrap a Callable (user function or native) as a value."""
    return Value(fn, ValueKind.CALLABLE)


NIL = Value(None, ValueKind.NIL)
TRUE = Value(True, ValueKind.BOOLEAN)
FALSE = Value(False, ValueKind.BOOLEAN)


def literal_value(raw: Any) -> Value:
    """Convert a parsed literal (None, bool, float, str) to a Value."""
    if raw is None:
        return NIL
    # bool before number: bool is a subclass of int
    if isinstance(raw, bool):
        return bool_val(raw)
    if isinstance(raw, (int, float)):
        return number_val(raw)
    if isinstance(raw, str):
        return string_val(raw)
    raise ValueError(f"Unsupported literal: {raw!r}")


def values_equal(a: Value, b: Value) -> bool:
    """Language equality: values of different kinds are never equal."""
    if a.kind != b.kind:
        return False
    if a.kind == ValueKind.NIL:
        return True
    if a.kind == ValueKind.CALLABLE:
        return a.data is b.data
    return a.data == b.data


def format_number(x: float) -> str:
    """
    Render a number in plain decimal notation.

    Uses the shortest digits that read back as the same float, never an
    exponent. Integral values drop the decimal point, negative zero keeps its
    sign, and the non-finite values print as NaN, inf and -inf.
    """
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    text = format(Decimal(repr(x)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def stringify(value: Value) -> str:
    """Textual rendering used by print and str()."""
    if value.kind == ValueKind.NIL:
        return "nil"
    if value.kind == ValueKind.BOOLEAN:
        return "true" if value.data else "false"
    if value.kind == ValueKind.NUMBER:
        return format_number(value.data)
    if value.kind == ValueKind.STRING:
        return value.data
    if value.kind == ValueKind.CALLABLE:
        return str(value.data)
    raise ValueError(f"Unknown value kind: {value.kind}")
