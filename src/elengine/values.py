"""Runtime values and the coercion rules between them.

Expression values are plain Python objects:

    Null     None
    Boolean  bool
    Long     int
    Double   float
    String   str
    Opaque   anything else (dicts, lists, host objects), passed through

``bool`` is a subclass of ``int`` in Python, so every check here classifies
booleans before numbers. Coercions return new values and never mutate.
"""

import re
from enum import Enum
from typing import Any

from elengine.errors import TypeCoercionError

LONG_PATTERN = re.compile(r"[+-]?[0-9]+")
DOUBLE_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class ValueKind(Enum):
    """The dynamic type of a value."""

    NULL = "null"
    BOOLEAN = "boolean"
    LONG = "long"
    DOUBLE = "double"
    STRING = "string"
    OPAQUE = "opaque"


def kind_of(value: Any) -> ValueKind:
    """Classify a Python object as one of the expression value kinds."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.LONG
    if isinstance(value, float):
        return ValueKind.DOUBLE
    if isinstance(value, str):
        return ValueKind.STRING
    return ValueKind.OPAQUE


def type_name(value: Any) -> str:
    """Name of a value's type for error messages."""
    kind = kind_of(value)
    if kind is ValueKind.OPAQUE:
        return type(value).__name__
    return kind.value


def is_number(value: Any) -> bool:
    return kind_of(value) in (ValueKind.LONG, ValueKind.DOUBLE)


def is_floating(value: Any) -> bool:
    """True for floats and for strings that read as floating-point numbers."""
    if isinstance(value, float):
        return True
    if isinstance(value, str):
        return "." in value or "e" in value or "E" in value
    return False


def is_numeric_string(value: Any) -> bool:
    """True for strings that ``to_long``/``to_double`` accept (including "")."""
    if not isinstance(value, str):
        return False
    return value == "" or DOUBLE_PATTERN.fullmatch(value) is not None


def to_boolean(value: Any) -> bool:
    """Coerce a value to a boolean.

    Null is false, numbers are true when non-zero, the empty string is false
    and "true"/"false" (any case) parse literally. Other strings and opaque
    values cannot be coerced.
    """
    kind = kind_of(value)
    if kind is ValueKind.NULL:
        return False
    if kind is ValueKind.BOOLEAN:
        return value
    if kind in (ValueKind.LONG, ValueKind.DOUBLE):
        return value != 0
    if kind is ValueKind.STRING:
        if value == "":
            return False
        lowered = value.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        raise TypeCoercionError(f"Cannot coerce string {value!r} to boolean")
    raise TypeCoercionError(f"Cannot coerce {type_name(value)} to boolean")


def to_long(value: Any) -> int:
    """Coerce a value to an integer. Null and "" are 0."""
    kind = kind_of(value)
    if kind is ValueKind.NULL:
        return 0
    if kind is ValueKind.LONG:
        return value
    if kind is ValueKind.DOUBLE:
        if value != value or value in (float("inf"), float("-inf")):
            raise TypeCoercionError(f"Cannot coerce {value} to long")
        return int(value)
    if kind is ValueKind.STRING:
        if value == "":
            return 0
        if LONG_PATTERN.fullmatch(value):
            try:
                return int(value)
            except ValueError:
                # Too many digits for the interpreter to convert
                pass
        raise TypeCoercionError(f"Cannot coerce string {value!r:.40} to long")
    raise TypeCoercionError(f"Cannot coerce {type_name(value)} to long")


def to_double(value: Any) -> float:
    """Coerce a value to a float. Null and "" are 0.0."""
    kind = kind_of(value)
    if kind is ValueKind.NULL:
        return 0.0
    if kind is ValueKind.DOUBLE:
        return float(value)
    if kind is ValueKind.LONG:
        try:
            return float(value)
        except OverflowError:
            raise TypeCoercionError(
                f"Integer with {value.bit_length()} bits is too large for a double"
            ) from None
    if kind is ValueKind.STRING:
        if value == "":
            return 0.0
        if DOUBLE_PATTERN.fullmatch(value):
            return float(value)
        raise TypeCoercionError(f"Cannot coerce string {value!r} to double")
    raise TypeCoercionError(f"Cannot coerce {type_name(value)} to double")


def to_number(value: Any) -> int | float:
    """Coerce to a float when the value looks floating, otherwise to an int."""
    if is_floating(value):
        return to_double(value)
    return to_long(value)


def to_string(value: Any) -> str:
    """Coerce a value to its string form. Null is the empty string."""
    kind = kind_of(value)
    if kind is ValueKind.NULL:
        return ""
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind is ValueKind.STRING:
        return value
    try:
        return str(value)
    except ValueError:
        raise TypeCoercionError(
            f"Integer with {value.bit_length()} bits is too large to convert to string"
        ) from None


def display(value: Any) -> str:
    """Render a value for people: like ``to_string`` but Null shows as null."""
    if value is None:
        return "null"
    return to_string(value)
