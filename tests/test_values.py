"""Tests for value classification and coercion."""

import sys

import pytest

from elengine import (
    TypeCoercionError,
    ValueKind,
    display,
    kind_of,
    to_boolean,
    to_double,
    to_long,
    to_string,
)
from elengine.values import is_floating, is_numeric_string, to_number, type_name

limited_int_digits = pytest.mark.skipif(
    not hasattr(sys, "get_int_max_str_digits") or sys.get_int_max_str_digits() == 0,
    reason="interpreter has no integer string conversion limit",
)


class TestKinds:
    @pytest.mark.parametrize(
        "value,kind",
        [
            (None, ValueKind.NULL),
            (True, ValueKind.BOOLEAN),
            (0, ValueKind.LONG),
            (1.5, ValueKind.DOUBLE),
            ("x", ValueKind.STRING),
            ([1], ValueKind.OPAQUE),
            ({"a": 1}, ValueKind.OPAQUE),
        ],
    )
    def test_kind_of(self, value, kind):
        assert kind_of(value) is kind

    def test_type_name(self):
        assert type_name(None) == "null"
        assert type_name(False) == "boolean"
        assert type_name([]) == "list"

    def test_is_floating(self):
        assert is_floating(1.0)
        assert is_floating("2.5")
        assert is_floating("1e3")
        assert not is_floating("12")
        assert not is_floating(12)
        assert not is_floating(None)

    def test_is_numeric_string(self):
        assert is_numeric_string("")
        assert is_numeric_string("-4")
        assert is_numeric_string(".5")
        assert not is_numeric_string("nan")
        assert not is_numeric_string(" 1")
        assert not is_numeric_string(1)


class TestToBoolean:
    def test_truthy_and_falsy(self):
        assert to_boolean(None) is False
        assert to_boolean(True) is True
        assert to_boolean(0) is False
        assert to_boolean(0.0) is False
        assert to_boolean(3) is True
        assert to_boolean("") is False

    def test_boolean_strings_ignore_case(self):
        assert to_boolean("true") is True
        assert to_boolean("True") is True
        assert to_boolean("FALSE") is False

    def test_other_strings_fail(self):
        with pytest.raises(TypeCoercionError):
            to_boolean("yes")

    def test_opaque_fails(self):
        with pytest.raises(TypeCoercionError):
            to_boolean([])


class TestToNumbers:
    def test_to_long(self):
        assert to_long(None) == 0
        assert to_long("") == 0
        assert to_long("42") == 42
        assert to_long("-7") == -7
        assert to_long(3.9) == 3
        assert to_long(-3.9) == -3

    def test_to_long_rejects(self):
        for value in ["1.5", "abc", " 1", True, [1], float("nan"), float("inf")]:
            with pytest.raises(TypeCoercionError):
                to_long(value)

    def test_to_double(self):
        assert to_double(None) == 0.0
        assert to_double("") == 0.0
        assert to_double("1e3") == 1000.0
        assert to_double("-.5") == -0.5
        assert to_double(2) == 2.0

    def test_to_double_rejects(self):
        for value in ["nan", "inf", "1,5", False, {}]:
            with pytest.raises(TypeCoercionError):
                to_double(value)

    def test_to_double_rejects_integer_beyond_float_range(self):
        with pytest.raises(TypeCoercionError, match="too large for a double"):
            to_double(10**400)

    def test_to_double_of_huge_numeric_string(self):
        assert to_double("1" + "0" * 400) == float("inf")

    @limited_int_digits
    def test_to_long_rejects_too_many_digits(self):
        digits = "9" * (sys.get_int_max_str_digits() + 1)

        with pytest.raises(TypeCoercionError):
            to_long(digits)

    def test_to_number(self):
        assert to_number("2") == 2
        assert isinstance(to_number("2"), int)
        assert isinstance(to_number("2.0"), float)


class TestToString:
    def test_to_string(self):
        assert to_string(None) == ""
        assert to_string(True) == "true"
        assert to_string(False) == "false"
        assert to_string(12) == "12"
        assert to_string(1.5) == "1.5"
        assert to_string("x") == "x"

    @limited_int_digits
    def test_to_string_rejects_too_many_digits(self):
        with pytest.raises(TypeCoercionError, match="too large to convert"):
            to_string(10 ** (sys.get_int_max_str_digits() + 1))

    def test_display_shows_null(self):
        assert display(None) == "null"
        assert display(False) == "false"
        assert display("") == ""
