"""
Unit tests for runtime values.
"""

import pytest
from treelox import Value, ValueKind, NativeFunction
from treelox.runtime import (
    NIL, TRUE, FALSE,
    bool_val, number_val, string_val, callable_val, literal_value,
    values_equal, format_number, stringify,
)


class TestTruthiness:
    """Only nil and false are falsy."""

    @pytest.mark.parametrize("value,expected", [
        (NIL, False),
        (FALSE, False),
        (TRUE, True),
        (number_val(0), True),
        (string_val(""), True),
    ])
    def test_truthiness(self, value, expected):
        assert value.is_truthy() is expected


class TestEquality:
    """Test language equality."""

    def test_same_kind_same_payload(self):
        assert values_equal(number_val(1), number_val(1.0))
        assert values_equal(string_val("a"), string_val("a"))
        assert values_equal(NIL, NIL)

    def test_different_payload(self):
        assert not values_equal(number_val(1), number_val(2))
        assert not values_equal(string_val("a"), string_val("b"))

    def test_cross_kind_never_equal(self):
        """A boolean never equals a number, even when Python says so."""
        assert not values_equal(TRUE, number_val(1))
        assert not values_equal(FALSE, number_val(0))
        assert not values_equal(NIL, FALSE)
        assert not values_equal(string_val("1"), number_val(1))

    def test_callables_compare_by_identity(self):
        native = NativeFunction("f", 0, lambda: NIL)
        other = NativeFunction("f", 0, lambda: NIL)
        assert values_equal(callable_val(native), callable_val(native))
        assert not values_equal(callable_val(native), callable_val(other))


class TestConstructors:
    """Test value construction."""

    def test_number_is_float(self):
        value = number_val(3)
        assert value.kind == ValueKind.NUMBER
        assert isinstance(value.data, float)

    def test_bool_val_returns_shared_values(self):
        assert bool_val(True) is TRUE
        assert bool_val(False) is FALSE

    def test_literal_value(self):
        assert literal_value(None) is NIL
        assert literal_value(True) is TRUE
        assert literal_value(2.5).kind == ValueKind.NUMBER
        assert literal_value("s").kind == ValueKind.STRING

    def test_unsupported_literal(self):
        with pytest.raises(ValueError):
            literal_value([1, 2])


class TestFormatting:
    """Test printing of values."""

    @pytest.mark.parametrize("number,text", [
        (3.0, "3"),
        (-2.0, "-2"),
        (2.5, "2.5"),
        (0.1, "0.1"),
        (1e21, "1000000000000000000000"),
        (1e-7, "0.0000001"),
        (-0.0, "-0"),
        (float("nan"), "NaN"),
        (float("inf"), "inf"),
        (float("-inf"), "-inf"),
    ])
    def test_format_number(self, number, text):
        assert format_number(number) == text

    def test_stringify_kinds(self):
        assert stringify(NIL) == "nil"
        assert stringify(TRUE) == "true"
        assert stringify(FALSE) == "false"
        assert stringify(string_val("plain")) == "plain"

    def test_stringify_native(self):
        native = NativeFunction("clock", 0, lambda: NIL)
        assert stringify(callable_val(native)) == "<native fn clock>"

    def test_str_uses_stringify(self):
        assert str(number_val(4)) == "4"
        assert str(Value("x", ValueKind.STRING)) == "x"


class TestRuntimeExports:
    """Test the runtime package's public names."""

    def test_all_names_exist(self):
        import treelox.runtime as runtime
        missing = [name for name in runtime.__all__ if not hasattr(runtime, name)]
        assert missing == []

    def test_native_function_fields(self):
        native = NativeFunction("id", 1, lambda value: value)
        assert native.arity() == 1
        assert native.implementation(TRUE) is TRUE
