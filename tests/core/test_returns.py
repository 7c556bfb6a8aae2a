"""Tests for return type verification."""

from decimal import Decimal

import pytest

from callgate.core.arguments import ValueKind
from callgate.core.errors import ReturnTypeMismatch, UnresolvableDeclaredType
from callgate.core.returns import (
    is_assignable,
    is_void,
    resolve_declared_type,
    verify_return_type,
)


class TestResolveDeclaredType:
    """Tests for resolving declared type names."""

    def test_simple_names(self) -> None:
        assert resolve_declared_type("Boolean") == ValueKind.BOOLEAN
        assert resolve_declared_type("Number") == ValueKind.NUMBER
        assert resolve_declared_type("String") == ValueKind.STRING
        assert resolve_declared_type("JSONObject") == ValueKind.MAP
        assert resolve_declared_type("JSONArray") == ValueKind.SEQUENCE
        assert resolve_declared_type("Object") == ValueKind.OPAQUE
        assert resolve_declared_type("Integer") is int
        assert resolve_declared_type("long") is int

    def test_qualified_name(self) -> None:
        assert resolve_declared_type("decimal.Decimal") is Decimal

    def test_unresolvable(self) -> None:
        for name in ["Frobnicator", "nosuchmodule.Thing", "decimal.NoSuchThing", "os.sep"]:
            with pytest.raises(UnresolvableDeclaredType):
                resolve_declared_type(name, "f")

    def test_void_names(self) -> None:
        assert is_void(None) is True
        assert is_void("void") is True
        assert is_void("  ") is True
        assert is_void("String") is False


class TestIsAssignable:
    """Tests for is_assignable."""

    def test_kinds(self) -> None:
        assert is_assignable(True, ValueKind.BOOLEAN)
        assert is_assignable(3, ValueKind.NUMBER)
        assert is_assignable(3.5, ValueKind.NUMBER)
        assert not is_assignable(True, ValueKind.NUMBER)
        assert not is_assignable("3", ValueKind.NUMBER)
        assert is_assignable({"a": 1}, ValueKind.MAP)
        assert is_assignable([1], ValueKind.SEQUENCE)

    def test_object_accepts_anything(self) -> None:
        for value in [1, "x", [], {}, False, object()]:
            assert is_assignable(value, ValueKind.OPAQUE)

    def test_integer_excludes_bool_and_float(self) -> None:
        assert is_assignable(3, int)
        assert not is_assignable(True, int)
        assert not is_assignable(3.0, int)


class TestVerifyReturnType:
    """Tests for verify_return_type."""

    def test_disabled_is_noop(self) -> None:
        verify_return_type("f", "x", "Boolean", enabled=False)
        verify_return_type("f", None, "NoSuchType", enabled=False)

    def test_matching_result(self) -> None:
        verify_return_type("f", True, "Boolean")
        verify_return_type("f", 2, "Integer")
        verify_return_type("f", None, None)
        verify_return_type("f", None, "void")

    def test_void_declared_with_result(self) -> None:
        with pytest.raises(ReturnTypeMismatch) as exc_info:
            verify_return_type("f", 1, None)
        assert "f" in str(exc_info.value)

    def test_declared_type_without_result(self) -> None:
        with pytest.raises(ReturnTypeMismatch):
            verify_return_type("f", None, "String")

    def test_wrong_type(self) -> None:
        with pytest.raises(ReturnTypeMismatch) as exc_info:
            verify_return_type("isEven", "yes", "Boolean")
        assert "str" in str(exc_info.value)
        assert "Boolean" in str(exc_info.value)

    def test_unresolvable_is_configuration_error(self) -> None:
        with pytest.raises(UnresolvableDeclaredType):
            verify_return_type("f", 1, "Frobnicator")
