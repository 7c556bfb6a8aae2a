"""Tests for argument resolution."""

import pytest

from callgate.core.arguments import (
    FunctionCall,
    ResolutionStrategy,
    ValueKind,
    classify,
    parse_function,
    resolve_argument,
    resolve_call,
)
from callgate.core.errors import ArgumentTypeMismatch, MalformedExpression
from callgate.core.expression import parse_expression


@pytest.fixture
def context() -> dict:
    """Return a current JSON object."""
    return {
        "id": 82001,
        "name": "Lemon",
        "literal": "from context",
        "tags": ["a", "b"],
        "info": {"age": 20},
        "@role": "OWNER",
        "flag": False,
        "3abc": "odd key",
    }


class TestClassify:
    """Tests for value kind classification."""

    def test_json_kinds(self) -> None:
        assert classify(True) == ValueKind.BOOLEAN
        assert classify(1) == ValueKind.NUMBER
        assert classify(1.5) == ValueKind.NUMBER
        assert classify("x") == ValueKind.STRING
        assert classify({"a": 1}) == ValueKind.MAP
        assert classify([1]) == ValueKind.SEQUENCE
        assert classify((1,)) == ValueKind.SEQUENCE

    def test_null_is_opaque(self) -> None:
        assert classify(None) == ValueKind.OPAQUE

    def test_unsupported_type(self) -> None:
        assert classify({1, 2}) is None
        assert classify(object()) is None


class TestResolveArgument:
    """Tests for resolve_argument precedence."""

    def test_named_reference(self, context: dict) -> None:
        assert resolve_argument("id", context) == 82001
        assert resolve_argument("tags", context) == ["a", "b"]

    def test_at_prefixed_reference_uses_unstripped_key(self, context: dict) -> None:
        assert resolve_argument("@role", context) == "OWNER"

    def test_single_quoted_literal(self, context: dict) -> None:
        assert resolve_argument("'hello'", context) == "hello"
        assert resolve_argument("''", context) == ""

    def test_literal_wins_over_context_key(self, context: dict) -> None:
        assert resolve_argument("'literal'", context) == "literal"

    def test_booleans(self, context: dict) -> None:
        assert resolve_argument("true", context) is True
        assert resolve_argument("false", context) is False

    def test_context_value_wins_over_boolean_literal(self) -> None:
        assert resolve_argument("true", {"true": "yes"}) == "yes"

    def test_numbers(self, context: dict) -> None:
        assert resolve_argument("3.14", context) == 3.14
        assert resolve_argument("-2", context) == -2.0
        assert resolve_argument("1e3", context) == 1000.0
        assert resolve_argument("+2", context) == 2.0
        assert resolve_argument(".5", context) == 0.5

    def test_name_shaped_numbers_stay_references(self, context: dict) -> None:
        assert resolve_argument("nan", context) is None
        assert resolve_argument("inf", {"inf": "limit"}) == "limit"
        assert resolve_argument("1_000", context) is None

    def test_unresolved_token_is_none(self, context: dict) -> None:
        assert resolve_argument("missing", context) is None
        assert resolve_argument("not-a-name", context) is None

    def test_fallback_lookup_of_raw_token(self, context: dict) -> None:
        assert resolve_argument("3abc", context) == "odd key"

    def test_falsy_context_value(self, context: dict) -> None:
        assert resolve_argument("flag", context) is False

    def test_none_token(self, context: dict) -> None:
        assert resolve_argument(None, context) is None

    def test_idempotent(self, context: dict) -> None:
        for token in ["id", "'x'", "`name`", "true", "2.5", "missing"]:
            first = resolve_argument(token, context)
            assert resolve_argument(token, context) == first

    # === Raw references ===

    def test_backtick_with_raw_lookup(self, context: dict) -> None:
        raw = {"name": "X"}
        assert resolve_argument("`name`", context, True, raw) == "X"

    def test_backtick_without_raw_lookup_uses_context(self, context: dict) -> None:
        raw = {"name": "X"}
        assert resolve_argument("`name`", context, False, raw) == "Lemon"

    def test_backtick_with_raw_lookup_miss(self, context: dict) -> None:
        assert resolve_argument("`name`", context, True, {}) is None

    def test_raw_table_hit(self, context: dict) -> None:
        raw = {"now()": "CURRENT_TIMESTAMP"}
        assert resolve_argument("now()", context, True, raw) == "CURRENT_TIMESTAMP"

    def test_raw_table_empty_value_echoes_key(self, context: dict) -> None:
        raw = {"count(*)": ""}
        assert resolve_argument("count(*)", context, True, raw) == "count(*)"

    def test_raw_table_ignored_without_opt_in(self, context: dict) -> None:
        raw = {"id": "RAW"}
        assert resolve_argument("id", context, False, raw) == 82001
        assert resolve_argument("id", context, True, raw) == "RAW"


class TestResolveCall:
    """Tests for preparing calls under both conventions."""

    def test_lazy_keeps_keys(self, context: dict) -> None:
        call = resolve_call(parse_expression("f(id,name)"), context)
        assert call.strategy == ResolutionStrategy.LAZY
        assert call.values == ("id", "name")
        assert call.call_args() == (context, "id", "name")

    def test_eager_resolves_values(self, context: dict) -> None:
        call = resolve_call(
            parse_expression("f(id,'x',tags,info,true)"),
            context,
            ResolutionStrategy.EAGER,
        )
        assert call.values == (82001, "x", ["a", "b"], {"age": 20}, True)
        assert call.kinds == (
            ValueKind.NUMBER,
            ValueKind.STRING,
            ValueKind.SEQUENCE,
            ValueKind.MAP,
            ValueKind.BOOLEAN,
        )
        assert call.call_args() == call.values

    def test_eager_null_short_circuits(self, context: dict) -> None:
        call = resolve_call(
            parse_expression("f(id,missing,name)"),
            context,
            ResolutionStrategy.EAGER,
        )
        assert call.values == (82001, None, None)
        assert call.kinds == (ValueKind.NUMBER, ValueKind.OPAQUE, ValueKind.OPAQUE)

    def test_eager_unsupported_value(self) -> None:
        with pytest.raises(ArgumentTypeMismatch) as exc_info:
            resolve_call(
                parse_expression("f(s)"), {"s": {1, 2}}, ResolutionStrategy.EAGER
            )
        assert "'s'" in str(exc_info.value)
        assert "sequence" in str(exc_info.value)

    def test_eager_sequence_becomes_list(self) -> None:
        call = resolve_call(
            parse_expression("f(t)"), {"t": (1, 2)}, ResolutionStrategy.EAGER
        )
        assert call.values == ([1, 2],)


class TestFunctionCall:
    """Tests for FunctionCall rendering."""

    def test_signature_lazy(self, context: dict) -> None:
        call = resolve_call(parse_expression("isEven(n)"), context)
        assert call.signature() == "isEven(context: dict, n: str)"

    def test_signature_eager(self, context: dict) -> None:
        call = resolve_call(
            parse_expression("f(id,name)"), context, ResolutionStrategy.EAGER
        )
        assert call.signature() == "f(id: number, name: string)"

    def test_to_call_string_with_keys(self, context: dict) -> None:
        call = resolve_call(parse_expression("f(id,name)"), context)
        assert call.to_call_string() == "f('id','name')"

    def test_to_call_string_with_values(self, context: dict) -> None:
        call = resolve_call(
            parse_expression("f(id,name,flag)"), context, ResolutionStrategy.EAGER
        )
        assert call.to_call_string(use_value=True) == "f(82001,'Lemon',false)"
        assert call.to_call_string(use_value=True, quote='"') == 'f(82001,"Lemon",false)'


class TestParseFunction:
    """Tests for parse_function."""

    def test_sql_function_is_eager_and_qualified(self, context: dict) -> None:
        call = parse_function("db.length(name)", context, sql_function=True)
        assert isinstance(call, FunctionCall)
        assert call.schema == "db"
        assert call.strategy == ResolutionStrategy.EAGER
        assert call.values == ("Lemon",)

    def test_remote_function_rejects_schema(self, context: dict) -> None:
        with pytest.raises(MalformedExpression):
            parse_function("db.length(name)", context)

    def test_raw_lookup_for_sql_function(self, context: dict) -> None:
        call = parse_function(
            "ifnull(`name`,0)",
            context,
            sql_function=True,
            contain_raw=True,
            raw_literals={"name": "`name`"},
        )
        assert call.values == ("`name`", 0.0)
