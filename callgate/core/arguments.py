"""Argument resolution for remote function calls.

Each raw token of a call expression is resolved against the current JSON
object. Resolution is pure and total: it never raises, and a token that
cannot be resolved degrades to ``None``.

Precedence (first match wins):
1. `name`   - raw reference; raw table lookup when raw lookup is allowed,
              otherwise the context value under ``name``
2. 'text'   - string literal, quotes stripped, no escapes
3. raw key  - raw table hit when raw lookup is allowed ("" echoes the key)
4. name     - context value under the token (``@`` prefix allowed), when present
5. true/false
6. number   - floating-point literal (not a name), resolved to float
7. fallback - context lookup of the raw token
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from callgate.core.errors import ArgumentTypeMismatch
from callgate.core.expression import CallExpression, is_name, lazy_signature, parse_expression


class ValueKind(str, Enum):
    """Kinds of JSON-compatible values an argument or result can have.

    OPAQUE stands for a generic object slot: it is used for null arguments
    in eager mode and matches any value when declared by a function.
    """

    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    MAP = "map"
    SEQUENCE = "sequence"
    OPAQUE = "opaque"

    @classmethod
    def supported(cls) -> list[str]:
        """Kinds a resolved argument value may have."""
        return [k.value for k in (cls.BOOLEAN, cls.NUMBER, cls.STRING, cls.MAP, cls.SEQUENCE)]


class ResolutionStrategy(str, Enum):
    """Calling convention for native functions.

    EAGER resolves every token to a value before the call. LAZY passes the
    current object plus each raw key so the function resolves them itself.
    """

    EAGER = "eager"
    LAZY = "lazy"

    @classmethod
    def from_flag(cls, parse_arg_values: bool) -> ResolutionStrategy:
        return cls.EAGER if parse_arg_values else cls.LAZY


def classify(value: Any) -> ValueKind | None:
    """Return the value kind of a JSON value, or None if unsupported."""
    if value is None:
        return ValueKind.OPAQUE
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, Mapping):
        return ValueKind.MAP
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    return None


def _is_wrapped(token: str, mark: str) -> bool:
    return (
        len(token) >= 2
        and token[0] == mark
        and token[-1] == mark
        and mark not in token[1:-1]
    )


def resolve_argument(
    token: str | None,
    context: Mapping[str, Any],
    contain_raw: bool = False,
    raw_literals: Mapping[str, Any] | None = None,
) -> Any:
    """Resolve one argument token to a value.

    Args:
        token: Raw argument token from the call expression
        context: Current JSON object
        contain_raw: Whether raw table lookups are permitted for this call
        raw_literals: Raw fragment table, consulted only when contain_raw is set

    Returns:
        The resolved value (None when nothing matches)
    """
    if token is None:
        return None

    raw_table = raw_literals if contain_raw and raw_literals is not None else None

    if _is_wrapped(token, "`"):
        name = token[1:-1]
        if contain_raw:
            return raw_table.get(name) if raw_table is not None else None
        return context.get(name)

    if _is_wrapped(token, "'"):
        return token[1:-1]

    if raw_table is not None:
        value = raw_table.get(token)
        if value is not None:
            return token if value == "" else value

    bare = token[1:] if token.startswith("@") else token
    if is_name(bare) and token in context:
        return context[token]

    if token == "true":
        return True
    if token == "false":
        return False

    # name-shaped tokens (nan, inf) stay references
    if not is_name(bare) and "_" not in token:
        try:
            return float(token)
        except ValueError:
            pass

    return context.get(token)


@dataclass(frozen=True)
class FunctionCall:
    """A parsed call with its arguments prepared for dispatch.

    Under EAGER, ``values`` holds the resolved argument values and ``kinds``
    their value kinds. Under LAZY, ``values`` holds the raw keys and the
    function receives the context first.

    Attributes:
        expression: The parsed call expression
        strategy: Calling convention the arguments were prepared for
        kinds: Value kind of each argument slot
        values: Argument values (resolved values or raw keys)
        context: The current JSON object
        contain_raw: Whether raw table lookups were permitted
        raw_literals: Raw fragment table used for resolution
    """

    expression: CallExpression
    strategy: ResolutionStrategy
    kinds: tuple[ValueKind, ...]
    values: tuple[Any, ...]
    context: Mapping[str, Any]
    contain_raw: bool = False
    raw_literals: Mapping[str, Any] | None = None

    @property
    def function(self) -> str:
        return self.expression.function

    @property
    def method(self) -> str:
        return self.expression.method

    @property
    def schema(self) -> str | None:
        return self.expression.schema

    @property
    def keys(self) -> tuple[str, ...]:
        return self.expression.keys

    def call_args(self) -> tuple[Any, ...]:
        """Positional arguments for the target callable."""
        if self.strategy == ResolutionStrategy.LAZY:
            return (self.context, *self.values)
        return self.values

    def signature(self) -> str:
        """Signature a native function needs to accept this call."""
        if self.strategy == ResolutionStrategy.LAZY:
            return lazy_signature(self.method, self.keys)
        params = [f"{key}: {kind.value}" for key, kind in zip(self.keys, self.kinds)]
        return f"{self.method}({', '.join(params)})"

    def to_call_string(self, use_value: bool = False, quote: str = "'") -> str:
        """Render the call with keys or resolved values as arguments.

        Booleans and numbers are written bare, everything else quoted.
        """
        args: Sequence[Any] = self.values if use_value else self.keys
        rendered = []
        for arg in args:
            if isinstance(arg, (bool, int, float)):
                rendered.append(json.dumps(arg))
            else:
                rendered.append(f"{quote}{arg}{quote}")
        return f"{self.method}({','.join(rendered)})"


def resolve_call(
    expression: CallExpression,
    context: Mapping[str, Any],
    strategy: ResolutionStrategy = ResolutionStrategy.LAZY,
    contain_raw: bool = False,
    raw_literals: Mapping[str, Any] | None = None,
) -> FunctionCall:
    """Prepare the arguments of a parsed call for the given convention.

    In EAGER mode a null value short-circuits: the remaining tokens are not
    resolved and every slot from the null one on is None with kind OPAQUE.

    Raises:
        ArgumentTypeMismatch: If an eagerly resolved value is not a JSON value
    """
    if strategy == ResolutionStrategy.LAZY:
        return FunctionCall(
            expression=expression,
            strategy=strategy,
            kinds=tuple(ValueKind.STRING for _ in expression.keys),
            values=expression.keys,
            context=context,
            contain_raw=contain_raw,
            raw_literals=raw_literals,
        )

    kinds: list[ValueKind] = []
    values: list[Any] = []
    for index, key in enumerate(expression.keys):
        value = resolve_argument(key, context, contain_raw, raw_literals)
        if value is None:
            remaining = len(expression.keys) - index
            kinds.extend([ValueKind.OPAQUE] * remaining)
            values.extend([None] * remaining)
            break

        kind = classify(value)
        if kind is None:
            raise ArgumentTypeMismatch(
                f"Value of argument '{key}' in {expression.function} has "
                f"unsupported type {type(value).__name__}. Arguments must be "
                f"one of {ValueKind.supported()}.",
                function=expression.function,
            )
        if kind == ValueKind.SEQUENCE:
            value = list(value)
        kinds.append(kind)
        values.append(value)

    return FunctionCall(
        expression=expression,
        strategy=strategy,
        kinds=tuple(kinds),
        values=tuple(values),
        context=context,
        contain_raw=contain_raw,
        raw_literals=raw_literals,
    )


def parse_function(
    function: str,
    context: Mapping[str, Any],
    sql_function: bool = False,
    contain_raw: bool = False,
    strategy: ResolutionStrategy = ResolutionStrategy.LAZY,
    raw_literals: Mapping[str, Any] | None = None,
) -> FunctionCall:
    """Parse a call string and prepare its arguments.

    SQL functions may be schema qualified and are always resolved eagerly,
    since the database needs values rather than keys.
    """
    expression = parse_expression(function, allow_schema=sql_function)
    if sql_function:
        strategy = ResolutionStrategy.EAGER
    return resolve_call(expression, context, strategy, contain_raw, raw_literals)
