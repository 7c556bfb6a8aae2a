"""Call expression grammar.

A remote function is requested with a single flat call written inside a
JSON request::

    method(key0,key1,...)
    schema.method(key0,key1,...)     # SQL functions only

The grammar is deliberately flat: arguments are split on commas without
balancing quotes or parentheses, so nested calls are not supported.

Example:
    >>> expr = parse_expression("isContain(array,value)")
    >>> expr.method, expr.keys
    ('isContain', ('array', 'value'))
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from callgate.core.errors import MalformedExpression

NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ARGUMENT_DELIMITER = ","

_FORMAT_HINT = (
    "The whole value must be a single call like function(key0,key1,...), "
    "where function is a valid name and each key is used to look up a value "
    "in the request. Do not put spaces in the call."
)


def is_name(value: str | None) -> bool:
    """Check whether a string is a valid name token."""
    return bool(value) and NAME_PATTERN.match(value) is not None


@dataclass(frozen=True)
class CallExpression:
    """Parsed form of a call string.

    Attributes:
        function: The original call text
        schema: Qualifier before the dot (SQL functions only)
        method: Function name
        keys: Raw argument tokens in source order
    """

    function: str
    method: str
    keys: tuple[str, ...] = ()
    schema: str | None = None

    @property
    def arity(self) -> int:
        return len(self.keys)


def split_arguments(text: str) -> tuple[str, ...]:
    """Split the text between the parentheses into raw tokens.

    An empty argument list yields no tokens rather than one empty token.
    """
    if not text.strip():
        return ()
    return tuple(token.strip() for token in text.split(ARGUMENT_DELIMITER))


def parse_expression(expr: str, allow_schema: bool = False) -> CallExpression:
    """Parse a call string into a CallExpression.

    Args:
        expr: Call text, e.g. ``"isEven(n)"``
        allow_schema: Whether a ``schema.`` prefix is legal (SQL functions)

    Returns:
        The parsed CallExpression

    Raises:
        MalformedExpression: If the text violates the call grammar
    """
    kind = "SQL function" if allow_schema else "remote function"

    start = expr.find("(")
    end = expr.rfind(")")
    if start <= 0 or end != len(expr) - 1:
        raise MalformedExpression(
            f"'{expr}' is not a valid {kind} call. {_FORMAT_HINT}",
            function=expr,
        )

    head = expr[:start]
    dot = head.find(".")
    schema = head[:dot] if dot >= 0 else None
    method = head[dot + 1 :]

    if not is_name(method):
        raise MalformedExpression(
            f"Function name '{method}' in '{expr}' is invalid: it must not be "
            f"empty and must be a valid {kind} name. {_FORMAT_HINT}",
            function=expr,
        )
    if schema is not None and not allow_schema:
        raise MalformedExpression(
            f"Schema '{schema}' in '{expr}' is not allowed: remote functions "
            f"cannot be qualified. {_FORMAT_HINT}",
            function=expr,
        )
    if schema is not None and not is_name(schema):
        raise MalformedExpression(
            f"Schema '{schema}' in '{expr}' is invalid: it must not be empty "
            f"and must be a valid name. {_FORMAT_HINT}",
            function=expr,
        )

    return CallExpression(
        function=expr,
        method=method,
        keys=split_arguments(expr[start + 1 : end]),
        schema=schema,
    )


def lazy_signature(method: str, keys: tuple[str, ...] | list[str]) -> str:
    """Signature a native function needs under the lazy calling convention."""
    params = ["context: dict"] + [f"{key}: str" for key in keys]
    return f"{method}({', '.join(params)})"
