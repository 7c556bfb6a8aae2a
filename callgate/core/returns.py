"""Return type verification for remote functions (diagnostics mode).

The registry may declare a return type name for each function. When strict
checking is on, the actual result is compared with it after the call. The
result itself is never changed.

Declared names resolve to value kinds (``Boolean``, ``Number``, ``String``,
``JSONObject``, ``JSONArray``, ``Object`` and their lowercase/Python
spellings), to ``int`` for integral names, or, when dotted, to an importable
class such as ``decimal.Decimal``.
"""

from __future__ import annotations

import importlib
from typing import Any

from callgate.core.arguments import ValueKind, classify
from callgate.core.errors import ReturnTypeMismatch, UnresolvableDeclaredType

ResolvedType = ValueKind | type

VOID_NAMES = frozenset({"void", "none", "null"})

SIMPLE_TYPES: dict[str, ResolvedType] = {
    "boolean": ValueKind.BOOLEAN,
    "bool": ValueKind.BOOLEAN,
    "number": ValueKind.NUMBER,
    "double": ValueKind.NUMBER,
    "float": ValueKind.NUMBER,
    "integer": int,
    "int": int,
    "long": int,
    "short": int,
    "string": ValueKind.STRING,
    "str": ValueKind.STRING,
    "jsonobject": ValueKind.MAP,
    "map": ValueKind.MAP,
    "dict": ValueKind.MAP,
    "object": ValueKind.OPAQUE,
    "any": ValueKind.OPAQUE,
    "jsonarray": ValueKind.SEQUENCE,
    "list": ValueKind.SEQUENCE,
    "array": ValueKind.SEQUENCE,
}


def is_void(declared: str | None) -> bool:
    """Check whether a declared type means 'no result'."""
    return declared is None or not declared.strip() or declared.strip().lower() in VOID_NAMES


def resolve_declared_type(declared: str, function: str | None = None) -> ResolvedType:
    """Resolve a declared return type name.

    Raises:
        UnresolvableDeclaredType: If the name matches no known type
    """
    name = declared.strip()
    simple = SIMPLE_TYPES.get(name.lower())
    if simple is not None:
        return simple

    module_name, _, attr = name.rpartition(".")
    if module_name and attr:
        try:
            resolved = getattr(importlib.import_module(module_name), attr)
        except (ImportError, AttributeError):
            resolved = None
        if isinstance(resolved, type):
            return resolved

    raise UnresolvableDeclaredType(
        f"Return type {declared!r} configured for remote function {function} "
        "cannot be resolved to a type",
        function,
    )


def is_assignable(value: Any, declared: ResolvedType) -> bool:
    """Check whether a non-null result satisfies a resolved declared type."""
    if isinstance(declared, ValueKind):
        if declared == ValueKind.OPAQUE:
            return True
        return classify(value) == declared
    if declared is int and isinstance(value, bool):
        return False
    return isinstance(value, declared)


def verify_return_type(
    function: str,
    result: Any,
    declared: str | None,
    enabled: bool = True,
) -> None:
    """Compare a function result with its declared return type.

    Args:
        function: Function name (for messages)
        result: Actual result of the call
        declared: Declared return type name from the registry
        enabled: Whether strict checking is on (no-op otherwise)

    Raises:
        ReturnTypeMismatch: If result and declaration disagree
        UnresolvableDeclaredType: If the declared name cannot be resolved
    """
    if not enabled:
        return

    actual = None if result is None else type(result).__name__
    if is_void(declared):
        if result is not None:
            raise ReturnTypeMismatch(
                f"Remote function {function} returned {actual}, but no return "
                "type is configured for it",
                function,
            )
        return

    resolved = resolve_declared_type(declared, function)  # type: ignore[arg-type]
    if result is None:
        raise ReturnTypeMismatch(
            f"Remote function {function} returned nothing, but return type "
            f"{declared} is configured for it",
            function,
        )
    if not is_assignable(result, resolved):
        raise ReturnTypeMismatch(
            f"Remote function {function} returned {actual}, which does not "
            f"match the configured return type {declared}",
            function,
        )
