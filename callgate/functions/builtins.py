"""Built-in native remote functions.

Functions here use the lazy calling convention: they receive the current
JSON object and the raw argument keys, and resolve the keys themselves, so
literal arguments such as ``'text'`` or ``3`` work as well as references.

Example registry rows exposing them::

    {"name": "isContain", "type": 0, "returnType": "Boolean"}
    {"name": "countArray", "type": 0, "methods": "GET,GETS"}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from callgate.core.arguments import ResolutionStrategy, ValueKind, resolve_argument
from callgate.core.dispatch import native_function


def _value(context: Mapping[str, Any], key: str) -> Any:
    return resolve_argument(key, context)


def _number(context: Mapping[str, Any], key: str) -> int | float:
    value = _value(context, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Value of {key} must be a number, got: {value!r}")
    return value


class BuiltinFunctions:
    """Receiver holding the default native functions."""

    @native_function()
    def isContain(self, context: Mapping[str, Any], array: str, value: str) -> bool:
        """Check whether the array under ``array`` contains the value."""
        items = _value(context, array)
        if items is None:
            return False
        return _value(context, value) in items

    @native_function()
    def isEmpty(self, context: Mapping[str, Any], key: str) -> bool:
        value = _value(context, key)
        return value is None or len(value) == 0

    @native_function()
    def countArray(self, context: Mapping[str, Any], array: str) -> int:
        items = _value(context, array)
        return 0 if items is None else len(items)

    @native_function()
    def countObject(self, context: Mapping[str, Any], obj: str) -> int:
        value = _value(context, obj)
        return 0 if value is None else len(value)

    @native_function()
    def getFromArray(
        self, context: Mapping[str, Any], array: str, position: str
    ) -> Any:
        """Get the item at ``position`` (None when out of range)."""
        items = _value(context, array)
        index = int(_number(context, position))
        if items is None or not -len(items) <= index < len(items):
            return None
        return items[index]

    @native_function()
    def getFromObject(self, context: Mapping[str, Any], obj: str, key: str) -> Any:
        value = _value(context, obj)
        if value is None:
            return None
        return value.get(_value(context, key))

    @native_function()
    def isEven(self, context: Mapping[str, Any], number: str) -> bool:
        return _number(context, number) % 2 == 0

    @native_function()
    def plus(self, context: Mapping[str, Any], a: str, b: str) -> int | float:
        return _number(context, a) + _number(context, b)

    @native_function()
    def concat(self, context: Mapping[str, Any], *keys: str) -> str:
        """Join the string forms of all values (None is skipped)."""
        values = (_value(context, key) for key in keys)
        return "".join(str(v) for v in values if v is not None)

    # Eager convention: arguments arrive already resolved
    @native_function(
        strategy=ResolutionStrategy.EAGER,
        params=(ValueKind.NUMBER, ValueKind.NUMBER),
    )
    def add(self, a: float, b: float) -> float:
        return a + b
