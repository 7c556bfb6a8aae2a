"""Core functionality for callgate.

This module contains:
- Call expression grammar and argument resolution
- Function registry and access control
- Native and script dispatch
- Return type verification
"""

from callgate.core.access import AccessDecision, AccessGate, CallerContext, RequestMethod
from callgate.core.arguments import (
    FunctionCall,
    ResolutionStrategy,
    ValueKind,
    parse_function,
    resolve_argument,
)
from callgate.core.expression import CallExpression, parse_expression
from callgate.core.registry import ExecutionKind, FunctionRegistry, RegistryEntry

__all__ = [
    "AccessDecision",
    "AccessGate",
    "CallExpression",
    "CallerContext",
    "ExecutionKind",
    "FunctionCall",
    "FunctionRegistry",
    "RegistryEntry",
    "RequestMethod",
    "ResolutionStrategy",
    "ValueKind",
    "parse_expression",
    "parse_function",
    "resolve_argument",
]


def __getattr__(name: str):
    """Lazy imports for modules that load the script runtime."""
    if name == "FunctionParser":
        from callgate.core.engine import FunctionParser

        return FunctionParser
    if name in ("Dispatcher", "NativeFunctionTable", "native_function"):
        from callgate.core import dispatch

        return getattr(dispatch, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
