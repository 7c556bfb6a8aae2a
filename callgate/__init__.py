"""callgate: remote function calls embedded in JSON requests.

This package parses call expressions such as ``isContain(array,value)``,
resolves their arguments against the current JSON object, checks the
caller against a function registry and dispatches to native Python
functions or to script functions run in an embedded JavaScript runtime.
"""

__version__ = "0.1.0"


def __getattr__(name: str):
    """Lazy imports for main package exports."""
    if name == "FunctionParser":
        from callgate.core.engine import FunctionParser

        return FunctionParser
    if name == "FunctionRegistry":
        from callgate.core.registry import FunctionRegistry

        return FunctionRegistry
    if name == "parse_expression":
        from callgate.core.expression import parse_expression

        return parse_expression
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "FunctionParser",
    "FunctionRegistry",
    "parse_expression",
    "__version__",
]
