"""Native remote functions shipped with callgate."""

from callgate.functions.builtins import BuiltinFunctions

__all__ = ["BuiltinFunctions"]
