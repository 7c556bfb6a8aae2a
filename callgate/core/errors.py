"""Exception taxonomy for remote function calls.

Every fault aborts the call it belongs to and is surfaced to the caller.
Nothing here is retried: the same expression, registry and context always
reproduce the same fault.

Hierarchy:
- FunctionCallError
  - MalformedExpression
  - FunctionPolicyError: RemoteDisabled, UnknownFunction, UnsupportedKind,
    ScriptDisabled
  - AccessDenied: VersionTooLow, TagMismatch, MethodNotAllowed
  - DispatchTargetMissing: NoSuchCallable, ScriptFunctionMissing
  - ArgumentTypeMismatch
  - ScriptExecutionFailed
  - ReturnTypeError: ReturnTypeMismatch, UnresolvableDeclaredType
"""

from __future__ import annotations

from typing import Any


class FunctionCallError(Exception):
    """Base class for all remote function faults.

    Attributes:
        message: Human-readable description of the fault
        function: The function expression or name involved (if known)
    """

    def __init__(self, message: str, function: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.function = function

    @property
    def kind(self) -> str:
        """Short fault kind, e.g. ``VersionTooLow``."""
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind,
            "message": self.message,
            "function": self.function,
        }


class MalformedExpression(FunctionCallError, ValueError):
    """The call string does not match ``[schema.]method(arg0,arg1,...)``."""


# === Configuration / policy denials ===


class FunctionPolicyError(FunctionCallError):
    """The function cannot be called because of registry or global policy."""


class RemoteDisabled(FunctionPolicyError):
    """Remote function calls are switched off process-wide."""


class UnknownFunction(FunctionPolicyError):
    """No registry entry exists for the requested function."""


class UnsupportedKind(FunctionPolicyError):
    """The registry entry has an execution kind the engine cannot run."""


class ScriptDisabled(FunctionPolicyError):
    """Script functions are switched off process-wide."""


# === Authorization denials ===


class AccessDenied(FunctionCallError):
    """The caller does not satisfy the registry entry's restrictions.

    Attributes:
        actual: The caller's value on the failing axis
        required: The constraint the entry imposes
    """

    def __init__(
        self,
        message: str,
        function: str | None = None,
        actual: Any = None,
        required: Any = None,
    ) -> None:
        super().__init__(message, function)
        self.actual = actual
        self.required = required

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["actual"] = self.actual
        result["required"] = self.required
        return result


class VersionTooLow(AccessDenied):
    """Caller version is below the entry's minimum version."""


class TagMismatch(AccessDenied):
    """Caller tag differs from the entry's required tag."""


class MethodNotAllowed(AccessDenied):
    """Caller request method is not in the entry's allowed methods."""


# === Dispatch target absence ===


class DispatchTargetMissing(FunctionCallError):
    """The registry allows the call but nothing can execute it.

    Attributes:
        signature: The signature the engine looked for
    """

    def __init__(
        self, message: str, function: str | None = None, signature: str | None = None
    ) -> None:
        super().__init__(message, function)
        self.signature = signature

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["signature"] = self.signature
        return result


class NoSuchCallable(DispatchTargetMissing):
    """No native function matches the name and calling signature."""


class ScriptFunctionMissing(DispatchTargetMissing):
    """A script entry has no source to load."""


# === Invocation faults ===


class ArgumentTypeMismatch(FunctionCallError, TypeError):
    """Argument values are incompatible with the target signature."""


class ScriptExecutionFailed(FunctionCallError):
    """The embedded script runtime raised while loading or calling."""


# === Diagnostics (strict return type checking only) ===


class ReturnTypeError(FunctionCallError):
    """Base class for return type diagnostics."""


class ReturnTypeMismatch(ReturnTypeError):
    """The actual result type does not match the declared return type."""


class UnresolvableDeclaredType(ReturnTypeError):
    """The declared return type name cannot be resolved to a type."""
