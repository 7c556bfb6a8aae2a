"""Access control for remote function calls.

The gate is a fail-closed whitelist. A missing restriction on an entry
(no tag, no method list) leaves that axis unrestricted, but a missing entry
always denies.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from callgate.core.errors import (
    FunctionCallError,
    MethodNotAllowed,
    RemoteDisabled,
    ScriptDisabled,
    TagMismatch,
    UnknownFunction,
    UnsupportedKind,
    VersionTooLow,
)
from callgate.core.registry import ExecutionKind, RegistryEntry


class RequestMethod(str, Enum):
    """Verbs of the enclosing JSON request."""

    GET = "GET"
    HEAD = "HEAD"
    GETS = "GETS"  # secured GET
    HEADS = "HEADS"  # secured HEAD
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class CallerContext:
    """Identity of the party requesting a function call.

    Attributes:
        method: Verb of the enclosing request
        tag: Caller classification (e.g. the table the request targets)
        version: Client API version
    """

    method: RequestMethod = RequestMethod.GET
    tag: str | None = None
    version: int = 0


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of an authorization check.

    Attributes:
        allowed: Whether the call may be dispatched
        error: The denial (None when allowed)
    """

    allowed: bool
    error: FunctionCallError | None = None

    @property
    def reason(self) -> str | None:
        return self.error.message if self.error is not None else None

    def raise_if_denied(self) -> None:
        if self.error is not None:
            raise self.error


ALLOWED = AccessDecision(allowed=True)


def _deny(error: FunctionCallError) -> AccessDecision:
    return AccessDecision(allowed=False, error=error)


class AccessGate:
    """Checks callers against registry entries before dispatch.

    Example:
        >>> gate = AccessGate()
        >>> entry = RegistryEntry(name="isEven", min_version=2)
        >>> gate.authorize("isEven", entry, CallerContext(version=1)).allowed
        False
    """

    def __init__(
        self,
        enable_remote_functions: bool = True,
        enable_script_functions: bool = True,
    ) -> None:
        self.enable_remote_functions = enable_remote_functions
        self.enable_script_functions = enable_script_functions

    def check_enabled(self) -> AccessDecision:
        """Check the process-wide remote function switch."""
        if not self.enable_remote_functions:
            return _deny(
                RemoteDisabled(
                    "Remote functions are disabled. Set "
                    "enable_remote_functions = true to allow them."
                )
            )
        return ALLOWED

    def authorize(
        self,
        name: str,
        entry: RegistryEntry | None,
        caller: CallerContext,
    ) -> AccessDecision:
        """Check whether a caller may invoke a registered function.

        Args:
            name: Requested function name
            entry: Registry entry for the name (None if unregistered)
            caller: Identity of the caller

        Returns:
            AccessDecision, carrying the first failed check as its error
        """
        enabled = self.check_enabled()
        if not enabled.allowed:
            return enabled

        if entry is None:
            return _deny(
                UnknownFunction(f"Remote function {name} is not registered", name)
            )

        kind = entry.kind
        if kind is None:
            return _deny(
                UnsupportedKind(
                    f"Remote function {name} has type {entry.execution_kind!r}, "
                    f"which must be one of {[k.value for k in ExecutionKind]}",
                    name,
                )
            )
        if kind == ExecutionKind.SCRIPT and not self.enable_script_functions:
            return _deny(
                ScriptDisabled(
                    f"Remote function {name} is a script function, but script "
                    "functions are disabled. Set enable_script_functions = true "
                    "to allow them.",
                    name,
                )
            )

        if caller.version < entry.min_version:
            return _deny(
                VersionTooLow(
                    f"Requests with version = {caller.version} may not call "
                    f"remote function {name}: version >= {entry.min_version} "
                    "is required",
                    name,
                    actual=caller.version,
                    required=entry.min_version,
                )
            )

        if entry.required_tag is not None and entry.required_tag != caller.tag:
            return _deny(
                TagMismatch(
                    f"Requests with tag = {caller.tag} may not call remote "
                    f"function {name}: tag = {entry.required_tag} is required",
                    name,
                    actual=caller.tag,
                    required=entry.required_tag,
                )
            )

        method = RequestMethod(caller.method).value
        if entry.allowed_methods and method not in entry.allowed_methods:
            allowed = sorted(entry.allowed_methods)
            return _deny(
                MethodNotAllowed(
                    f"Requests with method = {method} may not call remote "
                    f"function {name}: method must be one of {allowed}",
                    name,
                    actual=method,
                    required=allowed,
                )
            )

        return ALLOWED
