"""Dispatch of authorized remote function calls.

Native functions are looked up in an explicit table keyed by name. Each
binding declares its calling convention:

- LAZY (default): ``func(context, key0, key1, ...)``; the function resolves
  the keys itself, which avoids type ambiguity for containers and nulls.
- EAGER: ``func(value0, value1, ...)`` with a declared tuple of value kinds
  matched against the resolved arguments.

Script functions are loaded into the shared script runtime and called with
eagerly resolved values.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from callgate.core.arguments import FunctionCall, ResolutionStrategy, ValueKind, resolve_call
from callgate.core.errors import (
    ArgumentTypeMismatch,
    FunctionCallError,
    NoSuchCallable,
    ScriptFunctionMissing,
)
from callgate.core.registry import ExecutionKind, RegistryEntry
from callgate.core.runtime import ScriptRuntime, get_script_runtime

logger = logging.getLogger(__name__)

NATIVE_MARKER = "_native_function"


@dataclass(frozen=True)
class NativeBinding:
    """A native callable registered under a remote function name.

    Attributes:
        name: Remote function name
        func: The callable
        strategy: Calling convention the callable expects
        params: Value kinds of the parameters (EAGER only)
    """

    name: str
    func: Callable[..., Any]
    strategy: ResolutionStrategy = ResolutionStrategy.LAZY
    params: tuple[ValueKind, ...] | None = None

    def accepts(self, call: FunctionCall) -> bool:
        """Check whether this binding can take the prepared call."""
        if call.strategy != self.strategy:
            return False
        if self.strategy == ResolutionStrategy.EAGER:
            if self.params is None or len(self.params) != len(call.kinds):
                return False
            return all(
                param == ValueKind.OPAQUE or param == kind
                for param, kind in zip(self.params, call.kinds)
            )
        try:
            inspect.signature(self.func).bind(*call.call_args())
        except TypeError:
            return False
        return True


def native_function(
    name: str | None = None,
    *,
    strategy: ResolutionStrategy = ResolutionStrategy.LAZY,
    params: tuple[ValueKind, ...] | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark a receiver method as a native remote function.

    Example:
        >>> class Functions:
        ...     @native_function()
        ...     def isEven(self, context, number):
        ...         return context.get(number) % 2 == 0
    """
    if strategy == ResolutionStrategy.EAGER and params is None:
        raise ValueError("Eager native functions must declare their parameter kinds")

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        setattr(func, NATIVE_MARKER, (name, strategy, params))
        return func

    return decorator


class NativeFunctionTable:
    """Name to callable table for native remote functions."""

    def __init__(self) -> None:
        self._bindings: dict[str, list[NativeBinding]] = {}

    @classmethod
    def from_receiver(cls, receiver: object) -> NativeFunctionTable:
        """Build a table from the marked methods of a receiver object."""
        table = cls()
        table.bind_receiver(receiver)
        return table

    def register(
        self,
        name: str,
        func: Callable[..., Any],
        strategy: ResolutionStrategy = ResolutionStrategy.LAZY,
        params: tuple[ValueKind, ...] | None = None,
    ) -> NativeBinding:
        """Register a callable under a remote function name."""
        binding = NativeBinding(name=name, func=func, strategy=strategy, params=params)
        self._bindings.setdefault(name, []).append(binding)
        return binding

    def bind_receiver(self, receiver: object) -> int:
        """Register every method of ``receiver`` marked with native_function.

        Returns:
            Number of bindings added
        """
        count = 0
        for attr in dir(type(receiver)):
            marker = getattr(getattr(type(receiver), attr, None), NATIVE_MARKER, None)
            if marker is None:
                continue
            name, strategy, params = marker
            self.register(name or attr, getattr(receiver, attr), strategy, params)
            count += 1
        return count

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def names(self) -> list[str]:
        return sorted(self._bindings)

    def find(self, call: FunctionCall) -> NativeBinding:
        """Find the binding matching a call's name and signature.

        Raises:
            NoSuchCallable: If no binding matches
        """
        for binding in self._bindings.get(call.method, []):
            if binding.accepts(call):
                return binding

        raise NoSuchCallable(
            f"Remote function {call.function} has no native implementation "
            f"with signature {call.signature()}. Check that the function name "
            "and the number of arguments match a defined function; the call "
            "must be a single function(key0,key1,...) without spaces.",
            call.function,
            signature=call.signature(),
        )


class Dispatcher:
    """Executes authorized calls on the native table or the script runtime."""

    def __init__(
        self,
        natives: NativeFunctionTable,
        script_runtime: ScriptRuntime | None = None,
        script_timeout_ms: int | None = None,
    ) -> None:
        self.natives = natives
        self._script_runtime = script_runtime
        self.script_timeout_ms = script_timeout_ms

    @property
    def script_runtime(self) -> ScriptRuntime:
        if self._script_runtime is None:
            self._script_runtime = get_script_runtime()
        return self._script_runtime

    def dispatch(self, entry: RegistryEntry, call: FunctionCall) -> Any:
        """Run a call according to the entry's execution kind."""
        logger.debug(
            f"Dispatching {call.function} as {entry.execution_kind} "
            f"({call.strategy.value} arguments)"
        )
        if entry.kind == ExecutionKind.SCRIPT:
            return self.invoke_script(entry, call)
        return self.invoke_native(call)

    def invoke_native(self, call: FunctionCall) -> Any:
        """Call the native function bound to the call's name.

        Faults raised by the function itself propagate unchanged. A fault
        without a message is reported as an argument type mismatch.
        """
        binding = self.natives.find(call)
        try:
            return binding.func(*call.call_args())
        except FunctionCallError:
            raise
        except Exception as e:
            if str(e).strip():
                raise
            raise ArgumentTypeMismatch(
                f"Arguments of {call.function} do not fit {call.signature()}. "
                "Check that the values behind the keys have the types the "
                "function expects.",
                call.function,
            ) from e

    def invoke_script(self, entry: RegistryEntry, call: FunctionCall) -> Any:
        """Load the entry's script and call the function it defines."""
        if call.strategy != ResolutionStrategy.EAGER:
            call = resolve_call(
                call.expression,
                call.context,
                ResolutionStrategy.EAGER,
                call.contain_raw,
                call.raw_literals,
            )

        if entry.script_source is None:
            signature = f"{call.method}({', '.join(call.keys)})"
            raise ScriptFunctionMissing(
                f"Script for remote function {call.method} does not exist; "
                f"expected source defining {signature}",
                call.function,
                signature=signature,
            )

        return self.script_runtime.run(
            entry.script_source,
            call.method,
            list(call.values),
            timeout_ms=self.script_timeout_ms,
        )
