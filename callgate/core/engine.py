"""Remote function engine.

Runs one call expression through the whole pipeline:

    parse -> authorize -> resolve arguments -> dispatch -> verify return type

Example:
    >>> from callgate.core.registry import FunctionRegistry
    >>> registry = FunctionRegistry()
    >>> registry.load_rows([{"name": "isEven", "type": 0}])
    1
    >>> parser = FunctionParser(registry=registry)
    >>> parser.invoke("isEven(n)", {"n": 4})
    True
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from callgate.config import Settings, get_settings
from callgate.core.access import AccessGate, CallerContext, RequestMethod
from callgate.core.arguments import (
    FunctionCall,
    ResolutionStrategy,
    parse_function,
    resolve_call,
)
from callgate.core.dispatch import Dispatcher, NativeFunctionTable
from callgate.core.expression import parse_expression
from callgate.core.registry import ExecutionKind, FunctionRegistry, get_registry
from callgate.core.returns import verify_return_type
from callgate.core.runtime import ScriptRuntime

logger = logging.getLogger(__name__)


class FunctionParser:
    """Parses and invokes remote functions on behalf of one request.

    The request pipeline creates a parser per request with the caller's
    identity and updates ``key``, ``parent_path``, ``current_name`` and
    ``current_object`` as it walks the request document.

    Attributes:
        method: Verb of the enclosing request
        tag: Caller tag
        version: Caller API version
        request: The whole request document
        key: Key of the value being computed
        parent_path: Path of the object holding ``key``
        current_name: Name of the object holding ``key``
        current_object: The JSON object arguments are resolved against
    """

    def __init__(
        self,
        method: RequestMethod | str = RequestMethod.GET,
        tag: str | None = None,
        version: int = 0,
        request: Mapping[str, Any] | None = None,
        *,
        registry: FunctionRegistry | None = None,
        natives: NativeFunctionTable | None = None,
        script_runtime: ScriptRuntime | None = None,
        settings: Settings | None = None,
        strategy: ResolutionStrategy | None = None,
        raw_literals: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize the parser.

        Args:
            method: Verb of the enclosing request
            tag: Caller tag
            version: Caller API version
            request: The whole request document
            registry: Function registry (process registry if None)
            natives: Native function table (built-in functions if None)
            script_runtime: Script runtime (process runtime if None)
            settings: Global toggles (process settings if None)
            strategy: Native calling convention (from settings if None)
            raw_literals: Raw SQL fragment table for raw-enabled calls
        """
        self.method = RequestMethod(method or RequestMethod.GET)
        self.tag = tag
        self.version = version
        self.request: Mapping[str, Any] = request if request is not None else {}
        self.key: str | None = None
        self.parent_path: str | None = None
        self.current_name: str | None = None
        self.current_object: Mapping[str, Any] = {}

        self.settings = settings or get_settings()
        self.registry = registry if registry is not None else get_registry()
        if natives is None:
            from callgate.functions.builtins import BuiltinFunctions

            natives = NativeFunctionTable.from_receiver(BuiltinFunctions())
        self.natives = natives
        self.strategy = strategy
        self.raw_literals = raw_literals
        self.dispatcher = Dispatcher(
            natives,
            script_runtime=script_runtime,
            script_timeout_ms=self.settings.script_timeout_ms,
        )

    @property
    def caller(self) -> CallerContext:
        return CallerContext(method=self.method, tag=self.tag, version=self.version)

    def _gate(self) -> AccessGate:
        # toggles are read at call time
        return AccessGate(
            enable_remote_functions=self.settings.enable_remote_functions,
            enable_script_functions=self.settings.enable_script_functions,
        )

    def _native_strategy(self) -> ResolutionStrategy:
        if self.strategy is not None:
            return self.strategy
        return ResolutionStrategy.from_flag(self.settings.parse_arg_values)

    def invoke(
        self,
        function: str,
        current_object: Mapping[str, Any] | None = None,
        contain_raw: bool = False,
    ) -> Any:
        """Invoke a remote function expression.

        Args:
            function: Call expression, e.g. ``"isContain(praiseUserIdList,userId)"``
            current_object: Object to resolve arguments against
                (``self.current_object`` if None)
            contain_raw: Allow raw SQL fragment lookups for the arguments

        Returns:
            The function result

        Raises:
            FunctionCallError: For any parse, policy, access, dispatch or
                return type fault. Faults raised by the function itself
                propagate unchanged.
        """
        context = current_object if current_object is not None else self.current_object
        gate = self._gate()
        gate.check_enabled().raise_if_denied()

        expression = parse_expression(function)
        entry = self.registry.get(expression.method)
        gate.authorize(expression.method, entry, self.caller).raise_if_denied()

        # scripts only accept values, never context + key pairs
        if entry.kind == ExecutionKind.SCRIPT:
            strategy = ResolutionStrategy.EAGER
        else:
            strategy = self._native_strategy()
        call = resolve_call(expression, context, strategy, contain_raw, self.raw_literals)

        result = self.dispatcher.dispatch(entry, call)
        verify_return_type(
            expression.method,
            result,
            entry.return_type,
            enabled=self.settings.check_return_types,
        )
        return result

    def parse_sql_function(
        self,
        function: str,
        current_object: Mapping[str, Any] | None = None,
        contain_raw: bool = False,
    ) -> FunctionCall:
        """Parse a (possibly schema qualified) SQL function with resolved values."""
        context = current_object if current_object is not None else self.current_object
        return parse_function(
            function,
            context,
            sql_function=True,
            contain_raw=contain_raw,
            raw_literals=self.raw_literals,
        )
