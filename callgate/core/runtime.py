"""Embedded script runtime used by script functions.

The runtime is shared process-wide. Loading a function's source and calling
it happen as one critical section under a lock, so concurrent callers never
see each other's definitions half-applied. Reloading the same source before
every call is idempotent: each source runs in its own function scope and only
the named function is published as a global, so a later load replaces it
and ``const``/``let`` declarations never collide.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Sequence
from typing import Any, Protocol

from py_mini_racer import JSEvalException, JSParseException, JSTimeoutException, MiniRacer

from callgate.core.errors import ScriptExecutionFailed
from callgate.core.expression import is_name

logger = logging.getLogger(__name__)

_JS_ERRORS = (JSEvalException, JSParseException, JSTimeoutException)


def _scoped(source: str, function: str) -> str:
    """Wrap a script so it defines ``function`` without leaking other globals."""
    return (
        f"globalThis[{json.dumps(function)}] = (function () {{\n"
        f"{source}\n;\nreturn {function};\n}})();"
    )


class ScriptRuntime(Protocol):
    """Narrow contract the dispatcher needs from a script engine."""

    def run(
        self,
        source: str,
        function: str,
        args: Sequence[Any],
        timeout_ms: int | None = None,
    ) -> Any:
        """Load ``source`` and call ``function`` with JSON-compatible args.

        Raises:
            ScriptExecutionFailed: If loading or calling fails
        """
        ...


class MiniRacerRuntime:
    """JavaScript runtime backed by an embedded V8 isolate.

    Arguments are JSON-encoded into the isolate and results come back as
    plain Python JSON values.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._context: MiniRacer | None = None

    def _get_context(self) -> MiniRacer:
        if self._context is None:
            self._context = MiniRacer()
        return self._context

    def run(
        self,
        source: str,
        function: str,
        args: Sequence[Any],
        timeout_ms: int | None = None,
    ) -> Any:
        if not is_name(function):
            raise ScriptExecutionFailed(
                f"Script function name {function!r} is not a valid identifier", function
            )
        with self._lock:
            context = self._get_context()
            try:
                context.eval(_scoped(source, function), timeout=timeout_ms)
            except _JS_ERRORS as e:
                raise ScriptExecutionFailed(
                    f"Loading script function {function} failed: {e}", function
                ) from e

            try:
                result = context.call(function, *args, timeout=timeout_ms)
            except _JS_ERRORS as e:
                raise ScriptExecutionFailed(
                    f"Script function {function} failed: {e}", function
                ) from e

        logger.debug(f"Script {function}(..) returned {result!r}")
        return result

    def close(self) -> None:
        """Release the V8 isolate; a later run starts a fresh one."""
        with self._lock:
            if self._context is not None:
                self._context.close()
                self._context = None


# Global runtime instance
_runtime: ScriptRuntime | None = None
_runtime_lock = threading.Lock()


def get_script_runtime() -> ScriptRuntime:
    """Get or create the process-wide script runtime."""
    global _runtime
    if _runtime is None:
        with _runtime_lock:
            if _runtime is None:
                _runtime = MiniRacerRuntime()
    return _runtime
