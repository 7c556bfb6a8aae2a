"""Pytest configuration and fixtures for callgate tests."""

from collections.abc import Callable, Sequence
from typing import Any

import pytest

from callgate.config import Settings
from callgate.core.dispatch import NativeFunctionTable
from callgate.core.engine import FunctionParser
from callgate.core.registry import FunctionRegistry
from callgate.functions import BuiltinFunctions


class FakeScriptRuntime:
    """Script runtime double that runs Python stand-ins for script functions."""

    def __init__(self, functions: dict[str, Callable[..., Any]] | None = None) -> None:
        self.functions = functions or {}
        self.calls: list[tuple[str, str, list[Any], int | None]] = []

    def run(
        self,
        source: str,
        function: str,
        args: Sequence[Any],
        timeout_ms: int | None = None,
    ) -> Any:
        self.calls.append((source, function, list(args), timeout_ms))
        return self.functions[function](*args)


@pytest.fixture
def settings() -> Settings:
    """Return settings with all functions enabled and strict return types."""
    return Settings(
        _env_file=None,
        enable_remote_functions=True,
        enable_script_functions=True,
        parse_arg_values=False,
        strict_return_types=True,
    )


@pytest.fixture
def sample_rows() -> list[dict[str, Any]]:
    """Return function table rows as stored externally."""
    return [
        {"name": "isEven", "type": 0, "version": 0, "returnType": "Boolean"},
        {"name": "isContain", "type": 0, "returnType": "Boolean"},
        {"name": "countArray", "type": 0, "methods": "GET,GETS", "returnType": "Integer"},
        {"name": "plus", "type": 0, "returnType": "Number"},
        {"name": "add", "type": 0, "returnType": "Number"},
        {"name": "getFromObject", "type": 0, "returnType": "Object"},
        {
            "name": "greet",
            "type": 1,
            "returnType": "String",
            "script": 'function greet(name){return "hi "+name;}',
        },
        {"name": "newFeature", "type": 0, "version": 2, "returnType": "Boolean"},
        {"name": "adminOnly", "type": 0, "tag": "Admin", "returnType": "Boolean"},
    ]


@pytest.fixture
def registry(sample_rows: list[dict[str, Any]]) -> FunctionRegistry:
    """Return a registry loaded with the sample rows."""
    registry = FunctionRegistry()
    registry.load_rows(sample_rows)
    return registry


@pytest.fixture
def natives() -> NativeFunctionTable:
    """Return the built-in native function table."""
    return NativeFunctionTable.from_receiver(BuiltinFunctions())


@pytest.fixture
def script_runtime() -> FakeScriptRuntime:
    """Return a fake script runtime implementing greet."""
    return FakeScriptRuntime({"greet": lambda name: f"hi {name}"})


@pytest.fixture
def make_parser(
    registry: FunctionRegistry,
    natives: NativeFunctionTable,
    script_runtime: FakeScriptRuntime,
    settings: Settings,
) -> Callable[..., FunctionParser]:
    """Return a factory for parsers wired to the test fixtures."""

    def factory(**kwargs: Any) -> FunctionParser:
        kwargs.setdefault("registry", registry)
        kwargs.setdefault("natives", natives)
        kwargs.setdefault("script_runtime", script_runtime)
        kwargs.setdefault("settings", settings)
        return FunctionParser(**kwargs)

    return factory
