"""Function registry: which remote functions exist and who may call them.

Registration is the only source of truth for what is callable. Entries are
loaded from an external store (rows of a function table) at startup and are
read-only from the dispatch path's perspective. Reloads build a new snapshot
and swap it in, so readers never see a half-populated table.

Example:
    >>> registry = FunctionRegistry()
    >>> registry.load_rows([
    ...     {"name": "isEven", "type": 0, "version": 0},
    ...     {"name": "greet", "type": 1,
    ...      "script": "function greet(name){return 'hi '+name;}"},
    ... ])
    2
    >>> registry.get("isEven").kind
    <ExecutionKind.NATIVE: 'native'>
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable, Mapping
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class ExecutionKind(str, Enum):
    """How a registered function is executed."""

    NATIVE = "native"  # bound Python callable
    SCRIPT = "script"  # function defined in script source

    @classmethod
    def from_code(cls, code: int) -> str:
        """Map the numeric type column (0 = native, 1 = script)."""
        codes = {0: cls.NATIVE.value, 1: cls.SCRIPT.value}
        return codes.get(code, str(code))


class RegistryEntry(BaseModel):
    """Policy and dispatch metadata for one callable name.

    Field aliases follow the column names of the function table, so rows can
    be validated directly with ``RegistryEntry.model_validate(row)``.

    Attributes:
        name: Function name the entry is keyed by
        execution_kind: "native" or "script" (kept as text so unsupported
            kinds reach the access gate instead of failing at load time)
        min_version: Minimum caller version
        required_tag: Tag the caller must carry (None = any)
        allowed_methods: Request methods allowed to call (None = any)
        return_type: Declared return type name (None = no result)
        script_source: Script text defining the function (script kind)
        arguments: Documentation of the expected argument keys
        detail: Free-text description
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Function name")
    execution_kind: str = Field(
        default=ExecutionKind.NATIVE.value, alias="type", description="Execution kind"
    )
    min_version: int = Field(default=0, ge=0, alias="version")
    required_tag: str | None = Field(default=None, alias="tag")
    allowed_methods: frozenset[str] | None = Field(default=None, alias="methods")
    return_type: str | None = Field(default=None, alias="returnType")
    script_source: str | None = Field(default=None, alias="script")
    arguments: str | None = Field(default=None)
    detail: str | None = Field(default=None)

    @field_validator("execution_kind", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> Any:
        """Accept the numeric type codes used by the function table."""
        if isinstance(v, bool):
            return v
        if isinstance(v, int):
            return ExecutionKind.from_code(v)
        if isinstance(v, ExecutionKind):
            return v.value
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("allowed_methods", mode="before")
    @classmethod
    def split_methods(cls, v: Any) -> Any:
        """Accept a comma-joined list of request methods."""
        if v is None:
            return None
        if isinstance(v, str):
            v = [m for m in (part.strip() for part in v.split(",")) if m]
        methods = frozenset(str(m).upper() for m in v)
        return methods or None

    @field_validator("required_tag", "return_type", "script_source", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def kind(self) -> ExecutionKind | None:
        """Execution kind, or None when the entry names an unsupported one."""
        try:
            return ExecutionKind(self.execution_kind)
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "type": self.execution_kind,
            "version": self.min_version,
            "tag": self.required_tag,
            "methods": sorted(self.allowed_methods) if self.allowed_methods else None,
            "returnType": self.return_type,
            "arguments": self.arguments,
            "detail": self.detail,
        }


class FunctionRegistry:
    """Process-wide lookup table of registered functions.

    Readers go through an immutable snapshot and need no locking. Writers
    are serialized and publish a fresh snapshot (copy-on-write).
    """

    def __init__(self, entries: Iterable[RegistryEntry] = ()) -> None:
        self._write_lock = threading.Lock()
        self._entries: Mapping[str, RegistryEntry] = MappingProxyType(
            {entry.name: entry for entry in entries}
        )

    def get(self, name: str) -> RegistryEntry | None:
        """Look up an entry by function name."""
        # TODO: key by schema-qualified name once SQL functions are registered here
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> list[str]:
        """Get all registered function names, sorted."""
        return sorted(self._entries)

    def entries(self) -> list[RegistryEntry]:
        """Get all entries, sorted by name."""
        snapshot = self._entries
        return [snapshot[name] for name in sorted(snapshot)]

    def register(self, entry: RegistryEntry) -> None:
        """Add or replace a single entry."""
        with self._write_lock:
            updated = dict(self._entries)
            updated[entry.name] = entry
            self._entries = MappingProxyType(updated)

    def replace(self, entries: Iterable[RegistryEntry]) -> None:
        """Swap in a completely new set of entries."""
        snapshot = {entry.name: entry for entry in entries}
        with self._write_lock:
            self._entries = MappingProxyType(snapshot)
        logger.info(f"Function registry loaded with {len(snapshot)} entries")

    def load_rows(self, rows: Iterable[Mapping[str, Any]], replace: bool = True) -> int:
        """Validate function table rows and load them.

        Args:
            rows: Rows keyed by function table column names
            replace: Replace the whole registry (True) or merge into it

        Returns:
            Number of entries loaded

        Raises:
            pydantic.ValidationError: If a row is invalid
        """
        entries = [RegistryEntry.model_validate(row) for row in rows]
        for entry in entries:
            if entry.kind == ExecutionKind.SCRIPT and entry.script_source is None:
                logger.warning(f"Script function {entry.name} has no script source")

        if replace:
            self.replace(entries)
        else:
            for entry in entries:
                self.register(entry)
        return len(entries)

    def load_file(self, path: Path | str) -> int:
        """Load rows from a JSON file holding a list of row objects."""
        path = Path(path)
        with path.open(encoding="utf-8") as f:
            rows = json.load(f)
        if not isinstance(rows, list):
            raise ValueError(f"Registry file {path} must contain a JSON list of rows")
        return self.load_rows(rows)


# Global registry instance
_registry: FunctionRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> FunctionRegistry:
    """Get or create the process-wide function registry."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                from callgate.config import get_settings

                registry = FunctionRegistry()
                settings = get_settings()
                if settings.registry_path is not None:
                    registry.load_file(settings.registry_path)
                _registry = registry
    return _registry
