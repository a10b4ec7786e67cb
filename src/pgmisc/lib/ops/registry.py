"""Operation registry shared by the CLI and MCP surfaces.

Every operation module registers its `OperationSpec` at import time. The
CLI and the MCP server both walk this registry, so an operation that is
missing a surface shows up in the parity tests rather than in production.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")

_OPERATION_MODULES: Final[tuple[str, ...]] = (
    "pgmisc.lib.ops.admin",
    "pgmisc.lib.ops.diag",
    "pgmisc.lib.ops.signal",
    "pgmisc.lib.ops.timeline",
)


@dataclass(frozen=True, slots=True)
class OperationSpec(Generic[InputT, OutputT]):
    """One operation: its payload types, handlers and surface names."""

    name: str
    handler: Callable[[InputT], Coroutine[Any, Any, OutputT]]
    input_type: type[InputT]
    output_type: type[OutputT]
    cli_group: str
    cli_name: str
    mcp_name: str
    description: str
    requires_superuser: bool = False
    version: str = "1"
    sync_handler: Callable[[InputT], OutputT] | None = None
    cli_only: bool = False
    mcp_only: bool = False

    @property
    def cli_command(self) -> str:
        return f"{self.cli_group}.{self.cli_name}"


_REGISTRY: dict[str, OperationSpec[Any, Any]] = {}
_loaded = False


def operation(spec: OperationSpec[InputT, OutputT]) -> OperationSpec[InputT, OutputT]:
    """Add `spec` to the registry; names must be unique."""

    if spec.cli_only and spec.mcp_only:
        raise ValueError(f"Operation '{spec.name}' cannot be both cli_only and mcp_only")
    existing = _REGISTRY.get(spec.name)
    if existing is not None:
        raise ValueError(
            f"Duplicate operation name '{spec.name}': already registered by {existing.handler}"
        )
    _REGISTRY[spec.name] = spec
    return spec


def _load_operation_modules() -> None:
    global _loaded
    if _loaded:
        return
    for module_name in _OPERATION_MODULES:
        importlib.import_module(module_name)
    # Set last so a failed import is retried on the next lookup.
    _loaded = True


def get_all_operations() -> list[OperationSpec[Any, Any]]:
    """Registered operations ordered by name."""

    _load_operation_modules()
    return sorted(_REGISTRY.values(), key=lambda spec: spec.name)


def get_operation(name: str) -> OperationSpec[Any, Any]:
    _load_operation_modules()
    return _REGISTRY[name]

