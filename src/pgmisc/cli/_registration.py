"""Attach registry operations to cyclopts apps."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeAlias

from pgmisc.lib.ops.registry import get_all_operations

if TYPE_CHECKING:
    from cyclopts import App

Emitter = Callable[[Any], None]
HandlerFactory: TypeAlias = Callable[[], Callable[..., None]]


def register_operation_commands(
    app: App,
    group: str,
    handlers: dict[str, HandlerFactory],
) -> tuple[set[str], dict[str, str]]:
    """Register one command per operation in `group`, named by `cli_name`.

    Help text comes from the operation description so the CLI and the MCP
    tool list never drift apart.
    """

    registered: set[str] = set()
    descriptions: dict[str, str] = {}
    for op in get_all_operations():
        if op.cli_group != group or op.mcp_only:
            continue
        factory = handlers.get(op.name)
        if factory is None:
            raise ValueError(f"No CLI handler registered for operation '{op.name}'")
        handler = factory()
        handler.__name__ = f"cmd_{group}_{op.cli_name.replace('-', '_')}"
        app.command(handler, name=op.cli_name, help=op.description)
        registered.add(op.cli_command)
        descriptions[op.name] = op.description
    return registered, descriptions
