"""Operations exposed on the CLI and MCP surfaces.

Registry access is deferred to call time; operation modules import from
this package while the registry is still loading them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pgmisc.lib.ops.registry import OperationSpec


def get_all_operations() -> list[OperationSpec[Any, Any]]:
    from pgmisc.lib.ops import registry

    return registry.get_all_operations()


def get_operation(name: str) -> OperationSpec[Any, Any]:
    from pgmisc.lib.ops import registry

    return registry.get_operation(name)


__all__ = ["get_all_operations", "get_operation"]
