"""FastMCP stdio server exposing every registry operation as a tool."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
from mcp.server.fastmcp import FastMCP

from pgmisc.lib.errors import DeliberateAbort
from pgmisc.lib.logging import configure_logging
from pgmisc.lib.ops import get_all_operations
from pgmisc.lib.ops.codec import coerce_input_payload, signature_from_dataclass
from pgmisc.lib.ops.registry import OperationSpec
from pgmisc.lib.serialization import to_jsonable

logger = structlog.get_logger(__name__)

# Operation name -> description, for every operation exposed as a tool.
_TOOL_DESCRIPTIONS: dict[str, str] = {}
_TOOL_NAMES: set[str] = set()


@asynccontextmanager
async def lifespan(_: FastMCP[Any]):
    # stdout carries the protocol; logs must be JSON on stderr.
    configure_logging(json_mode=True)
    yield {}


mcp = FastMCP("pgmisc", lifespan=lifespan)


def _tool_for(op: OperationSpec[Any, Any]) -> Any:
    async def call(**arguments: object) -> object:
        payload = coerce_input_payload(op.input_type, arguments)
        try:
            return to_jsonable(await op.handler(payload))
        except DeliberateAbort as exc:
            # Only the tool call fails; the server keeps serving.
            logger.critical(
                str(exc),
                operation=op.name,
                severity=str(exc.severity),
                sqlstate=str(exc.sqlstate),
            )
            raise

    call.__name__ = f"tool_{op.mcp_name}"
    call.__doc__ = op.description
    call.__signature__ = signature_from_dataclass(op.input_type)  # type: ignore[attr-defined]
    return call


def _register_tools() -> None:
    for op in get_all_operations():
        if op.cli_only:
            continue
        mcp.tool(name=op.mcp_name, description=op.description)(_tool_for(op))
        _TOOL_NAMES.add(op.mcp_name)
        _TOOL_DESCRIPTIONS[op.name] = op.description


def get_registered_mcp_tools() -> set[str]:
    """Expose MCP tool names for parity tests."""

    return set(_TOOL_NAMES)


def get_registered_mcp_descriptions() -> dict[str, str]:
    """Expose MCP descriptions for parity tests."""

    return dict(_TOOL_DESCRIPTIONS)


def run_server() -> None:
    """Serve MCP over stdio until the client disconnects."""

    mcp.run(transport="stdio")


_register_tools()


if __name__ == "__main__":
    run_server()
