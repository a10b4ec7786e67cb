"""CLI command handlers for timeline.* operations."""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from typing import TYPE_CHECKING, Annotated

from cyclopts import Parameter

from pgmisc.cli._registration import Emitter, register_operation_commands
from pgmisc.lib.ops.timeline import (
    TimelineInput,
    TimelineOutput,
    timeline_current_sync,
    timeline_receive_sync,
    timeline_replay_sync,
)

if TYPE_CHECKING:
    from cyclopts import App


def _timeline(
    emit: Emitter,
    handler: Callable[[TimelineInput], TimelineOutput],
    data_dir: Annotated[
        str | None,
        Parameter(name=["--data-dir", "-D"], help="Cluster data directory."),
    ] = None,
) -> None:
    emit(handler(TimelineInput(data_dir=data_dir)))


def register_timeline_commands(app: App, emit: Emitter) -> tuple[set[str], dict[str, str]]:
    return register_operation_commands(
        app,
        "timeline",
        {
            "timeline.current": lambda: partial(_timeline, emit, timeline_current_sync),
            "timeline.replay": lambda: partial(_timeline, emit, timeline_replay_sync),
            "timeline.receive": lambda: partial(_timeline, emit, timeline_receive_sync),
        },
    )
