"""WAL timeline status operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pgmisc.lib.ops._runtime import build_runtime
from pgmisc.lib.ops.registry import OperationSpec, operation
from pgmisc.lib.wal.timeline import (
    current_insert_timeline,
    last_received_timeline,
    last_replayed_timeline,
)

if TYPE_CHECKING:
    from pgmisc.lib.formatting import FormatContext


@dataclass(frozen=True, slots=True)
class TimelineInput:
    data_dir: str | None = None


@dataclass(frozen=True, slots=True)
class TimelineOutput:
    kind: str
    timeline: int | None

    def format_text(self, ctx: FormatContext | None = None) -> str:
        if self.timeline is None:
            return f"{self.kind}: (unknown)"
        return f"{self.kind}: {self.timeline}"


def timeline_current_sync(payload: TimelineInput) -> TimelineOutput:
    runtime = build_runtime(payload.data_dir)
    return TimelineOutput(kind="insert", timeline=current_insert_timeline(runtime.wal_status))


def timeline_replay_sync(payload: TimelineInput) -> TimelineOutput:
    runtime = build_runtime(payload.data_dir)
    return TimelineOutput(kind="replay", timeline=last_replayed_timeline(runtime.wal_status))


def timeline_receive_sync(payload: TimelineInput) -> TimelineOutput:
    runtime = build_runtime(payload.data_dir)
    return TimelineOutput(kind="receive", timeline=last_received_timeline(runtime.wal_status))


async def timeline_current(payload: TimelineInput) -> TimelineOutput:
    return timeline_current_sync(payload)


async def timeline_replay(payload: TimelineInput) -> TimelineOutput:
    return timeline_replay_sync(payload)


async def timeline_receive(payload: TimelineInput) -> TimelineOutput:
    return timeline_receive_sync(payload)


operation(
    OperationSpec(
        name="timeline.current",
        handler=timeline_current,
        sync_handler=timeline_current_sync,
        input_type=TimelineInput,
        output_type=TimelineOutput,
        cli_group="timeline",
        cli_name="current",
        mcp_name="timeline_current",
        description="Show the timeline WAL is currently inserted on.",
    )
)

operation(
    OperationSpec(
        name="timeline.replay",
        handler=timeline_replay,
        sync_handler=timeline_replay_sync,
        input_type=TimelineInput,
        output_type=TimelineOutput,
        cli_group="timeline",
        cli_name="replay",
        mcp_name="timeline_replay",
        description="Show the timeline of the last replayed WAL record.",
    )
)

operation(
    OperationSpec(
        name="timeline.receive",
        handler=timeline_receive,
        sync_handler=timeline_receive_sync,
        input_type=TimelineInput,
        output_type=TimelineOutput,
        cli_group="timeline",
        cli_name="receive",
        mcp_name="timeline_receive",
        description="Show the timeline of the last WAL received from upstream.",
    )
)
