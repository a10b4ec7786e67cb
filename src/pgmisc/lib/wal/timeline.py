"""Timeline accessors that surface the undetermined timeline as None."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from pgmisc.lib.types import TimelineId

if TYPE_CHECKING:
    from pgmisc.lib.domain import WalPosition
    from pgmisc.lib.ports import WalStatusSource

_MAX_TIMELINE: Final[int] = 2**32 - 1


def _timeline_or_none(position: WalPosition) -> TimelineId | None:
    # The LSN is not part of the reporting contract.
    timeline = position.timeline
    if not 0 <= timeline <= _MAX_TIMELINE:
        raise ValueError(f"Timeline {timeline} is outside the unsigned 32-bit range.")
    if timeline == 0:
        return None
    return TimelineId(timeline)


def current_insert_timeline(source: WalStatusSource) -> TimelineId | None:
    """Timeline WAL is currently inserted on; None while it is undetermined."""

    return _timeline_or_none(source.current_insert_position())


def last_replayed_timeline(source: WalStatusSource) -> TimelineId | None:
    """Timeline of the last replayed WAL record; None if nothing was replayed."""

    return _timeline_or_none(source.last_replay_position())


def last_received_timeline(source: WalStatusSource) -> TimelineId | None:
    """Timeline of the last WAL received from upstream; None without a receiver."""

    return _timeline_or_none(source.last_receive_position())
