"""WAL positions of a local cluster, read from its data directory."""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING, Final

from pgmisc.lib.domain import UNKNOWN_POSITION, ProcessKind, WalPosition
from pgmisc.lib.types import Lsn, TimelineId
from pgmisc.lib.wal.controldata import ControlData, read_controldata

if TYPE_CHECKING:
    from pgmisc.lib.ports import ProcessRegistry

_SEGMENT_NAME: Final[re.Pattern[str]] = re.compile(
    r"^(?P<tli>[0-9A-F]{8})(?P<log>[0-9A-F]{8})(?P<seg>[0-9A-F]{8})(?:\.partial)?$"
)
_WALRECEIVER: Final[str] = "walreceiver"


def position_from_segment_name(name: str, wal_segment_size: int) -> WalPosition | None:
    """Return the start position encoded in a WAL segment file name."""

    match = _SEGMENT_NAME.match(name)
    if match is None:
        return None
    timeline = int(match["tli"], 16)
    log = int(match["log"], 16)
    seg = int(match["seg"], 16)
    return WalPosition(lsn=Lsn((log << 32) + seg * wal_segment_size), timeline=TimelineId(timeline))


class LocalClusterWalStatus:
    """WalStatusSource for a cluster whose data directory is on this host.

    - insert: the latest checkpoint's timeline once the cluster is in
      production, or the timeline of the newest segment when that is
      later; undetermined while recovery is still running.
    - replay: the minimum recovery point while the cluster is in recovery.
    - receive: the newest segment in the WAL directory, only while a
      walreceiver process is alive.

    Control data is updated at checkpoints and restartpoints, so every
    answer is a snapshot that may already lag the server.
    """

    def __init__(
        self,
        data_dir: Path,
        *,
        registry: ProcessRegistry,
        controldata_command: str = "pg_controldata",
        controldata_timeout_seconds: float = 5.0,
        wal_dir: str = "pg_wal",
    ) -> None:
        self._data_dir = data_dir
        self._registry = registry
        self._controldata_command = controldata_command
        self._controldata_timeout_seconds = controldata_timeout_seconds
        self._wal_dir = wal_dir

    def _controldata(self) -> ControlData:
        return read_controldata(
            self._data_dir,
            command=self._controldata_command,
            timeout_seconds=self._controldata_timeout_seconds,
        )

    def current_insert_position(self) -> WalPosition:
        control = self._controldata()
        if not control.in_production:
            return UNKNOWN_POSITION
        checkpoint = WalPosition(lsn=control.checkpoint_lsn, timeline=control.checkpoint_timeline)
        # After a promotion the checkpoint still names the old timeline until
        # the first checkpoint on the new one completes.
        newest = self._newest_segment()
        if newest is None:
            return checkpoint
        position = position_from_segment_name(newest.name, control.wal_segment_size)
        if position is None or position.timeline <= checkpoint.timeline:
            return checkpoint
        return position

    def last_replay_position(self) -> WalPosition:
        control = self._controldata()
        if not control.in_recovery:
            return UNKNOWN_POSITION
        return WalPosition(lsn=control.min_recovery_lsn, timeline=control.min_recovery_timeline)

    def last_receive_position(self) -> WalPosition:
        receiver_running = any(
            handle.kind == ProcessKind.AUXILIARY and handle.backend_type == _WALRECEIVER
            for handle in self._registry.snapshot()
        )
        if not receiver_running:
            return UNKNOWN_POSITION

        newest = self._newest_segment()
        if newest is None:
            return UNKNOWN_POSITION
        position = position_from_segment_name(
            newest.name,
            self._controldata().wal_segment_size,
        )
        return position or UNKNOWN_POSITION

    def _newest_segment(self) -> Path | None:
        wal_dir = self._data_dir / self._wal_dir
        newest: tuple[int, str, Path] | None = None
        try:
            entries = list(wal_dir.iterdir())
        except OSError:
            return None
        for entry in entries:
            if not _SEGMENT_NAME.match(entry.name):
                continue
            try:
                # Segments are recycled and renamed concurrently.
                mtime_ns = entry.stat().st_mtime_ns
            except OSError:
                continue
            key = (mtime_ns, entry.name, entry)
            if newest is None or key[:2] > newest[:2]:
                newest = key
        return newest[2] if newest is not None else None
