"""WAL timeline reporting."""

from pgmisc.lib.wal.controldata import ControlData, ControlDataError, format_lsn, parse_lsn
from pgmisc.lib.wal.status import LocalClusterWalStatus
from pgmisc.lib.wal.timeline import (
    current_insert_timeline,
    last_received_timeline,
    last_replayed_timeline,
)

__all__ = [
    "ControlData",
    "ControlDataError",
    "LocalClusterWalStatus",
    "current_insert_timeline",
    "format_lsn",
    "last_received_timeline",
    "last_replayed_timeline",
    "parse_lsn",
]
