"""Core pgmisc library exports."""

from pgmisc.lib.domain import ProcessHandle, ProcessKind, SignalOutcome, SignalResult, WalPosition
from pgmisc.lib.types import Lsn, ProcessId, SignalNumber, TimelineId

__all__ = [
    "Lsn",
    "ProcessHandle",
    "ProcessId",
    "ProcessKind",
    "SignalNumber",
    "SignalOutcome",
    "SignalResult",
    "TimelineId",
    "WalPosition",
]
