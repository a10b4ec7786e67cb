"""Transient, request-scoped domain values."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pgmisc.lib.types import Lsn, ProcessId, SignalNumber, TimelineId


class ProcessKind(StrEnum):
    ORDINARY = "ordinary"
    AUXILIARY = "auxiliary"


@dataclass(frozen=True, slots=True)
class ProcessHandle:
    """Snapshot of one server-owned process taken at lookup time.

    Validity at lookup time says nothing about validity at signal time: the
    process may exit, and its pid may be reused, at any moment afterwards.
    """

    pid: ProcessId
    kind: ProcessKind
    backend_type: str = ""


class SignalOutcome(StrEnum):
    DELIVERED = "delivered"
    SUPERVISOR_SKIPPED = "supervisor_skipped"
    NOT_FOUND = "not_found"
    DELIVERY_FAILED = "delivery_failed"


@dataclass(frozen=True, slots=True)
class SignalResult:
    """Typed result of one dispatch attempt."""

    pid: ProcessId
    signum: SignalNumber
    outcome: SignalOutcome
    warning: str | None = None

    @property
    def signaled(self) -> bool:
        # Supervisor pids report success without a signal being sent.
        return self.outcome in {SignalOutcome.DELIVERED, SignalOutcome.SUPERVISOR_SKIPPED}


@dataclass(frozen=True, slots=True)
class WalPosition:
    """WAL location plus the timeline it belongs to; timeline 0 means unknown."""

    lsn: Lsn
    timeline: TimelineId


UNKNOWN_POSITION = WalPosition(lsn=Lsn(0), timeline=TimelineId(0))
