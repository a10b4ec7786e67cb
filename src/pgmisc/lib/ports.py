"""Collaborator protocols for dependency inversion."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pgmisc.lib.domain import ProcessHandle, WalPosition
    from pgmisc.lib.types import ProcessId, SignalNumber


class Authorizer(Protocol):
    """Privilege check, recomputed on every call."""

    def is_authorized(self) -> bool: ...


class ProcessRegistry(Protocol):
    """Read-only view of the server's process table."""

    def supervisor_pid(self) -> ProcessId | None: ...

    def lookup_ordinary(self, pid: ProcessId) -> ProcessHandle | None: ...

    def lookup_auxiliary(self, pid: ProcessId) -> ProcessHandle | None: ...

    def snapshot(self) -> list[ProcessHandle]: ...


class SignalSender(Protocol):
    """Signal delivery primitive; raises OSError when the kernel refuses."""

    def send(self, handle: ProcessHandle, signum: SignalNumber) -> None: ...


class WalStatusSource(Protocol):
    """Point-in-time WAL positions from the recovery and replication subsystems."""

    def current_insert_position(self) -> WalPosition: ...

    def last_replay_position(self) -> WalPosition: ...

    def last_receive_position(self) -> WalPosition: ...
