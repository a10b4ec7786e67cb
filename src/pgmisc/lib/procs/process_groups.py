"""Process-group signal delivery for server processes."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pgmisc.lib.domain import ProcessHandle
    from pgmisc.lib.types import SignalNumber


def supports_process_groups() -> bool:
    """Server processes lead their own group only where setsid() exists."""

    return hasattr(os, "setsid") and hasattr(os, "killpg")


class ProcessGroupSender:
    """Send one signal to the process group led by the target pid.

    Server processes call setsid() at startup, so the group id equals the
    pid and any children they spawned receive the signal with them. The
    group id is deliberately not looked up with getpgid(): a process that
    never called setsid() shares the supervisor's group, and signaling that
    group would hit the whole cluster.

    OSError propagates to the caller (ProcessLookupError when the target
    already exited, PermissionError when the kernel refuses, plain OSError
    for an invalid signal number).
    """

    def __init__(self, *, use_process_groups: bool | None = None) -> None:
        self._use_process_groups = (
            supports_process_groups() if use_process_groups is None else use_process_groups
        )

    @property
    def use_process_groups(self) -> bool:
        return self._use_process_groups

    def send(self, handle: ProcessHandle, signum: SignalNumber) -> None:
        if self._use_process_groups:
            os.killpg(handle.pid, signum)
            return
        os.kill(handle.pid, signum)
