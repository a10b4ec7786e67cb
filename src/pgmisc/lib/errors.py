"""Diagnostic severities and the errors raised by gated operations."""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar

SUPERUSER_DETAIL = (
    "This function needs to be strictly used only for testing or development "
    "purposes not on production servers."
)


class Severity(StrEnum):
    """Diagnostic severities understood by the host surfaces."""

    WARNING = "WARNING"
    ERROR = "ERROR"
    FATAL = "FATAL"
    PANIC = "PANIC"


class SqlState(StrEnum):
    INSUFFICIENT_PRIVILEGE = "42501"
    INTERNAL_ERROR = "XX000"


class InsufficientPrivilegeError(PermissionError):
    """Caller failed the superuser check; the operation had no side effect."""

    severity: ClassVar[Severity] = Severity.ERROR
    sqlstate: ClassVar[SqlState] = SqlState.INSUFFICIENT_PRIVILEGE

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        return self.message


class DeliberateAbort(Exception):
    """Designed escalation raised by the failure-injection triggers."""

    severity: ClassVar[Severity]
    exit_code: ClassVar[int]
    sqlstate: ClassVar[SqlState] = SqlState.INTERNAL_ERROR


class ProcessAbort(DeliberateAbort):
    """Terminate the current server process (FATAL)."""

    severity = Severity.FATAL
    exit_code = 1


class ClusterAbort(DeliberateAbort):
    """Take down the whole cluster (PANIC)."""

    severity = Severity.PANIC
    # Exit status of a process killed by SIGABRT, which is what a PANIC does.
    exit_code = 134
