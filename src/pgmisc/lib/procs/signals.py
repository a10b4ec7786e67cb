"""Signal delivery to server processes identified by an untrusted pid.

Resolution is a lookup followed by a send, and nothing holds the target in
place between the two. The process may exit on its own in that window; if
its pid is then reused, the signal reaches an unrelated process. Closing the
window needs a kernel primitive that signals a handle rather than a pid.
With sequential pid allocation the risk is negligible, so it is accepted.

Resolution and delivery failures are warnings and typed results, never
exceptions, so callers looping over many pids finish the loop.
"""

from __future__ import annotations

import signal
from typing import TYPE_CHECKING, Final, Protocol

import structlog

from pgmisc.lib.auth import require_superuser
from pgmisc.lib.domain import SignalOutcome, SignalResult
from pgmisc.lib.types import ProcessId, SignalNumber

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pgmisc.lib.ports import Authorizer, ProcessRegistry, SignalSender

logger = structlog.get_logger(__name__)

_INT32_MIN: Final[int] = -(2**31)
_INT32_MAX: Final[int] = 2**31 - 1
SIGNAL_BACKEND_FUNCTION: Final[str] = "pg_signal_backend"


class _WarningLogger(Protocol):
    def warning(self, message: str, **kwargs: object) -> None: ...


def _require_int32(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}.")
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise ValueError(f"{name} must fit in a signed 32-bit integer, got {value}.")
    return value


def parse_signal(raw: str | int) -> SignalNumber:
    """Parse `15`, `TERM`, `SIGTERM` or `sigterm` into a signal number.

    Numbers are passed through unchecked; delivering arbitrary signals is
    intentional and gated only by the superuser check.
    """

    if isinstance(raw, int):
        return SignalNumber(_require_int32("signal", raw))

    text = raw.strip()
    if not text:
        raise ValueError("Signal must not be empty.")
    if text.lstrip("+-").isdigit():
        return SignalNumber(_require_int32("signal", int(text)))

    name = text.upper()
    if not name.startswith("SIG"):
        name = f"SIG{name}"
    try:
        return SignalNumber(int(signal.Signals[name]))
    except KeyError:
        raise ValueError(f"Unknown signal '{raw}'.") from None


def _dispatch(
    pid: ProcessId,
    signum: SignalNumber,
    *,
    registry: ProcessRegistry,
    sender: SignalSender,
    sink: _WarningLogger,
) -> SignalResult:
    if pid == registry.supervisor_pid():
        # TODO: confirm with the cluster owners whether supervisor pids should
        # warn instead of silently succeeding.
        return SignalResult(pid=pid, signum=signum, outcome=SignalOutcome.SUPERVISOR_SKIPPED)

    handle = registry.lookup_ordinary(pid)
    if handle is None:
        handle = registry.lookup_auxiliary(pid)
    if handle is None:
        message = f"PID {pid} is not a PostgreSQL server process"
        sink.warning(message, pid=pid, signum=signum)
        return SignalResult(
            pid=pid,
            signum=signum,
            outcome=SignalOutcome.NOT_FOUND,
            warning=message,
        )

    try:
        sender.send(handle, signum)
    except OSError as exc:
        # A target that exited on its own since the lookup lands here too.
        reason = exc.strerror or str(exc)
        message = f"could not send signal {signum} to process {pid}: {reason}"
        sink.warning(message, pid=pid, signum=signum, errno=exc.errno)
        return SignalResult(
            pid=pid,
            signum=signum,
            outcome=SignalOutcome.DELIVERY_FAILED,
            warning=message,
        )

    logger.info(
        "Signal delivered.",
        pid=pid,
        signum=signum,
        backend_type=handle.backend_type,
        kind=str(handle.kind),
    )
    return SignalResult(pid=pid, signum=signum, outcome=SignalOutcome.DELIVERED)


def signal_backend(
    pid: int,
    signum: int,
    *,
    authorizer: Authorizer,
    registry: ProcessRegistry,
    sender: SignalSender,
    warning_logger: _WarningLogger | None = None,
) -> SignalResult:
    """Signal one server process, including its process group where supported."""

    require_superuser(authorizer, SIGNAL_BACKEND_FUNCTION)
    resolved_pid = ProcessId(_require_int32("pid", pid))
    resolved_signum = SignalNumber(_require_int32("signal", signum))
    return _dispatch(
        resolved_pid,
        resolved_signum,
        registry=registry,
        sender=sender,
        sink=warning_logger or logger,
    )


def signal_backends(
    pids: Iterable[int],
    signum: int,
    *,
    authorizer: Authorizer,
    registry: ProcessRegistry,
    sender: SignalSender,
    warning_logger: _WarningLogger | None = None,
) -> tuple[SignalResult, ...]:
    """Signal each pid independently; misses never abort the rest of the batch."""

    require_superuser(authorizer, SIGNAL_BACKEND_FUNCTION)
    resolved_signum = SignalNumber(_require_int32("signal", signum))
    resolved_pids = [ProcessId(_require_int32("pid", pid)) for pid in pids]
    sink = warning_logger or logger
    return tuple(
        _dispatch(pid, resolved_signum, registry=registry, sender=sender, sink=sink)
        for pid in resolved_pids
    )
