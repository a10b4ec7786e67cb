"""CLI command handlers for signal.* operations."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Annotated

from cyclopts import Parameter

from pgmisc.cli._registration import Emitter, register_operation_commands
from pgmisc.lib.ops.signal import (
    SignalBatchInput,
    SignalSendInput,
    signal_batch_sync,
    signal_send_sync,
)
from pgmisc.lib.procs.signals import parse_signal

if TYPE_CHECKING:
    from cyclopts import App

_SIGNAL_HELP = "Signal number or name (15, TERM, SIGTERM)."


def _signal_send(
    emit: Emitter,
    pid: Annotated[int, Parameter(help="Server process id.")],
    signal_name: Annotated[str, Parameter(help=_SIGNAL_HELP)],
    data_dir: Annotated[
        str | None,
        Parameter(name=["--data-dir", "-D"], help="Cluster data directory."),
    ] = None,
) -> None:
    payload = SignalSendInput(pid=pid, signum=parse_signal(signal_name), data_dir=data_dir)
    emit(signal_send_sync(payload))


def _signal_batch(
    emit: Emitter,
    signal_name: Annotated[str, Parameter(help=_SIGNAL_HELP)],
    *pids: int,
    data_dir: Annotated[
        str | None,
        Parameter(name=["--data-dir", "-D"], help="Cluster data directory."),
    ] = None,
) -> None:
    payload = SignalBatchInput(signum=parse_signal(signal_name), pids=pids, data_dir=data_dir)
    emit(signal_batch_sync(payload))


def register_signal_commands(app: App, emit: Emitter) -> tuple[set[str], dict[str, str]]:
    return register_operation_commands(
        app,
        "signal",
        {
            "signal.send": lambda: partial(_signal_send, emit),
            "signal.batch": lambda: partial(_signal_batch, emit),
        },
    )
