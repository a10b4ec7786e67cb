"""CLI command handler for the standalone doctor operation."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Annotated

from cyclopts import Parameter

from pgmisc.cli._registration import Emitter, register_operation_commands
from pgmisc.lib.ops.diag import DoctorInput, doctor_sync

if TYPE_CHECKING:
    from cyclopts import App


def _doctor(
    emit: Emitter,
    data_dir: Annotated[
        str | None,
        Parameter(name=["--data-dir", "-D"], help="Cluster data directory."),
    ] = None,
) -> None:
    emit(doctor_sync(DoctorInput(data_dir=data_dir)))


def register_doctor_command(app: App, emit: Emitter) -> tuple[set[str], dict[str, str]]:
    """`doctor` sits on the root app rather than in a sub-app."""

    return register_operation_commands(app, "doctor", {"doctor": lambda: partial(_doctor, emit)})
