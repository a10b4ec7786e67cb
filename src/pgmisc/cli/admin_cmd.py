"""CLI command handlers for admin.* operations."""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Annotated

from cyclopts import Parameter

from pgmisc.cli._registration import Emitter, register_operation_commands
from pgmisc.lib.ops.admin import AdminCauseInput, admin_cause_fatal_sync, admin_cause_panic_sync

if TYPE_CHECKING:
    from cyclopts import App


def _admin_cause_fatal(
    emit: Emitter,
    data_dir: Annotated[
        str | None,
        Parameter(name=["--data-dir", "-D"], help="Cluster data directory."),
    ] = None,
) -> None:
    emit(admin_cause_fatal_sync(AdminCauseInput(data_dir=data_dir)))


def _admin_cause_panic(
    emit: Emitter,
    data_dir: Annotated[
        str | None,
        Parameter(name=["--data-dir", "-D"], help="Cluster data directory."),
    ] = None,
) -> None:
    emit(admin_cause_panic_sync(AdminCauseInput(data_dir=data_dir)))


def register_admin_commands(app: App, emit: Emitter) -> tuple[set[str], dict[str, str]]:
    return register_operation_commands(
        app,
        "admin",
        {
            "admin.cause_fatal": lambda: partial(_admin_cause_fatal, emit),
            "admin.cause_panic": lambda: partial(_admin_cause_panic, emit),
        },
    )
