"""Diagnostics for the cluster the tool is pointed at."""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING

import psutil

from pgmisc.lib.ops._runtime import OperationRuntime, build_runtime
from pgmisc.lib.ops.registry import OperationSpec, operation
from pgmisc.lib.procs.process_groups import supports_process_groups
from pgmisc.lib.procs.registry import read_supervisor_pid
from pgmisc.lib.wal.controldata import ControlDataError, read_controldata

if TYPE_CHECKING:
    from pgmisc.lib.formatting import FormatContext


@dataclass(frozen=True, slots=True)
class DoctorInput:
    data_dir: str | None = None


@dataclass(frozen=True, slots=True)
class DoctorOutput:
    ok: bool
    data_dir: str
    supervisor_pid: int | None
    authorized: bool
    process_groups: bool
    cluster_state: str | None
    ordinary_processes: int
    auxiliary_processes: int
    warnings: tuple[str, ...] = ()

    def format_text(self, ctx: FormatContext | None = None) -> str:
        """Key-value health check output for text output mode."""
        from pgmisc.cli.format_helpers import kv_block

        pairs: list[tuple[str, str | None]] = [
            ("ok", "ok" if self.ok else "WARNINGS"),
            ("data_dir", self.data_dir),
            ("supervisor_pid", str(self.supervisor_pid) if self.supervisor_pid else "-"),
            ("authorized", "yes" if self.authorized else "no"),
            ("process_groups", "yes" if self.process_groups else "no"),
            ("cluster_state", self.cluster_state or "-"),
            ("ordinary_processes", str(self.ordinary_processes)),
            ("auxiliary_processes", str(self.auxiliary_processes)),
        ]
        result = kv_block(pairs)
        for warning in self.warnings:
            result += f"\nwarning: {warning}"
        return result


def _cluster_state(runtime: OperationRuntime, warnings: list[str]) -> str | None:
    try:
        control = read_controldata(
            runtime.data_dir,
            command=runtime.config.controldata.command,
            timeout_seconds=runtime.config.controldata.timeout_seconds,
        )
    except ControlDataError as exc:
        warnings.append(str(exc))
        return None
    return control.cluster_state


def doctor_sync(payload: DoctorInput) -> DoctorOutput:
    runtime = build_runtime(payload.data_dir)
    warnings: list[str] = []

    if not (runtime.data_dir / "PG_VERSION").is_file():
        warnings.append(f"'{runtime.data_dir}' does not look like a data directory (no PG_VERSION).")

    supervisor = read_supervisor_pid(runtime.data_dir)
    if supervisor is None:
        warnings.append("No postmaster.pid found; the server does not appear to be running.")
    elif not psutil.pid_exists(supervisor):
        warnings.append(f"postmaster.pid names pid {supervisor}, which is not running.")
    elif runtime.registry.supervisor_pid() is None:
        warnings.append(
            f"postmaster.pid names pid {supervisor}, which is not the postmaster of this data directory."
        )

    authorized = runtime.authorizer.is_authorized()
    if not authorized:
        warnings.append("Current user is not a superuser for this cluster; gated operations will fail.")

    process_groups = supports_process_groups()
    if not process_groups:
        warnings.append("Process groups are unavailable; signals reach only the target process.")

    cluster_state = _cluster_state(runtime, warnings)
    kinds = Counter(str(handle.kind) for handle in runtime.registry.snapshot())
    return DoctorOutput(
        ok=not warnings,
        data_dir=runtime.data_dir.as_posix(),
        supervisor_pid=supervisor,
        authorized=authorized,
        process_groups=process_groups,
        cluster_state=cluster_state,
        ordinary_processes=kinds.get("ordinary", 0),
        auxiliary_processes=kinds.get("auxiliary", 0),
        warnings=tuple(warnings),
    )


async def doctor(payload: DoctorInput) -> DoctorOutput:
    return await asyncio.to_thread(doctor_sync, payload)


operation(
    OperationSpec(
        name="doctor",
        handler=doctor,
        sync_handler=doctor_sync,
        input_type=DoctorInput,
        output_type=DoctorOutput,
        cli_group="doctor",
        cli_name="doctor",
        mcp_name="doctor",
        description="Run diagnostics checks.",
    )
)
