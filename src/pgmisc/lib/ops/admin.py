"""Failure-injection operations."""

from __future__ import annotations

from dataclasses import dataclass

from pgmisc.lib.admin import CAUSE_FATAL_FUNCTION, CAUSE_PANIC_FUNCTION, cause_fatal, cause_panic
from pgmisc.lib.errors import SUPERUSER_DETAIL
from pgmisc.lib.ops._runtime import build_gated_runtime
from pgmisc.lib.ops.registry import OperationSpec, operation


@dataclass(frozen=True, slots=True)
class AdminCauseInput:
    data_dir: str | None = None


@dataclass(frozen=True, slots=True)
class AdminCauseOutput:
    # Never produced: both triggers only ever raise.
    aborted: bool = True


def admin_cause_fatal_sync(payload: AdminCauseInput) -> AdminCauseOutput:
    runtime = build_gated_runtime(payload.data_dir, CAUSE_FATAL_FUNCTION, detail=SUPERUSER_DETAIL)
    cause_fatal(runtime.authorizer)


def admin_cause_panic_sync(payload: AdminCauseInput) -> AdminCauseOutput:
    runtime = build_gated_runtime(payload.data_dir, CAUSE_PANIC_FUNCTION, detail=SUPERUSER_DETAIL)
    cause_panic(runtime.authorizer)


async def admin_cause_fatal(payload: AdminCauseInput) -> AdminCauseOutput:
    return admin_cause_fatal_sync(payload)


async def admin_cause_panic(payload: AdminCauseInput) -> AdminCauseOutput:
    return admin_cause_panic_sync(payload)


operation(
    OperationSpec(
        name="admin.cause_fatal",
        handler=admin_cause_fatal,
        sync_handler=admin_cause_fatal_sync,
        input_type=AdminCauseInput,
        output_type=AdminCauseOutput,
        cli_group="admin",
        cli_name="cause-fatal",
        mcp_name="admin_cause_fatal",
        description="Raise a FATAL error that aborts the current process (testing only).",
        requires_superuser=True,
    )
)

operation(
    OperationSpec(
        name="admin.cause_panic",
        handler=admin_cause_panic,
        sync_handler=admin_cause_panic_sync,
        input_type=AdminCauseInput,
        output_type=AdminCauseOutput,
        cli_group="admin",
        cli_name="cause-panic",
        mcp_name="admin_cause_panic",
        description="Raise a PANIC that takes down the whole cluster (testing only).",
        requires_superuser=True,
    )
)
