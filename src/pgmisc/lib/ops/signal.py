"""Signal delivery operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pgmisc.lib.ops._runtime import build_gated_runtime
from pgmisc.lib.ops.registry import OperationSpec, operation
from pgmisc.lib.procs.signals import SIGNAL_BACKEND_FUNCTION, signal_backend, signal_backends

if TYPE_CHECKING:
    from pgmisc.lib.domain import SignalResult
    from pgmisc.lib.formatting import FormatContext


@dataclass(frozen=True, slots=True)
class SignalSendInput:
    pid: int
    signum: int
    data_dir: str | None = None


@dataclass(frozen=True, slots=True)
class SignalBatchInput:
    signum: int
    pids: tuple[int, ...] = ()
    data_dir: str | None = None


@dataclass(frozen=True, slots=True)
class SignalSendOutput:
    pid: int
    signum: int
    signaled: bool
    outcome: str
    warning: str | None = None

    @classmethod
    def from_result(cls, result: SignalResult) -> SignalSendOutput:
        return cls(
            pid=result.pid,
            signum=result.signum,
            signaled=result.signaled,
            outcome=str(result.outcome),
            warning=result.warning,
        )

    def format_text(self, ctx: FormatContext | None = None) -> str:
        from pgmisc.cli.format_helpers import kv_block

        return kv_block(
            [
                ("pid", str(self.pid)),
                ("signal", str(self.signum)),
                ("signaled", "true" if self.signaled else "false"),
                ("outcome", self.outcome),
            ]
        )


@dataclass(frozen=True, slots=True)
class SignalBatchOutput:
    signum: int
    signaled: int
    results: tuple[SignalSendOutput, ...]

    def format_text(self, ctx: FormatContext | None = None) -> str:
        from pgmisc.cli.format_helpers import tabular

        if not self.results:
            return "(no pids)"
        rows = [["PID", "OUTCOME"]]
        rows.extend([str(item.pid), item.outcome] for item in self.results)
        return tabular(rows) + f"\n\nsignaled {self.signaled} of {len(self.results)}"


def signal_send_sync(payload: SignalSendInput) -> SignalSendOutput:
    runtime = build_gated_runtime(payload.data_dir, SIGNAL_BACKEND_FUNCTION)
    result = signal_backend(
        payload.pid,
        payload.signum,
        authorizer=runtime.authorizer,
        registry=runtime.registry,
        sender=runtime.sender,
    )
    return SignalSendOutput.from_result(result)


def signal_batch_sync(payload: SignalBatchInput) -> SignalBatchOutput:
    runtime = build_gated_runtime(payload.data_dir, SIGNAL_BACKEND_FUNCTION)
    results = signal_backends(
        payload.pids,
        payload.signum,
        authorizer=runtime.authorizer,
        registry=runtime.registry,
        sender=runtime.sender,
    )
    outputs = tuple(SignalSendOutput.from_result(result) for result in results)
    return SignalBatchOutput(
        signum=payload.signum,
        signaled=sum(1 for item in outputs if item.signaled),
        results=outputs,
    )


async def signal_send(payload: SignalSendInput) -> SignalSendOutput:
    return signal_send_sync(payload)


async def signal_batch(payload: SignalBatchInput) -> SignalBatchOutput:
    return signal_batch_sync(payload)


operation(
    OperationSpec(
        name="signal.send",
        handler=signal_send,
        sync_handler=signal_send_sync,
        input_type=SignalSendInput,
        output_type=SignalSendOutput,
        cli_group="signal",
        cli_name="send",
        mcp_name="signal_send",
        description="Send a signal to a server process and its process group.",
        requires_superuser=True,
    )
)

operation(
    OperationSpec(
        name="signal.batch",
        handler=signal_batch,
        sync_handler=signal_batch_sync,
        input_type=SignalBatchInput,
        output_type=SignalBatchOutput,
        cli_group="signal",
        cli_name="batch",
        mcp_name="signal_batch",
        description="Send one signal to many server processes, continuing past misses.",
        requires_superuser=True,
    )
)
