"""Operation runtime helpers for collaborator wiring."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from pgmisc.lib.auth import ClusterOwnerAuthorizer, require_superuser
from pgmisc.lib.config._paths import resolve_data_directory
from pgmisc.lib.config.settings import PgMiscConfig, load_config
from pgmisc.lib.procs.process_groups import ProcessGroupSender
from pgmisc.lib.procs.registry import ClusterProcessRegistry
from pgmisc.lib.wal.status import LocalClusterWalStatus

if TYPE_CHECKING:
    from pgmisc.lib.ports import Authorizer, ProcessRegistry, SignalSender, WalStatusSource


@dataclass(frozen=True, slots=True)
class OperationRuntime:
    """Resolved collaborators used by operation handlers."""

    data_dir: Path
    config: PgMiscConfig
    authorizer: Authorizer
    registry: ProcessRegistry
    sender: SignalSender
    wal_status: WalStatusSource


def _resolve_root(data_dir: str | None) -> Path:
    explicit = Path(data_dir).expanduser().resolve() if data_dir else None
    return resolve_data_directory(explicit)


def resolve_runtime_root_and_config(
    data_dir: str | None = None,
) -> tuple[Path, PgMiscConfig]:
    """Resolve the data directory and load operational config."""

    resolved = _resolve_root(data_dir)
    return resolved, load_config(resolved)


def build_runtime_from_root_and_config(data_dir: Path, config: PgMiscConfig) -> OperationRuntime:
    """Wire the local-host collaborators for one cluster."""

    registry = ClusterProcessRegistry(data_dir)
    return OperationRuntime(
        data_dir=data_dir,
        config=config,
        authorizer=ClusterOwnerAuthorizer(data_dir, superuser_uids=config.superuser_uids),
        registry=registry,
        sender=ProcessGroupSender(),
        wal_status=LocalClusterWalStatus(
            data_dir,
            registry=registry,
            controldata_command=config.controldata.command,
            controldata_timeout_seconds=config.controldata.timeout_seconds,
            wal_dir=config.wal_dir,
        ),
    )


def build_runtime(data_dir: str | None = None) -> OperationRuntime:
    """Build a runtime bundle for the cluster at one data directory."""

    resolved, config = resolve_runtime_root_and_config(data_dir)
    return build_runtime_from_root_and_config(resolved, config)


def build_gated_runtime(
    data_dir: str | None,
    function_name: str,
    *,
    detail: str | None = None,
) -> OperationRuntime:
    """Build a runtime for a superuser-only operation.

    A config file that fails to load grants no extra superuser uids, so a
    caller without privileges gets the privilege error rather than the
    config error.
    """

    resolved = _resolve_root(data_dir)
    try:
        config = load_config(resolved)
    except ValueError:
        require_superuser(ClusterOwnerAuthorizer(resolved), function_name, detail=detail)
        raise
    return build_runtime_from_root_and_config(resolved, config)
