"""Process registry backed by the live process table of one cluster."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

import psutil
import structlog

from pgmisc.lib.domain import ProcessHandle, ProcessKind
from pgmisc.lib.types import ProcessId

logger = structlog.get_logger(__name__)

POSTMASTER_PID_FILENAME: Final[str] = "postmaster.pid"
_TITLE_PREFIX: Final[str] = "postgres:"

# psutil derives create_time from boot time, which drifts with clock
# adjustments; the pid file records whole seconds.
_START_TIME_TOLERANCE_SECONDS: Final[float] = 5.0

# Process types that run as auxiliary processes rather than as ordinary
# backends. Autovacuum, logical replication launchers, walsenders and
# background workers are ordinary.
AUXILIARY_BACKEND_TYPES: Final[tuple[str, ...]] = (
    "startup",
    "background writer",
    "checkpointer",
    "walwriter",
    "walreceiver",
    "archiver",
    "walsummarizer",
    "io worker",
)

# Children of the supervisor that hold no process slot and are never
# signaled through the server.
NON_SERVER_BACKEND_TYPES: Final[tuple[str, ...]] = (
    "logger",
    "stats collector",
)

_KNOWN_BACKEND_TYPES: Final[tuple[str, ...]] = AUXILIARY_BACKEND_TYPES + NON_SERVER_BACKEND_TYPES


@dataclass(frozen=True, slots=True)
class PostmasterPidFile:
    """The leading lines of `postmaster.pid`."""

    pid: ProcessId
    data_dir: str | None = None
    started_at: int | None = None


def _int_or_none(line: str) -> int | None:
    try:
        return int(line.strip())
    except ValueError:
        return None


def read_postmaster_pid_file(data_dir: Path) -> PostmasterPidFile | None:
    pid_path = data_dir / POSTMASTER_PID_FILENAME
    try:
        lines = pid_path.read_text(encoding="utf-8").splitlines()
    except OSError:
        return None
    if not lines:
        return None
    pid = _int_or_none(lines[0])
    if pid is None:
        logger.warning("Ignoring malformed supervisor pid file.", path=pid_path.as_posix())
        return None
    if pid <= 0:
        return None
    recorded_dir = lines[1].strip() if len(lines) > 1 else ""
    return PostmasterPidFile(
        pid=ProcessId(pid),
        data_dir=recorded_dir or None,
        started_at=_int_or_none(lines[2]) if len(lines) > 2 else None,
    )


def read_supervisor_pid(data_dir: Path) -> ProcessId | None:
    """Return the pid on line 1 of `postmaster.pid`, without checking it."""

    pid_file = read_postmaster_pid_file(data_dir)
    return pid_file.pid if pid_file is not None else None


def _same_directory(recorded: str, data_dir: Path) -> bool:
    try:
        return Path(recorded).resolve() == data_dir.resolve()
    except OSError:
        return False


def verify_supervisor(pid_file: PostmasterPidFile, data_dir: Path) -> bool:
    """Check that `pid_file` describes a postmaster that is still running.

    The pid file outlives a crashed server and its pid can be reused, so the
    running process must have started when the file says the postmaster did,
    and the file must name this data directory.
    """

    if pid_file.started_at is None or pid_file.data_dir is None:
        return False
    if not _same_directory(pid_file.data_dir, data_dir):
        return False
    try:
        started = psutil.Process(pid_file.pid).create_time()
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return False
    return abs(started - pid_file.started_at) <= _START_TIME_TOLERANCE_SECONDS


def is_server_title(title: str) -> bool:
    return " ".join(title.split()).startswith(_TITLE_PREFIX)


def backend_type_from_title(title: str) -> str:
    """Extract the backend type portion of a `postgres: ...` process title.

    Titles look like `postgres: checkpointer`, `postgres: main: walwriter`
    (with cluster_name set) or `postgres: alice appdb [local] idle`.
    """

    normalized = " ".join(title.split())
    if not normalized.startswith(_TITLE_PREFIX):
        return normalized
    remainder = normalized[len(_TITLE_PREFIX) :].strip()
    for candidate in (remainder, remainder.partition(": ")[2]):
        for backend_type in _KNOWN_BACKEND_TYPES:
            if candidate == backend_type or candidate.startswith(f"{backend_type} "):
                return backend_type
    return remainder


def classify_title(title: str) -> ProcessKind:
    if backend_type_from_title(title) in AUXILIARY_BACKEND_TYPES:
        return ProcessKind.AUXILIARY
    return ProcessKind.ORDINARY


class ClusterProcessRegistry:
    """Resolve pids to processes owned by the cluster rooted at `data_dir`.

    A process belongs to the cluster when it is a live, direct child of the
    postmaster named in `postmaster.pid` and carries a `postgres:` title.
    Children without a process slot, such as the logging collector, are
    not server processes. Every answer is a snapshot; the process table
    keeps changing underneath.
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def supervisor_pid(self) -> ProcessId | None:
        pid_file = read_postmaster_pid_file(self._data_dir)
        if pid_file is None:
            return None
        if not verify_supervisor(pid_file, self._data_dir):
            logger.debug(
                "Ignoring stale postmaster.pid.",
                pid=pid_file.pid,
                data_dir=self._data_dir.as_posix(),
            )
            return None
        return pid_file.pid

    def lookup_ordinary(self, pid: ProcessId) -> ProcessHandle | None:
        return self._lookup(pid, ProcessKind.ORDINARY)

    def lookup_auxiliary(self, pid: ProcessId) -> ProcessHandle | None:
        return self._lookup(pid, ProcessKind.AUXILIARY)

    def snapshot(self) -> list[ProcessHandle]:
        """Return every server-owned process currently visible."""

        supervisor = self.supervisor_pid()
        if supervisor is None:
            return []
        try:
            children = psutil.Process(supervisor).children(recursive=False)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return []

        handles: list[ProcessHandle] = []
        for child in children:
            handle = _handle_for(child)
            if handle is not None:
                handles.append(handle)
        return sorted(handles, key=lambda item: item.pid)

    def _lookup(self, pid: ProcessId, kind: ProcessKind) -> ProcessHandle | None:
        if pid <= 0:
            return None
        supervisor = self.supervisor_pid()
        if supervisor is None or pid == supervisor:
            return None
        try:
            process = psutil.Process(pid)
            if process.ppid() != supervisor:
                return None
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return None

        handle = _handle_for(process)
        if handle is None or handle.kind != kind:
            return None
        return handle


def _handle_for(process: psutil.Process) -> ProcessHandle | None:
    # An unreadable title cannot be told apart from a foreign process.
    try:
        title = " ".join(process.cmdline())
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return None
    if not is_server_title(title):
        return None
    backend_type = backend_type_from_title(title)
    if backend_type in NON_SERVER_BACKEND_TYPES:
        return None
    return ProcessHandle(
        pid=ProcessId(process.pid),
        kind=classify_title(title),
        backend_type=backend_type,
    )
