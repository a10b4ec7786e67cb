"""Shared pytest fixtures for CLI integration checks."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import textwrap
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import psutil
import pytest

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

PACKAGE_ROOT = Path(__file__).resolve().parents[1]

CONTROLDATA_IN_PRODUCTION = textwrap.dedent(
    """\
    pg_control version number:            1300
    Catalog version number:               202307071
    Database system identifier:           7291865391425069432
    Database cluster state:               in production
    pg_control last modified:             Mon 14 Oct 2024 09:12:44 UTC
    Latest checkpoint location:           0/3000060
    Latest checkpoint's REDO location:    0/3000028
    Latest checkpoint's REDO WAL file:    000000020000000000000003
    Latest checkpoint's TimeLineID:       2
    Latest checkpoint's PrevTimeLineID:   1
    Minimum recovery ending location:     0/0
    Min recovery ending loc's timeline:   0
    Bytes per WAL segment:                16777216
    """
)


@dataclass(frozen=True, slots=True)
class CliResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


@pytest.fixture
def package_root() -> Path:
    return PACKAGE_ROOT


@pytest.fixture
def controldata_output() -> str:
    return CONTROLDATA_IN_PRODUCTION


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A data directory with no running server, owned by the test user."""

    root = tmp_path / "pgdata"
    root.mkdir()
    (root / "PG_VERSION").write_text("17\n", encoding="utf-8")
    (root / "pg_wal").mkdir()
    return root


@pytest.fixture
def fake_controldata(tmp_path: Path) -> Callable[[str], Path]:
    """Write an executable that prints canned `pg_controldata` output."""

    def _install(output: str = CONTROLDATA_IN_PRODUCTION) -> Path:
        script = tmp_path / "bin" / "pg_controldata"
        script.parent.mkdir(parents=True, exist_ok=True)
        script.write_text(
            f"#!/bin/sh\ncat <<'CONTROLDATA'\n{output}CONTROLDATA\n",
            encoding="utf-8",
        )
        script.chmod(0o755)
        return script

    return _install


@pytest.fixture
def cli_env(package_root: Path) -> dict[str, str]:
    env = {
        key: value
        for key, value in os.environ.items()
        if key != "PGDATA" and not key.startswith("PGMISC_")
    }
    existing = env.get("PYTHONPATH", "")
    root = str(package_root / "src")
    env["PYTHONPATH"] = root if not existing else f"{root}:{existing}"
    return env


@pytest.fixture
def run_pgmisc(package_root: Path, cli_env: dict[str, str]) -> Callable[..., CliResult]:
    def _run(
        args: list[str],
        timeout: float = 15.0,
        env: dict[str, str] | None = None,
    ) -> CliResult:
        completed = subprocess.run(
            [sys.executable, "-m", "pgmisc", *args],
            cwd=package_root,
            env={**cli_env, **(env or {})},
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
        return CliResult(
            args=tuple(args),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

    return _run


@pytest.fixture
def postmaster_pid_file() -> Callable[..., Path]:
    """Write `postmaster.pid` naming `pid`, stamped with its real start time."""

    def _write(
        data_dir: Path,
        pid: int | None = None,
        *,
        started_at: int | None = None,
        recorded_dir: Path | None = None,
    ) -> Path:
        pid = os.getpid() if pid is None else pid
        if started_at is None:
            started_at = int(psutil.Process(pid).create_time())
        path = data_dir / "postmaster.pid"
        path.write_text(
            f"{pid}\n{recorded_dir or data_dir}\n{started_at}\n5432\n",
            encoding="utf-8",
        )
        return path

    return _write


def _wait_for_title(pid: int, title: str, *, timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if " ".join(" ".join(psutil.Process(pid).cmdline()).split()).startswith(title):
            return
        time.sleep(0.05)
    raise AssertionError(f"process {pid} never took the title {title!r}")


@pytest.fixture
def spawn_titled() -> Iterator[Callable[..., subprocess.Popen[bytes]]]:
    """Spawn children of this process that rewrite their title like server processes do."""

    perl = shutil.which("perl")
    if perl is None:
        pytest.skip("perl is needed to rewrite a process title")
    children: list[subprocess.Popen[bytes]] = []

    def _spawn(title: str, *, new_session: bool = False) -> subprocess.Popen[bytes]:
        child = subprocess.Popen(
            [perl, "-e", "$0 = shift; sleep 60", title],
            start_new_session=new_session,
        )
        children.append(child)
        _wait_for_title(child.pid, title)
        return child

    yield _spawn
    for child in children:
        if child.poll() is None:
            child.kill()
            child.wait(timeout=10)
