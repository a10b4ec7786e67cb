"""Doctor diagnostics against a stopped data directory."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from pgmisc.lib.ops.diag import DoctorInput, doctor, doctor_sync


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PGDATA", "PGMISC_CONFIG", "PGMISC_SUPERUSER_UIDS", "PGMISC_PG_CONTROLDATA"):
        monkeypatch.delenv(name, raising=False)


def test_doctor_reports_stopped_cluster(
    monkeypatch: pytest.MonkeyPatch,
    data_dir: Path,
    fake_controldata,
) -> None:
    monkeypatch.setenv("PGMISC_PG_CONTROLDATA", str(fake_controldata()))

    output = doctor_sync(DoctorInput(data_dir=str(data_dir)))

    assert output.ok is False
    assert output.data_dir == data_dir.resolve().as_posix()
    assert output.supervisor_pid is None
    assert output.authorized is True
    assert output.cluster_state == "in production"
    assert output.ordinary_processes == 0
    assert output.auxiliary_processes == 0
    assert any("postmaster.pid" in warning for warning in output.warnings)
    assert "warning: No postmaster.pid found" in output.format_text()


def test_doctor_flags_stale_pid_file(
    monkeypatch: pytest.MonkeyPatch,
    data_dir: Path,
    fake_controldata,
) -> None:
    monkeypatch.setenv("PGMISC_PG_CONTROLDATA", str(fake_controldata()))
    # Far above any default pid_max.
    (data_dir / "postmaster.pid").write_text("2147483000\n", encoding="utf-8")

    output = doctor_sync(DoctorInput(data_dir=str(data_dir)))

    assert output.supervisor_pid == 2147483000
    assert "postmaster.pid names pid 2147483000, which is not running." in output.warnings


def test_doctor_flags_pid_file_naming_another_process(
    monkeypatch: pytest.MonkeyPatch,
    data_dir: Path,
    fake_controldata,
    postmaster_pid_file,
) -> None:
    monkeypatch.setenv("PGMISC_PG_CONTROLDATA", str(fake_controldata()))
    # A running pid whose start time does not match the file.
    postmaster_pid_file(data_dir, started_at=1)

    output = doctor_sync(DoctorInput(data_dir=str(data_dir)))

    pid = os.getpid()
    assert output.supervisor_pid == pid
    assert f"postmaster.pid names pid {pid}, which is not the postmaster of this data directory." in output.warnings
    assert output.ordinary_processes == 0


def test_doctor_reports_controldata_failure(
    monkeypatch: pytest.MonkeyPatch,
    data_dir: Path,
    tmp_path: Path,
) -> None:
    monkeypatch.setenv("PGMISC_PG_CONTROLDATA", str(tmp_path / "missing-pg_controldata"))

    output = asyncio.run(doctor(DoctorInput(data_dir=str(data_dir))))

    assert output.ok is False
    assert output.cluster_state is None
    assert any("pg_controldata executable not found" in warning for warning in output.warnings)


def test_doctor_flags_non_data_directory(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    fake_controldata,
) -> None:
    monkeypatch.setenv("PGMISC_PG_CONTROLDATA", str(fake_controldata()))
    plain = tmp_path / "plain"
    plain.mkdir()

    output = doctor_sync(DoctorInput(data_dir=str(plain)))

    assert any("no PG_VERSION" in warning for warning in output.warnings)
