"""Config file parsing, env overrides and data directory discovery."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from pgmisc.lib.config import (
    ControlDataConfig,
    PgMiscConfig,
    load_config,
    resolve_config_path,
    resolve_data_directory,
)


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PGDATA",
        "PGMISC_CONFIG",
        "PGMISC_SUPERUSER_UIDS",
        "PGMISC_PG_CONTROLDATA",
        "PGMISC_CONTROLDATA_TIMEOUT_SECONDS",
        "PGMISC_WAL_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


def _install_config(data_dir: Path, content: str) -> None:
    (data_dir / "pgmisc.toml").write_text(content, encoding="utf-8")


def test_load_config_missing_file_returns_defaults(data_dir: Path) -> None:
    assert load_config(data_dir) == PgMiscConfig()


def test_load_config_reads_every_section(data_dir: Path) -> None:
    _install_config(
        data_dir,
        (
            "[auth]\n"
            "superuser_uids = [1001, 1002]\n"
            "\n"
            "[wal]\n"
            "directory = 'pg_xlog'\n"
            "\n"
            "[controldata]\n"
            "command = '/usr/lib/postgresql/17/bin/pg_controldata'\n"
            "timeout_seconds = 2\n"
        ),
    )

    assert load_config(data_dir) == PgMiscConfig(
        superuser_uids=(1001, 1002),
        wal_dir="pg_xlog",
        controldata=ControlDataConfig(
            command="/usr/lib/postgresql/17/bin/pg_controldata",
            timeout_seconds=2.0,
        ),
    )


def test_load_config_env_override(monkeypatch: pytest.MonkeyPatch, data_dir: Path) -> None:
    _install_config(
        data_dir,
        "[auth]\nsuperuser_uids = [1001]\n\n[controldata]\ncommand = 'from-file'\n",
    )
    monkeypatch.setenv("PGMISC_SUPERUSER_UIDS", "7, 8")
    monkeypatch.setenv("PGMISC_CONTROLDATA_TIMEOUT_SECONDS", "1.5")
    monkeypatch.setenv("PGMISC_WAL_DIR", "wal")

    loaded = load_config(data_dir)

    assert loaded.superuser_uids == (7, 8)
    assert loaded.wal_dir == "wal"
    assert loaded.controldata == ControlDataConfig(command="from-file", timeout_seconds=1.5)


def test_config_path_override(monkeypatch: pytest.MonkeyPatch, data_dir: Path, tmp_path: Path) -> None:
    elsewhere = tmp_path / "elsewhere.toml"
    elsewhere.write_text("[controldata]\ncommand = 'pg_controldata17'\n", encoding="utf-8")
    monkeypatch.setenv("PGMISC_CONFIG", str(elsewhere))

    assert resolve_config_path(data_dir) == elsewhere.resolve()
    assert load_config(data_dir).controldata.command == "pg_controldata17"


def test_load_config_warns_on_unknown_keys(
    caplog: pytest.LogCaptureFixture,
    data_dir: Path,
) -> None:
    _install_config(
        data_dir,
        "[auth]\nsuperuser_uids = []\nroles = ['admin']\n\n[metrics]\nenabled = true\n",
    )

    with caplog.at_level(logging.WARNING, logger="pgmisc.lib.config.settings"):
        loaded = load_config(data_dir)

    assert loaded == PgMiscConfig()
    messages = [record.getMessage() for record in caplog.records]
    assert "Ignoring unknown pgmisc config key 'auth.roles'." in messages
    assert "Ignoring unknown pgmisc config key 'metrics'." in messages


@pytest.mark.parametrize(
    "content",
    [
        "[auth]\nsuperuser_uids = 'postgres'\n",
        "[auth]\nsuperuser_uids = [-1]\n",
        "[auth]\nsuperuser_uids = [true]\n",
        "[wal]\ndirectory = ''\n",
        "[controldata]\ntimeout_seconds = 0\n",
        "[controldata]\ntimeout_seconds = true\n",
        "auth = 1\n",
    ],
)
def test_load_config_rejects_invalid_values(data_dir: Path, content: str) -> None:
    _install_config(data_dir, content)

    with pytest.raises(ValueError, match="Invalid value"):
        load_config(data_dir)


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("PGMISC_SUPERUSER_UIDS", "postgres"),
        ("PGMISC_CONTROLDATA_TIMEOUT_SECONDS", "soon"),
    ],
)
def test_load_config_rejects_invalid_env(
    monkeypatch: pytest.MonkeyPatch,
    data_dir: Path,
    name: str,
    value: str,
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError, match=name):
        load_config(data_dir)


def test_resolve_data_directory_precedence(
    monkeypatch: pytest.MonkeyPatch,
    data_dir: Path,
    tmp_path: Path,
) -> None:
    other = tmp_path / "other"
    other.mkdir()
    nested = data_dir / "base" / "1"
    nested.mkdir(parents=True)

    monkeypatch.chdir(nested)
    assert resolve_data_directory() == data_dir.resolve()

    monkeypatch.setenv("PGDATA", str(other))
    assert resolve_data_directory() == other.resolve()

    assert resolve_data_directory(data_dir) == data_dir.resolve()


def test_resolve_data_directory_falls_back_to_cwd(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.chdir(tmp_path)

    assert resolve_data_directory() == tmp_path.resolve()
