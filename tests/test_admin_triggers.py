"""Failure-injection triggers and the superuser check."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from pgmisc.lib.admin import cause_fatal, cause_panic
from pgmisc.lib.auth import ClusterOwnerAuthorizer, require_superuser
from pgmisc.lib.errors import (
    SUPERUSER_DETAIL,
    ClusterAbort,
    DeliberateAbort,
    InsufficientPrivilegeError,
    ProcessAbort,
    Severity,
    SqlState,
)


class _Authorizer:
    def __init__(self, allowed: bool) -> None:
        self.allowed = allowed

    def is_authorized(self) -> bool:
        return self.allowed


def test_cause_fatal_aborts_the_process() -> None:
    with pytest.raises(ProcessAbort) as excinfo:
        cause_fatal(_Authorizer(allowed=True))

    assert str(excinfo.value) == "FATAL error generated by pg_cause_fatal function"
    assert excinfo.value.severity == Severity.FATAL
    assert excinfo.value.sqlstate == SqlState.INTERNAL_ERROR
    assert excinfo.value.exit_code == 1


def test_cause_panic_aborts_the_cluster() -> None:
    with pytest.raises(ClusterAbort) as excinfo:
        cause_panic(_Authorizer(allowed=True))

    assert str(excinfo.value) == "PANIC generated by pg_cause_panic function"
    assert excinfo.value.severity == Severity.PANIC
    assert excinfo.value.sqlstate == SqlState.INTERNAL_ERROR
    assert excinfo.value.exit_code == 134


@pytest.mark.parametrize(
    ("trigger", "function_name"),
    [(cause_fatal, "pg_cause_fatal"), (cause_panic, "pg_cause_panic")],
)
def test_unauthorized_triggers_raise_permission_error_only(trigger, function_name: str) -> None:
    with pytest.raises(InsufficientPrivilegeError) as excinfo:
        trigger(_Authorizer(allowed=False))

    error = excinfo.value
    assert not isinstance(error, DeliberateAbort)
    assert isinstance(error, PermissionError)
    assert error.message == f"must be a superuser to execute {function_name} function"
    assert error.detail == SUPERUSER_DETAIL
    assert error.sqlstate == SqlState.INSUFFICIENT_PRIVILEGE


def test_require_superuser_passes_authorized_caller() -> None:
    require_superuser(_Authorizer(allowed=True), "pg_signal_backend")


@pytest.mark.skipif(not hasattr(os, "geteuid"), reason="POSIX uids required")
def test_data_directory_owner_is_superuser(data_dir: Path) -> None:
    assert ClusterOwnerAuthorizer(data_dir).is_authorized() is True


@pytest.mark.skipif(not hasattr(os, "geteuid"), reason="POSIX uids required")
def test_missing_data_directory_is_not_authorized(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.setattr(os, "geteuid", lambda: 4242)

    assert ClusterOwnerAuthorizer(tmp_path / "missing").is_authorized() is False


@pytest.mark.skipif(not hasattr(os, "geteuid"), reason="POSIX uids required")
def test_configured_uid_and_root_are_superusers(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    missing = tmp_path / "missing"
    monkeypatch.setattr(os, "geteuid", lambda: 4242)
    assert ClusterOwnerAuthorizer(missing, superuser_uids=(4242,)).is_authorized() is True

    monkeypatch.setattr(os, "geteuid", lambda: 0)
    assert ClusterOwnerAuthorizer(missing).is_authorized() is True


@pytest.mark.skipif(not hasattr(os, "geteuid"), reason="POSIX uids required")
def test_other_users_are_not_superusers(monkeypatch: pytest.MonkeyPatch, data_dir: Path) -> None:
    owner = data_dir.stat().st_uid
    monkeypatch.setattr(os, "geteuid", lambda: owner + 1)

    assert ClusterOwnerAuthorizer(data_dir, superuser_uids=(owner + 2,)).is_authorized() is False
