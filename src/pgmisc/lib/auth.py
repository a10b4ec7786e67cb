"""Superuser checks shared by every gated operation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from pgmisc.lib.errors import InsufficientPrivilegeError

if TYPE_CHECKING:
    from pgmisc.lib.ports import Authorizer


@dataclass(frozen=True, slots=True)
class ClusterOwnerAuthorizer:
    """Treat root, the data directory owner, and configured uids as superusers."""

    data_dir: Path
    superuser_uids: tuple[int, ...] = field(default=())

    def is_authorized(self) -> bool:
        geteuid = getattr(os, "geteuid", None)
        if geteuid is None:
            return False
        euid = geteuid()
        if euid == 0 or euid in self.superuser_uids:
            return True
        try:
            return self.data_dir.stat().st_uid == euid
        except OSError:
            return False


def require_superuser(
    authorizer: Authorizer,
    operation: str,
    *,
    detail: str | None = None,
) -> None:
    """Raise InsufficientPrivilegeError unless the caller passes the check."""

    if authorizer.is_authorized():
        return
    raise InsufficientPrivilegeError(
        f"must be a superuser to execute {operation} function",
        detail=detail,
    )
