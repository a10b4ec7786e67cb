"""Failure-injection triggers for test and development clusters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, NoReturn

from pgmisc.lib.auth import require_superuser
from pgmisc.lib.errors import SUPERUSER_DETAIL, ClusterAbort, ProcessAbort

if TYPE_CHECKING:
    from pgmisc.lib.ports import Authorizer

CAUSE_FATAL_FUNCTION: Final[str] = "pg_cause_fatal"
CAUSE_PANIC_FUNCTION: Final[str] = "pg_cause_panic"


def cause_fatal(authorizer: Authorizer) -> NoReturn:
    """Abort the current server process."""

    require_superuser(authorizer, CAUSE_FATAL_FUNCTION, detail=SUPERUSER_DETAIL)
    raise ProcessAbort("FATAL error generated by pg_cause_fatal function")


def cause_panic(authorizer: Authorizer) -> NoReturn:
    """Abort the whole cluster."""

    require_superuser(authorizer, CAUSE_PANIC_FUNCTION, detail=SUPERUSER_DETAIL)
    raise ClusterAbort("PANIC generated by pg_cause_panic function")
