"""Read cluster control data through the `pg_controldata` utility."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from pgmisc.lib.types import Lsn, TimelineId

_CLUSTER_STATE: Final[str] = "Database cluster state"
_CHECKPOINT_LOCATION: Final[str] = "Latest checkpoint location"
_CHECKPOINT_TIMELINE: Final[str] = "Latest checkpoint's TimeLineID"
_MIN_RECOVERY_LOCATION: Final[str] = "Minimum recovery ending location"
_MIN_RECOVERY_TIMELINE: Final[str] = "Min recovery ending loc's timeline"
_WAL_SEGMENT_SIZE: Final[str] = "Bytes per WAL segment"

DEFAULT_WAL_SEGMENT_SIZE: Final[int] = 16 * 1024 * 1024

PRODUCTION_STATE: Final[str] = "in production"
RECOVERY_STATES: Final[frozenset[str]] = frozenset(
    {"in archive recovery", "in crash recovery", "shut down in recovery"}
)


class ControlDataError(RuntimeError):
    """pg_controldata could not be run or its output could not be read."""


def parse_lsn(text: str) -> Lsn:
    """Parse an `X/X` WAL location."""

    high, sep, low = text.strip().partition("/")
    if not sep:
        raise ValueError(f"Invalid WAL location '{text}'.")
    try:
        return Lsn((int(high, 16) << 32) | int(low, 16))
    except ValueError:
        raise ValueError(f"Invalid WAL location '{text}'.") from None


def format_lsn(lsn: int) -> str:
    return f"{lsn >> 32:X}/{lsn & 0xFFFFFFFF:X}"


@dataclass(frozen=True, slots=True)
class ControlData:
    """The subset of pg_controldata fields timeline reporting needs."""

    cluster_state: str
    checkpoint_lsn: Lsn
    checkpoint_timeline: TimelineId
    min_recovery_lsn: Lsn
    min_recovery_timeline: TimelineId
    wal_segment_size: int = DEFAULT_WAL_SEGMENT_SIZE

    @property
    def in_production(self) -> bool:
        return self.cluster_state == PRODUCTION_STATE

    @property
    def in_recovery(self) -> bool:
        return self.cluster_state in RECOVERY_STATES


def parse_controldata(output: str) -> ControlData:
    fields: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        fields[key.strip()] = value.strip()

    def _require(key: str) -> str:
        value = fields.get(key)
        if value is None:
            raise ControlDataError(f"pg_controldata output is missing '{key}'.")
        return value

    def _int(key: str) -> int:
        raw = _require(key)
        try:
            return int(raw)
        except ValueError:
            raise ControlDataError(f"pg_controldata field '{key}' is not an integer: {raw!r}.") from None

    def _lsn(key: str) -> Lsn:
        try:
            return parse_lsn(_require(key))
        except ValueError as exc:
            raise ControlDataError(str(exc)) from None

    segment_size = (
        _int(_WAL_SEGMENT_SIZE) if _WAL_SEGMENT_SIZE in fields else DEFAULT_WAL_SEGMENT_SIZE
    )
    return ControlData(
        cluster_state=_require(_CLUSTER_STATE),
        checkpoint_lsn=_lsn(_CHECKPOINT_LOCATION),
        checkpoint_timeline=TimelineId(_int(_CHECKPOINT_TIMELINE)),
        min_recovery_lsn=_lsn(_MIN_RECOVERY_LOCATION),
        min_recovery_timeline=TimelineId(_int(_MIN_RECOVERY_TIMELINE)),
        wal_segment_size=segment_size,
    )


def read_controldata(data_dir: Path, *, command: str, timeout_seconds: float) -> ControlData:
    """Run `pg_controldata -D <data_dir>` and parse its output."""

    env = dict(os.environ)
    # Field labels are translated under other locales.
    env["LC_ALL"] = "C"
    try:
        completed = subprocess.run(
            [command, "-D", data_dir.as_posix()],
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout_seconds,
            env=env,
        )
    except FileNotFoundError:
        raise ControlDataError(f"pg_controldata executable not found: '{command}'.") from None
    except subprocess.TimeoutExpired:
        raise ControlDataError(
            f"pg_controldata did not finish within {timeout_seconds:g}s."
        ) from None

    if completed.returncode != 0:
        detail = completed.stderr.strip() or f"exit code {completed.returncode}"
        raise ControlDataError(f"pg_controldata failed: {detail}")
    return parse_controldata(completed.stdout)
