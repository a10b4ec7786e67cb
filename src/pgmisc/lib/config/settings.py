"""Operational config loader."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from pgmisc.lib.config._paths import resolve_config_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ControlDataConfig:
    """How to invoke `pg_controldata`."""

    command: str = "pg_controldata"
    timeout_seconds: float = 5.0


@dataclass(frozen=True, slots=True)
class PgMiscConfig:
    """Resolved operational configuration for pgmisc."""

    superuser_uids: tuple[int, ...] = ()
    wal_dir: str = "pg_wal"
    controldata: ControlDataConfig = ControlDataConfig()


_AUTH_KEYS = frozenset({"superuser_uids"})
_WAL_KEYS = frozenset({"directory"})
_CONTROLDATA_KEYS = frozenset({"command", "timeout_seconds"})


def _require_table(raw_value: object, source: str) -> dict[str, object]:
    if not isinstance(raw_value, dict):
        raise ValueError(f"Invalid value for '{source}': expected table.")
    return cast("dict[str, object]", raw_value)


def _coerce_str(raw_value: object, source: str) -> str:
    if not isinstance(raw_value, str):
        raise ValueError(
            f"Invalid value for '{source}': expected str, got "
            f"{type(raw_value).__name__} ({raw_value!r})."
        )
    normalized = raw_value.strip()
    if not normalized:
        raise ValueError(f"Invalid value for '{source}': expected non-empty string.")
    return normalized


def _coerce_timeout(raw_value: object, source: str) -> float:
    if isinstance(raw_value, bool) or not isinstance(raw_value, int | float):
        raise ValueError(
            f"Invalid value for '{source}': expected float, got "
            f"{type(raw_value).__name__} ({raw_value!r})."
        )
    if raw_value <= 0:
        raise ValueError(f"Invalid value for '{source}': expected a positive number.")
    return float(raw_value)


def _coerce_uid_list(raw_value: object, source: str) -> tuple[int, ...]:
    if not isinstance(raw_value, list):
        raise ValueError(
            f"Invalid value for '{source}': expected array[int], got "
            f"{type(raw_value).__name__} ({raw_value!r})."
        )
    parsed: list[int] = []
    for item in cast("list[object]", raw_value):
        if isinstance(item, bool) or not isinstance(item, int) or item < 0:
            raise ValueError(
                f"Invalid value for '{source}': expected non-negative uids, got {item!r}."
            )
        parsed.append(item)
    return tuple(parsed)


def _apply_toml_payload(*, values: dict[str, object], payload: dict[str, object]) -> None:
    for key, raw_value in payload.items():
        if key == "auth":
            for section_key, value in _require_table(raw_value, key).items():
                if section_key not in _AUTH_KEYS:
                    logger.warning("Ignoring unknown pgmisc config key '%s.%s'.", key, section_key)
                    continue
                values["superuser_uids"] = _coerce_uid_list(value, f"{key}.{section_key}")
            continue

        if key == "wal":
            for section_key, value in _require_table(raw_value, key).items():
                if section_key not in _WAL_KEYS:
                    logger.warning("Ignoring unknown pgmisc config key '%s.%s'.", key, section_key)
                    continue
                values["wal_dir"] = _coerce_str(value, f"{key}.{section_key}")
            continue

        if key == "controldata":
            current = cast("ControlDataConfig", values["controldata"])
            command = current.command
            timeout_seconds = current.timeout_seconds
            for section_key, value in _require_table(raw_value, key).items():
                if section_key not in _CONTROLDATA_KEYS:
                    logger.warning("Ignoring unknown pgmisc config key '%s.%s'.", key, section_key)
                    continue
                source = f"{key}.{section_key}"
                if section_key == "command":
                    command = _coerce_str(value, source)
                else:
                    timeout_seconds = _coerce_timeout(value, source)
            values["controldata"] = ControlDataConfig(
                command=command,
                timeout_seconds=timeout_seconds,
            )
            continue

        logger.warning("Ignoring unknown pgmisc config key '%s'.", key)


def _apply_env_overrides(values: dict[str, object]) -> None:
    raw_uids = os.getenv("PGMISC_SUPERUSER_UIDS")
    if raw_uids is not None:
        try:
            values["superuser_uids"] = tuple(
                int(item) for item in raw_uids.split(",") if item.strip()
            )
        except ValueError as error:
            raise ValueError(
                "Invalid environment override 'PGMISC_SUPERUSER_UIDS': expected "
                f"comma-separated ints, got {raw_uids!r}."
            ) from error

    raw_wal_dir = os.getenv("PGMISC_WAL_DIR")
    if raw_wal_dir is not None:
        values["wal_dir"] = _coerce_str(raw_wal_dir, "PGMISC_WAL_DIR")

    current = cast("ControlDataConfig", values["controldata"])
    command = current.command
    timeout_seconds = current.timeout_seconds
    raw_command = os.getenv("PGMISC_PG_CONTROLDATA")
    if raw_command is not None:
        command = _coerce_str(raw_command, "PGMISC_PG_CONTROLDATA")
    raw_timeout = os.getenv("PGMISC_CONTROLDATA_TIMEOUT_SECONDS")
    if raw_timeout is not None:
        try:
            parsed_timeout = float(raw_timeout.strip())
        except ValueError as error:
            raise ValueError(
                "Invalid environment override 'PGMISC_CONTROLDATA_TIMEOUT_SECONDS': "
                f"expected float, got {raw_timeout!r}."
            ) from error
        timeout_seconds = _coerce_timeout(parsed_timeout, "PGMISC_CONTROLDATA_TIMEOUT_SECONDS")
    values["controldata"] = ControlDataConfig(command=command, timeout_seconds=timeout_seconds)


def load_config(data_dir: Path) -> PgMiscConfig:
    """Load `pgmisc.toml` and apply environment overrides."""

    defaults = PgMiscConfig()
    values: dict[str, object] = {
        "superuser_uids": defaults.superuser_uids,
        "wal_dir": defaults.wal_dir,
        "controldata": defaults.controldata,
    }
    path = resolve_config_path(data_dir)
    if path.is_file():
        payload = cast("dict[str, object]", tomllib.loads(path.read_text(encoding="utf-8")))
        _apply_toml_payload(values=values, payload=payload)

    _apply_env_overrides(values)
    return PgMiscConfig(
        superuser_uids=cast("tuple[int, ...]", values["superuser_uids"]),
        wal_dir=cast("str", values["wal_dir"]),
        controldata=cast("ControlDataConfig", values["controldata"]),
    )
