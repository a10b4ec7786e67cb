"""Path resolution for the cluster data directory and its config file."""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "pgmisc.toml"


def resolve_data_directory(explicit: Path | None = None) -> Path:
    """Resolve the data directory of the cluster being administered.

    Precedence:
    1. Explicit function argument.
    2. `PGDATA` environment variable.
    3. Current directory / ancestors containing `PG_VERSION`.
    4. Current working directory.
    """

    if explicit is not None:
        return explicit.expanduser().resolve()

    env_root = os.getenv("PGDATA", "").strip()
    if env_root:
        return Path(env_root).expanduser().resolve()

    cwd = Path.cwd().resolve()
    for candidate in (cwd, *cwd.parents):
        if (candidate / "PG_VERSION").is_file():
            return candidate
    return cwd


def resolve_config_path(data_dir: Path) -> Path:
    """Return `PGMISC_CONFIG` when set, else `<data_dir>/pgmisc.toml`."""

    override = os.getenv("PGMISC_CONFIG", "").strip()
    if override:
        return Path(override).expanduser().resolve()
    return data_dir / CONFIG_FILENAME
