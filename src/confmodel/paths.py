from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir as _uc

# ---------------------------------------------------------------------------
# Application-relative paths
# ---------------------------------------------------------------------------

def base_dir() -> Path:
    """Return the directory relative document paths are anchored to."""
    env = os.getenv("CONFMODEL_ROOT")
    if env:
        return Path(env).expanduser().resolve()
    return Path.cwd()


def resolve_path(path: str | Path, base: str | Path | None = None) -> Path:
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    root = Path(base) if base is not None else base_dir()
    return root / p

# ---------------------------------------------------------------------------
# User directories
# ---------------------------------------------------------------------------

def user_config_file(app_name: str, filename: str) -> Path:
    return Path(_uc(appname=app_name)).resolve() / filename
