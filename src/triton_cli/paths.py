from __future__ import annotations

import os
from pathlib import Path


def config_dir() -> Path:
    """
    Root directory for CLI configuration.

    TRITON_CONFIG_DIR wins; otherwise ~/.triton.
    """
    override = os.getenv("TRITON_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".triton"


def profiles_dir() -> Path:
    return config_dir() / "profiles.d"


def profile_path(name: str) -> Path:
    return profiles_dir() / f"{name}.json"
