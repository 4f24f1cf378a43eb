"""Common path utilities for gptbridge."""

from __future__ import annotations

import os
from pathlib import Path


def get_gptbridge_home() -> Path:
    """Return the base gptbridge directory, honoring GPTBRIDGE_HOME if set."""

    env_path = os.environ.get("GPTBRIDGE_HOME")
    return Path(env_path).expanduser() if env_path else Path.home() / ".gptbridge"


__all__ = ["get_gptbridge_home"]
