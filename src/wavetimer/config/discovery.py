"""Locate wavetimer.toml.

``WAVETIMER_CONFIG`` names the file outright. Otherwise the current
directory and each of its parents are searched, nearest first.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "wavetimer.toml"
CONFIG_ENV_VAR = "WAVETIMER_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies to *start* (default: cwd), or None.

    A ``WAVETIMER_CONFIG`` pointing at a missing file disables discovery
    instead of falling back to the walk.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
