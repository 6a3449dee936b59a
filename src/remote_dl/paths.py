from __future__ import annotations

import os
import tempfile
from pathlib import Path


def remote_dl_home() -> Path:
    env = os.environ.get("REMOTE_DL_HOME", "").strip()
    if env:
        return Path(env).expanduser().resolve()
    return (Path.home() / ".remote-dl").resolve()


def ensure_home() -> Path:
    home = remote_dl_home()
    home.mkdir(parents=True, exist_ok=True)
    return home


def default_save_dir() -> Path:
    return Path(tempfile.gettempdir()) / "streambox"
