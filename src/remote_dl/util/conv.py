from __future__ import annotations

import math
from typing import Any

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def coerce_bool(value: Any, *, default: bool = False) -> bool:
    """Coerce a loosely-typed value into a boolean.

    Settings arrive from YAML and the environment, where "false" and "0" are
    strings. Unknown strings fall back to `default`.
    """
    if value is None:
        return bool(default)
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, float):
        if math.isnan(value):
            return bool(default)
        return value != 0.0
    if isinstance(value, str):
        s = value.strip().lower()
        if not s:
            return bool(default)
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        try:
            return int(s) != 0
        except ValueError:
            return bool(default)
    return bool(value)


def coerce_int(value: Any, default: int = 0) -> int:
    """aria2 reports every number as a decimal string."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


def bytes_to_size(num_bytes: int) -> str:
    n = max(0, int(num_bytes or 0))
    if n == 0:
        return "0 Bytes"
    i = min(int(math.floor(math.log(n, 1024))), len(_SIZE_UNITS) - 1)
    return f"{n / 1024 ** i:.2f} {_SIZE_UNITS[i]}"


def short(value: str, start_chars: int = 6, end_chars: int = 4) -> str:
    """Shorten pubkeys and hashes for logs: `abcdef...wxyz`."""
    s = str(value or "")
    if len(s) <= start_chars + end_chars + 3:
        return s
    return f"{s[:start_chars]}...{s[-end_chars:]}"
