from __future__ import annotations

import time
from datetime import datetime
from typing import Optional

DAY_MS = 86_400_000


def now_ms() -> int:
    return int(time.time() * 1000)


def date_stamp(when: Optional[datetime] = None) -> str:
    """Local calendar date as YYYYMMDD, used for per-day download folders."""
    return (when or datetime.now()).strftime("%Y%m%d")


def format_eta(remaining_ms: int) -> str:
    if remaining_ms <= 0:
        return "Overdue"
    days = remaining_ms // DAY_MS
    hours = (remaining_ms % DAY_MS) // 3_600_000
    return f"{days}d {hours}h"
