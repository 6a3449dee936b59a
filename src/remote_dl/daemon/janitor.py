"""Periodic retention sweep over the storage root.

Runs `auto_clean` once after `initial_delay_s`, then every `interval_s`.
A sweep may race with aria2 still writing into a file that happens to be
old enough; there is no lock against the engine.
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from ..kernel.retention import CleanReport, auto_clean

logger = logging.getLogger("remote_dl.janitor")


class RetentionJanitor:
    def __init__(self, root: Path, days: int, interval_s: float, initial_delay_s: float = 60.0):
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.root = Path(root)
        self.days = int(days)
        self.interval_s = float(interval_s)
        self.initial_delay_s = max(0.0, float(initial_delay_s))
        self.last_report: Optional[CleanReport] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> CleanReport:
        try:
            report = auto_clean(self.root, self.days)
        except Exception as e:
            logger.exception("auto-clean failed", extra={"op": "auto_clean", "path": str(self.root)})
            report = CleanReport(outcome="failed", message=str(e))
        else:
            logger.info(
                "auto-clean %s: deleted=%d freed=%d failed=%d",
                report.outcome,
                report.deleted_count,
                report.freed_bytes,
                report.failed_count,
                extra={"op": "auto_clean", "path": str(self.root)},
            )
        self.last_report = report
        return report

    def _loop(self) -> None:
        if self._stop.wait(self.initial_delay_s):
            return
        while not self._stop.is_set():
            self.run_once()
            self._stop.wait(self.interval_s)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="remote-dl-janitor", daemon=True)
        self._thread.start()
        logger.info(
            "janitor started: root=%s days=%d every %.0fs",
            self.root,
            self.days,
            self.interval_s,
        )

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
