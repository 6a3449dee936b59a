"""Storage retention for the download tree.

Two entry points share one traversal and one pruning pass:

- `auto_clean`: delete every file at least `age_threshold_days` old.
- `delete_oldest`: delete the single file with the smallest mtime.

Neither coordinates with aria2. A file that is still being written can be
deleted if it crosses the threshold or is the oldest in the tree; this race
is accepted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..util.conv import bytes_to_size
from ..util.fs import directory_size, prune_empty_dirs, walk_files
from ..util.time import DAY_MS, now_ms
from .errors import FilesystemError, NothingToDelete

logger = logging.getLogger("remote_dl.retention")


@dataclass(frozen=True)
class StoredFile:
    path: Path
    mtime_ms: int
    size_bytes: int


@dataclass(frozen=True)
class RetentionPolicy:
    root_dir: Path
    age_threshold_days: int = 30

    @property
    def threshold_ms(self) -> int:
        return int(self.age_threshold_days) * DAY_MS


@dataclass(frozen=True)
class CleanReport:
    outcome: str  # "cleaned" | "nothing_to_do" | "failed"
    deleted_count: int = 0
    freed_bytes: int = 0
    failed_count: int = 0
    scanned_count: int = 0
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome,
            "deleted_count": self.deleted_count,
            "freed_bytes": self.freed_bytes,
            "failed_count": self.failed_count,
            "scanned_count": self.scanned_count,
            "message": self.message,
        }


def list_files(root: Path) -> List[StoredFile]:
    return [
        StoredFile(path=p, mtime_ms=int(st.st_mtime_ns // 1_000_000), size_bytes=int(st.st_size))
        for p, st in walk_files(root)
    ]


def oldest_file(root: Path) -> Optional[StoredFile]:
    oldest: Optional[StoredFile] = None
    for f in list_files(root):
        # Strict `<` keeps the first one seen on ties.
        if oldest is None or f.mtime_ms < oldest.mtime_ms:
            oldest = f
    return oldest


def used_space(root: Path) -> int:
    return directory_size(root)


def auto_clean(root: Path, age_threshold_days: int, *, at_ms: Optional[int] = None) -> CleanReport:
    policy = RetentionPolicy(root_dir=root, age_threshold_days=age_threshold_days)
    now = at_ms if at_ms is not None else now_ms()
    cutoff = now - policy.threshold_ms

    files = list_files(root)
    if not files:
        return CleanReport(outcome="nothing_to_do", message="No files found to auto-clean.")

    expired = [f for f in files if f.mtime_ms <= cutoff]
    if not expired:
        return CleanReport(
            outcome="nothing_to_do",
            scanned_count=len(files),
            message=f"No files older than {age_threshold_days} days found.",
        )

    deleted = 0
    freed = 0
    failed = 0
    for f in expired:
        try:
            f.path.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            failed += 1
            logger.warning("failed to delete %s: %s", f.path, e, extra={"op": "auto_clean", "path": str(f.path)})
            continue
        deleted += 1
        freed += f.size_bytes
        logger.info("auto-deleted %s", f.path, extra={"op": "auto_clean", "path": str(f.path)})

    prune_empty_dirs(root)

    return CleanReport(
        outcome="cleaned",
        deleted_count=deleted,
        freed_bytes=freed,
        failed_count=failed,
        scanned_count=len(files),
        message=(
            "Auto-clean completed!\n"
            f"Deleted {deleted} files older than {age_threshold_days} days\n"
            f"Freed up {bytes_to_size(freed)} of space"
        ),
    )


def delete_oldest(root: Path) -> StoredFile:
    target = oldest_file(root)
    if target is None:
        raise NothingToDelete("No files to delete.")
    try:
        target.path.unlink()
    except OSError as e:
        logger.warning("failed to delete %s: %s", target.path, e, extra={"op": "clean", "path": str(target.path)})
        raise FilesystemError(f"Failed to delete {target.path.name}", details={"path": str(target.path)}) from e
    logger.info("deleted oldest file %s", target.path, extra={"op": "clean", "path": str(target.path)})
    prune_empty_dirs(root)
    return target
