from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional, Tuple

logger = logging.getLogger("remote_dl.fs")


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=path.name + ".", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(text)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.unlink(tmp)


def walk_files(root: Path) -> Iterator[Tuple[Path, os.stat_result]]:
    """Yield (path, stat) for every regular file below `root`.

    Entries are visited in sorted name order so traversal is stable across
    runs. Symlinks are not followed. Unreadable directories are logged and
    skipped; a missing root yields nothing.
    """
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except FileNotFoundError:
        return
    except OSError as e:
        logger.warning("cannot read directory %s: %s", root, e, extra={"path": str(root)})
        return

    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                yield from walk_files(Path(entry.path))
            elif entry.is_file(follow_symlinks=False):
                yield Path(entry.path), entry.stat(follow_symlinks=False)
        except FileNotFoundError:
            # Removed between listing and stat (aria2 renames temp files).
            continue
        except OSError as e:
            logger.warning("cannot stat %s: %s", entry.path, e, extra={"path": entry.path})


def prune_empty_dirs(root: Path, *, _top: Optional[Path] = None) -> int:
    """Remove directories left empty below `root`, children first.

    `root` itself is never removed. Returns the number of directories removed.
    """
    top = _top if _top is not None else root
    removed = 0
    try:
        with os.scandir(root) as it:
            subdirs = [Path(e.path) for e in it if e.is_dir(follow_symlinks=False)]
    except FileNotFoundError:
        return 0
    except OSError as e:
        logger.warning("cannot read directory %s: %s", root, e, extra={"path": str(root)})
        return 0

    for sub in sorted(subdirs):
        removed += prune_empty_dirs(sub, _top=top)

    if root == top:
        return removed
    try:
        if not any(root.iterdir()):
            root.rmdir()
            removed += 1
            logger.info("removed empty folder %s", root, extra={"path": str(root)})
    except OSError as e:
        logger.warning("cannot remove folder %s: %s", root, e, extra={"path": str(root)})
    return removed


def directory_size(root: Path) -> int:
    return sum(int(st.st_size) for _, st in walk_files(root))
