"""JSON catalog file helpers: read, atomic write and an exclusive writer lock."""

from __future__ import annotations

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import structlog

logger = structlog.get_logger("aptitude.storage")

LOCK_SUFFIX = ".lock"


class CatalogLockedError(RuntimeError):
    """Another writer holds the lock file next to a catalog.

    A lock left behind by a killed run is not cleared automatically; the
    message names the lock file and the pid recorded in it so an operator
    can check that process and remove the file.
    """

    def __init__(self, path: Path, lock: Path, owner_pid: Optional[int] = None) -> None:
        owner = f"pid {owner_pid}" if owner_pid is not None else "unknown pid"
        super().__init__(
            f"Catalog is locked by another writer: {path} "
            f"(lock file {lock}, held by {owner}; remove it if that process is gone)"
        )
        self.path = path
        self.lock = lock
        self.owner_pid = owner_pid


def read_json(path: str | Path) -> Any:
    """Load and return the JSON document stored at *path*."""
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def write_json_atomic(path: str | Path, document: Any) -> None:
    """Write *document* as indented JSON via a sibling temp file.

    The temp file is renamed over the target only once fully written, so
    readers never observe a half-written catalog.
    """
    path = Path(path)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as fh:
        json.dump(document, fh, indent=2, ensure_ascii=False)
        fh.write("\n")
    tmp.replace(path)
    logger.debug("json_written", path=str(path))


def lock_path_for(path: str | Path) -> Path:
    path = Path(path)
    return path.with_suffix(path.suffix + LOCK_SUFFIX)


def lock_owner(lock: Path) -> Optional[int]:
    """Pid recorded in *lock*, or ``None`` when unreadable."""
    try:
        return int(lock.read_text(encoding="ascii").strip())
    except (OSError, ValueError):
        return None


@contextmanager
def exclusive_lock(path: str | Path) -> Iterator[Path]:
    """Hold ``<path>.lock`` for the duration of the block.

    Raises
    ------
    CatalogLockedError
        If the lock file already exists.
    """
    lock = lock_path_for(path)
    try:
        fd = os.open(lock, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError:
        raise CatalogLockedError(Path(path), lock, lock_owner(lock)) from None
    try:
        os.write(fd, str(os.getpid()).encode("ascii"))
        os.close(fd)
        yield lock
    finally:
        lock.unlink(missing_ok=True)
