"""Private, request-scoped staging directories."""

from __future__ import annotations

import logging
import secrets
import shutil
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from . import config
from .errors import StorageError

logger = logging.getLogger(__name__)


@contextmanager
def staging_area(temp_root: Path, prefix: str = config.STAGING_PREFIX) -> Iterator[Path]:
    """Yield a fresh, empty directory under ``temp_root``.

    Whatever is still at that path when the block exits is removed, whether
    the block succeeded or raised. After a successful publish the directory
    has already been moved away and there is nothing left to clean.
    """

    staging_dir = _create_staging_dir(temp_root, prefix)
    try:
        yield staging_dir
    finally:
        _discard(staging_dir)


def reap_stale_staging(
    temp_root: Path,
    max_age: float = config.STALE_STAGING_SECONDS,
    prefix: str = config.STAGING_PREFIX,
    now: Optional[float] = None,
) -> int:
    """Remove staging directories older than ``max_age`` seconds.

    These are left behind only when a process dies mid-request. Returns the
    number of directories removed.
    """

    if not temp_root.is_dir():
        return 0
    cutoff = (time.time() if now is None else now) - max_age
    removed = 0
    for candidate in temp_root.glob(f"{prefix}*"):
        try:
            if not candidate.is_dir() or candidate.is_symlink():
                continue
            if candidate.stat().st_mtime > cutoff:
                continue
        except OSError:
            continue
        if _discard(candidate):
            removed += 1
    if removed:
        logger.info("Removed %d stale staging directories under %s", removed, temp_root)
    return removed


def _create_staging_dir(temp_root: Path, prefix: str) -> Path:
    try:
        temp_root.mkdir(parents=True, exist_ok=True)
        staging_dir = temp_root / f"{prefix}{secrets.token_hex(8)}"
        staging_dir.mkdir()
    except OSError as exc:
        logger.exception("Cannot create staging directory under %s", temp_root)
        raise StorageError("Failed to create directory.") from exc
    return staging_dir


def _discard(path: Path) -> bool:
    if not path.exists():
        return False
    try:
        shutil.rmtree(path)
    except OSError as exc:
        logger.warning("Could not remove staging directory %s: %s", path, exc)
        return False
    return True
