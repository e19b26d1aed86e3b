"""Archive extraction helpers."""

from __future__ import annotations

import copy
import logging
import sys
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Sequence
from zipfile import BadZipFile, LargeZipFile, ZipFile, ZipInfo

from . import config
from .errors import ClientInputError, Reason, StorageError
from .models import ArchiveEntry

logger = logging.getLogger(__name__)

_READ_ERRORS = (BadZipFile, EOFError, NotImplementedError, RuntimeError, zlib.error)


@contextmanager
def open_archive(path: Path) -> Iterator[ZipFile]:
    """Open ``path`` as a zip archive, rejecting anything that is not one."""

    try:
        archive = ZipFile(path)
    except (BadZipFile, LargeZipFile, OSError, ValueError) as exc:
        logger.warning("Rejecting unreadable archive %s: %s", path, exc)
        raise ClientInputError("Invalid zip file.", Reason.INVALID_ARCHIVE) from exc
    with archive:
        yield archive


def extract_entries(
    archive: ZipFile,
    entries: Sequence[ArchiveEntry],
    staging_dir: Path,
    chunk_size: int = config.DEFAULT_CHUNK_SIZE,
) -> int:
    """Write every entry under ``staging_dir`` and return the bytes written.

    Entries are assumed to come from ``scan_archive``; their paths are
    joined under ``staging_dir`` without further checks. A failure part-way
    leaves earlier entries on disk for the caller to discard.
    """

    members = archive.infolist()
    total = 0
    for entry in entries:
        target_path = staging_dir / entry.path
        if entry.is_directory:
            _ensure_dir(target_path)
            continue
        _ensure_dir(target_path.parent)
        total += _extract_file(archive, members[entry.source_index], entry, target_path, chunk_size)
    return total


def _extract_file(archive: ZipFile, member: ZipInfo, entry: ArchiveEntry, target_path: Path, chunk_size: int) -> int:
    try:
        source = archive.open(_uncapped(member), "r")
    except _READ_ERRORS as exc:
        logger.warning("Cannot open archive member %s: %s", entry.path, exc)
        raise ClientInputError("Failed to read zip contents.", Reason.EXTRACTION_FAILED) from exc

    with source:
        try:
            target = target_path.open("wb")
        except OSError as exc:
            logger.exception("Cannot create %s", target_path)
            raise StorageError("Failed to write extracted file.") from exc
        with target:
            copied = _copy_counted(source, target, entry.declared_size, chunk_size)

    if copied != entry.declared_size:
        logger.warning(
            "Size mismatch for %s: declared %d bytes, extracted %d",
            entry.path,
            entry.declared_size,
            copied,
        )
        raise ClientInputError("Failed to extract file.", Reason.SIZE_MISMATCH)
    return copied


def _uncapped(member: ZipInfo) -> ZipInfo:
    """Return a copy of ``member`` that zipfile will not truncate at its recorded size.

    ``_copy_counted`` bounds the read instead, so an entry holding more bytes
    than recorded shows up as extra bytes rather than a CRC failure.
    """

    unbounded = copy.copy(member)
    unbounded.file_size = sys.maxsize
    return unbounded


def _copy_counted(source: BinaryIO, target: BinaryIO, declared_size: int, chunk_size: int) -> int:
    """Copy ``source`` into ``target``, stopping once it overruns ``declared_size``."""

    copied = 0
    while copied <= declared_size:
        try:
            chunk = source.read(chunk_size)
        except _READ_ERRORS as exc:
            raise ClientInputError("Failed to extract file.", Reason.EXTRACTION_FAILED) from exc
        if not chunk:
            break
        try:
            target.write(chunk)
        except OSError as exc:
            raise StorageError("Failed to write extracted file.") from exc
        copied += len(chunk)
    return copied


def _ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.exception("Cannot create directory %s", path)
        raise StorageError("Failed to create directory.") from exc
