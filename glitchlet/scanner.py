"""Dry-run validation of an opened archive.

The scan reads member metadata only. It either returns the complete list of
entries to extract or raises on the first violation, so the extractor never
sees a partially validated archive.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import List, Optional
from zipfile import ZipFile, ZipInfo

from .config import DEFAULT_POLICY, PublishPolicy
from .errors import ClientInputError, Reason
from .models import ArchiveEntry
from .paths import validate_path

logger = logging.getLogger(__name__)


def check_upload_size(size: Optional[int], policy: PublishPolicy = DEFAULT_POLICY) -> None:
    """Reject uploads whose compressed size is unknown or above the ceiling."""

    if size is None or size < 0 or size > policy.max_zip_bytes:
        raise ClientInputError("Zip file too large.", Reason.UPLOAD_TOO_LARGE)


def file_extension(path: str) -> str:
    return PurePosixPath(path).suffix[1:].lower()


def scan_archive(archive: ZipFile, policy: PublishPolicy = DEFAULT_POLICY) -> List[ArchiveEntry]:
    """Validate every member of ``archive`` and return them in stored order."""

    entries: List[ArchiveEntry] = []
    file_count = 0
    total_size = 0
    for index, member in enumerate(archive.infolist()):
        name = _member_name(member)
        if name is None:
            logger.debug("Skipping archive member %d with unreadable metadata", index)
            continue
        normalized = validate_path(name, policy)
        if normalized.endswith("/"):
            entries.append(
                ArchiveEntry(
                    path=normalized.rstrip("/"),
                    is_directory=True,
                    declared_size=0,
                    source_index=index,
                )
            )
            continue

        extension = file_extension(normalized)
        if not extension or extension not in policy.allowed_extensions:
            raise ClientInputError("File type not allowed.", Reason.DISALLOWED_FILE_TYPE)

        size = int(member.file_size or 0)
        total_size += size
        file_count += 1
        if file_count > policy.max_file_count:
            raise ClientInputError("Too many files.", Reason.TOO_MANY_FILES)
        if total_size > policy.max_extracted_bytes:
            raise ClientInputError("Project too large.", Reason.PROJECT_TOO_LARGE)
        entries.append(
            ArchiveEntry(
                path=normalized,
                is_directory=False,
                declared_size=size,
                source_index=index,
            )
        )
    return entries


def _member_name(member: Optional[ZipInfo]) -> Optional[str]:
    if member is None:
        return None
    name = getattr(member, "filename", None)
    if not isinstance(name, str):
        return None
    return name
