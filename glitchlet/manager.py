"""Coordinates scanning, extraction, and publishing of uploaded archives."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import Optional

from . import config
from .archive import extract_entries, open_archive
from .config import PublishPolicy
from .errors import PublishError, StorageError
from .models import Project, UploadedArchive
from .publisher import publish_directory
from .scanner import check_upload_size, scan_archive
from .staging import reap_stale_staging, staging_area
from .utils import human_readable_bytes

logger = logging.getLogger(__name__)


class PublishManager:
    """Runs the intake pipeline for one upload at a time per call.

    Calls share nothing but the projects and temp roots on disk, so a single
    manager can serve concurrent requests.
    """

    def __init__(
        self,
        projects_root: Optional[Path] = None,
        temp_root: Optional[Path] = None,
        policy: Optional[PublishPolicy] = None,
        url_base: Optional[str] = None,
    ) -> None:
        self.projects_root = projects_root or config.PROJECTS_ROOT
        self.temp_root = temp_root or config.TEMP_ROOT
        self.policy = policy or config.DEFAULT_POLICY
        self.url_base = url_base or config.PROJECT_URL_BASE
        self._startup_lock = asyncio.Lock()
        self._startup_complete = False

    async def startup(self) -> None:
        """Clear staging directories abandoned by previous runs."""

        if self._startup_complete:
            return
        async with self._startup_lock:
            if self._startup_complete:
                return
            await asyncio.to_thread(reap_stale_staging, self.temp_root)
            self._startup_complete = True

    async def publish(self, upload: UploadedArchive) -> Project:
        await self.startup()
        return await asyncio.to_thread(self.publish_sync, upload)

    def publish_sync(self, upload: UploadedArchive) -> Project:
        """Validate, extract and publish ``upload``, or raise ``PublishError``."""

        try:
            return self._run_pipeline(upload)
        except PublishError as exc:
            logger.warning("Publish of %s rejected (%s): %s", upload.path, exc.reason.value, exc.message)
            raise
        except OSError as exc:
            logger.exception("Publish of %s failed", upload.path)
            raise StorageError("Failed to store project.") from exc

    def _run_pipeline(self, upload: UploadedArchive) -> Project:
        check_upload_size(upload.declared_size, self.policy)
        with open_archive(upload.path) as archive:
            entries = scan_archive(archive, self.policy)
            with staging_area(self.temp_root) as staging_dir:
                total_bytes = extract_entries(archive, entries, staging_dir)
                project = publish_directory(staging_dir, self.projects_root, self.policy, self.url_base)

        file_count = sum(1 for entry in entries if not entry.is_directory)
        project = dataclasses.replace(project, file_count=file_count, total_bytes=total_bytes)
        logger.info(
            "Published project %s (%d files, %s)",
            project.slug,
            file_count,
            human_readable_bytes(total_bytes),
        )
        return project
