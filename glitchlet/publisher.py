"""Promotion of a populated staging directory into the public projects root."""

from __future__ import annotations

import logging
import os
import secrets
import shutil
from pathlib import Path
from typing import Tuple

from . import config
from .config import DEFAULT_POLICY, PublishPolicy
from .errors import StorageError
from .models import Project

logger = logging.getLogger(__name__)


def generate_slug(nbytes: int = config.SLUG_BYTES) -> str:
    return secrets.token_hex(nbytes)


def project_url(slug: str, base: str = config.PROJECT_URL_BASE) -> str:
    return f"{base}{slug}/"


def reserve_project_directory(
    projects_root: Path,
    nbytes: int = config.SLUG_BYTES,
    attempts: int = config.SLUG_ATTEMPTS,
) -> Tuple[str, Path]:
    """Claim an unused slug by creating its directory exclusively.

    The directory is created rather than probed, so two concurrent requests
    drawing the same slug cannot both win it.
    """

    try:
        projects_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.exception("Cannot create projects root %s", projects_root)
        raise StorageError("Failed to create directory.") from exc

    for _ in range(attempts):
        slug = generate_slug(nbytes)
        destination = projects_root / slug
        try:
            destination.mkdir()
        except FileExistsError:
            logger.debug("Slug %s already taken, drawing another", slug)
            continue
        except OSError as exc:
            logger.exception("Cannot create project directory %s", destination)
            raise StorageError("Failed to create directory.") from exc
        return slug, destination
    raise StorageError("Could not allocate a project name.")


def relocate_directory(source: Path, destination: Path) -> None:
    """Move ``source`` to ``destination``, which may exist but must be empty.

    A rename is tried first. When that is impossible, for instance across
    filesystems, the tree is copied and ``source`` removed afterwards.
    """

    try:
        os.replace(source, destination)
        return
    except OSError as exc:
        logger.info("Rename of %s failed (%s); copying instead", source, exc)

    try:
        shutil.copytree(source, destination, dirs_exist_ok=True)
    except (shutil.Error, OSError) as exc:
        logger.exception("Copying %s to %s failed", source, destination)
        raise StorageError("Failed to move files.") from exc
    try:
        shutil.rmtree(source)
    except OSError as exc:
        logger.warning("Could not remove %s after copying: %s", source, exc)


def publish_directory(
    staging_dir: Path,
    projects_root: Path,
    policy: PublishPolicy = DEFAULT_POLICY,
    url_base: str = config.PROJECT_URL_BASE,
) -> Project:
    """Give ``staging_dir`` a fresh slug and move it under ``projects_root``."""

    slug, destination = reserve_project_directory(projects_root, policy.slug_bytes)
    try:
        relocate_directory(staging_dir, destination)
    except StorageError:
        shutil.rmtree(destination, ignore_errors=True)
        raise
    return Project(slug=slug, directory=destination, url=project_url(slug, url_base))
