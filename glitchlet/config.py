"""Application configuration utilities."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet

APP_ROOT = Path(__file__).resolve().parent.parent
PROJECTS_ROOT = Path(os.environ.get("GLITCHLET_PROJECTS_ROOT", APP_ROOT / "projects"))
TEMP_ROOT = Path(os.environ.get("GLITCHLET_TEMP_ROOT", tempfile.gettempdir()))

MAX_ZIP_BYTES = 25 * 1024 * 1024
MAX_EXTRACTED_BYTES = 150 * 1024 * 1024
MAX_FILE_COUNT = 1200
MAX_PATH_LENGTH = 200

SLUG_BYTES = 4
SLUG_ATTEMPTS = 32
PROJECT_URL_BASE = "https://glitchlet.digitaldavidson.net/projects/"

STAGING_PREFIX = "glitchlet_"
STALE_STAGING_SECONDS = 60 * 60

DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB

ALLOWED_EXTENSIONS = frozenset(
    {
        "html", "htm", "css", "js", "json", "txt", "md",
        "png", "jpg", "jpeg", "gif", "webp", "svg", "ico",
        "mp3", "wav", "mp4", "webm", "ogg",
    }
)
BLOCKED_NAMES = frozenset({".htaccess", ".htpasswd", ".user.ini"})
BLOCKED_SEGMENTS = frozenset({".well-known"})


@dataclass(frozen=True)
class PublishPolicy:
    """Limits and allow/deny lists applied to a single upload."""

    max_zip_bytes: int = MAX_ZIP_BYTES
    max_extracted_bytes: int = MAX_EXTRACTED_BYTES
    max_file_count: int = MAX_FILE_COUNT
    max_path_length: int = MAX_PATH_LENGTH
    allowed_extensions: FrozenSet[str] = ALLOWED_EXTENSIONS
    blocked_names: FrozenSet[str] = BLOCKED_NAMES
    blocked_segments: FrozenSet[str] = BLOCKED_SEGMENTS
    slug_bytes: int = SLUG_BYTES


DEFAULT_POLICY = PublishPolicy()
