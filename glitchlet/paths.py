"""Validation of archive member paths.

Paths are judged purely on their text. Nothing here touches the filesystem,
so a path that passes can be joined under the staging directory without
resolving it first.
"""

from __future__ import annotations

import re

from .config import DEFAULT_POLICY, PublishPolicy
from .errors import ClientInputError, Reason

_SLASH_RUNS = re.compile(r"/+")


def normalize_path(path: str) -> str:
    """Convert backslashes to slashes and collapse repeated slashes."""

    return _SLASH_RUNS.sub("/", path.replace("\\", "/"))


def is_hidden_path(path: str) -> bool:
    """Return True when any segment of ``path`` starts with a dot."""

    trimmed = path.strip("/")
    if not trimmed:
        return False
    return any(segment.startswith(".") for segment in trimmed.split("/") if segment)


def basename(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


def validate_path(path: str, policy: PublishPolicy = DEFAULT_POLICY) -> str:
    """Return the normalized form of ``path`` or raise ``ClientInputError``.

    The checks run in a fixed order and the first failure wins:
    empty, too long, absolute, ``..`` anywhere, hidden segment, blocked
    segment, blocked basename (case-insensitive).
    """

    normalized = normalize_path(path)
    if not normalized:
        raise ClientInputError("Empty file path.", Reason.EMPTY_PATH)
    if len(normalized) > policy.max_path_length:
        raise ClientInputError("File path too long.", Reason.PATH_TOO_LONG)
    if normalized.startswith("/"):
        raise ClientInputError("Absolute paths are not allowed.", Reason.ABSOLUTE_PATH)
    # Any "..", not only whole segments: "a..b.txt" is rejected too.
    if ".." in normalized:
        raise ClientInputError("Parent paths are not allowed.", Reason.PARENT_TRAVERSAL)
    if is_hidden_path(normalized):
        raise ClientInputError("Hidden files are not allowed.", Reason.HIDDEN_PATH)

    wrapped = f"/{normalized}/"
    for segment in policy.blocked_segments:
        if f"/{segment}/" in wrapped:
            raise ClientInputError("Blocked path segment.", Reason.BLOCKED_SEGMENT)

    name = basename(normalized).casefold()
    if any(name == blocked.casefold() for blocked in policy.blocked_names):
        raise ClientInputError("Blocked filename.", Reason.BLOCKED_FILENAME)
    return normalized
