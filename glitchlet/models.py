"""Domain models for the Glitchlet publish service."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic import BaseModel


@dataclass(frozen=True)
class ArchiveEntry:
    """A validated archive member, ready for extraction.

    ``declared_size`` comes straight from the archive metadata and is only
    trusted once extraction has produced exactly that many bytes.
    ``source_index`` is the member's position in ``ZipFile.infolist()``.
    """

    path: str
    is_directory: bool
    declared_size: int
    source_index: int


@dataclass
class UploadedArchive:
    """An upload already materialized on disk by the HTTP layer."""

    path: Path
    declared_size: int | None


@dataclass(frozen=True)
class Project:
    """A published project and where it can be reached."""

    slug: str
    directory: Path
    url: str
    file_count: int = 0
    total_bytes: int = 0


class PublishResponse(BaseModel):
    """Body returned for a successful publish."""

    ok: Literal[True] = True
    slug: str
    url: str

    @classmethod
    def from_project(cls, project: Project) -> "PublishResponse":
        return cls(slug=project.slug, url=project.url)


class ErrorResponse(BaseModel):
    ok: Literal[False] = False
    error: str
