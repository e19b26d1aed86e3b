"""Shared fixtures for the publish pipeline tests."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Callable, Iterable, List, Tuple
from zipfile import ZIP_DEFLATED, ZIP_STORED, ZipFile

import pytest

from glitchlet import config

Member = Tuple[str, bytes]


@pytest.fixture
def isolated_roots(tmp_path, monkeypatch) -> Tuple[Path, Path]:
    projects_root = tmp_path / "projects"
    temp_root = tmp_path / "tmp"
    temp_root.mkdir()
    monkeypatch.setattr(config, "PROJECTS_ROOT", projects_root)
    monkeypatch.setattr(config, "TEMP_ROOT", temp_root)
    return projects_root, temp_root


@pytest.fixture
def make_zip(tmp_path) -> Callable[..., Path]:
    counter = iter(range(1_000_000))

    def build(members: Iterable[Member], stored: bool = False) -> Path:
        path = tmp_path / f"upload-{next(counter)}.zip"
        compression = ZIP_STORED if stored else ZIP_DEFLATED
        with ZipFile(path, "w", compression=compression) as archive:
            for name, data in members:
                archive.writestr(name, data)
        return path

    return build


@pytest.fixture
def sample_site() -> List[Member]:
    """index.html (11 bytes) and img/logo.png (2048 bytes)."""

    return [
        ("index.html", b"hello world"),
        ("img/logo.png", bytes(range(256)) * 8),
    ]


@pytest.fixture
def patch_declared_size() -> Callable[[Path, str, int], None]:
    return _patch_declared_size


def _patch_declared_size(path: Path, member_name: str, size: int) -> None:
    """Rewrite the central-directory size of ``member_name`` without touching its data."""

    data = bytearray(path.read_bytes())
    encoded = member_name.encode("utf-8")
    offset = data.find(b"PK\x01\x02")
    while offset != -1:
        (name_length,) = struct.unpack_from("<H", data, offset + 28)
        if bytes(data[offset + 46 : offset + 46 + name_length]) == encoded:
            struct.pack_into("<I", data, offset + 24, size)
            path.write_bytes(bytes(data))
            return
        offset = data.find(b"PK\x01\x02", offset + 4)
    raise AssertionError(f"{member_name} not found in central directory")
