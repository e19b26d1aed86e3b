"""Tests for the metadata-only archive scan."""

from __future__ import annotations

from typing import List, Optional
from zipfile import ZipFile, ZipInfo

import pytest

from glitchlet.config import MAX_EXTRACTED_BYTES, MAX_FILE_COUNT, MAX_ZIP_BYTES, PublishPolicy
from glitchlet.errors import ClientInputError, Reason
from glitchlet.scanner import check_upload_size, file_extension, scan_archive

MiB = 1024 * 1024


class FakeArchive:
    """Stands in for ZipFile where only metadata matters."""

    def __init__(self, members: List[Optional[ZipInfo]]) -> None:
        self._members = members

    def infolist(self) -> List[Optional[ZipInfo]]:
        return list(self._members)


def _info(name: str, size: int) -> ZipInfo:
    info = ZipInfo(name)
    info.file_size = size
    return info


def test_scan_preserves_order_and_classifies(make_zip) -> None:
    path = make_zip(
        [
            ("index.html", b"hello world"),
            ("img/", b""),
            ("img/logo.PNG", b"\x89PNG"),
            ("notes.txt", b"notes"),
        ]
    )
    with ZipFile(path) as archive:
        entries = scan_archive(archive)

    assert [entry.path for entry in entries] == ["index.html", "img", "img/logo.PNG", "notes.txt"]
    assert [entry.is_directory for entry in entries] == [False, True, False, False]
    assert [entry.declared_size for entry in entries] == [11, 0, 4, 5]
    assert [entry.source_index for entry in entries] == [0, 1, 2, 3]


@pytest.mark.parametrize("name", ["notes", "payload.exe", "archive.tar.gz", "script.php", "trailing."])
def test_scan_rejects_disallowed_file_types(make_zip, name: str) -> None:
    path = make_zip([("index.html", b"<p>hi</p>"), (name, b"data")])
    with ZipFile(path) as archive:
        with pytest.raises(ClientInputError) as excinfo:
            scan_archive(archive)
    assert excinfo.value.reason is Reason.DISALLOWED_FILE_TYPE
    assert excinfo.value.message == "File type not allowed."


def test_directories_skip_extension_check(make_zip) -> None:
    path = make_zip([("assets/", b""), ("assets/fonts/", b"")])
    with ZipFile(path) as archive:
        entries = scan_archive(archive)
    assert [(entry.path, entry.is_directory) for entry in entries] == [
        ("assets", True),
        ("assets/fonts", True),
    ]


def test_scan_propagates_path_failures(make_zip) -> None:
    path = make_zip([("ok.txt", b"ok"), ("../../etc/passwd", b"root")])
    with ZipFile(path) as archive:
        with pytest.raises(ClientInputError) as excinfo:
            scan_archive(archive)
    assert excinfo.value.reason is Reason.PARENT_TRAVERSAL


def test_file_count_limit(make_zip) -> None:
    members = [(f"page{i}.txt", b"") for i in range(MAX_FILE_COUNT)]
    with ZipFile(make_zip(members)) as archive:
        assert len(scan_archive(archive)) == MAX_FILE_COUNT

    members.append(("one-too-many.txt", b""))
    with ZipFile(make_zip(members)) as archive:
        with pytest.raises(ClientInputError) as excinfo:
            scan_archive(archive)
    assert excinfo.value.reason is Reason.TOO_MANY_FILES


def test_directories_do_not_count_towards_file_limit() -> None:
    policy = PublishPolicy(max_file_count=2)
    archive = FakeArchive([_info("a/", 0), _info("b/", 0), _info("a/x.txt", 1), _info("b/y.txt", 1)])
    assert len(scan_archive(archive, policy)) == 4


def test_total_size_limit_is_inclusive() -> None:
    half = MAX_EXTRACTED_BYTES // 2
    archive = FakeArchive([_info("a.mp4", half), _info("b.mp4", MAX_EXTRACTED_BYTES - half)])
    entries = scan_archive(archive)
    assert sum(entry.declared_size for entry in entries) == 150 * MiB

    archive = FakeArchive([_info("a.mp4", half), _info("b.mp4", MAX_EXTRACTED_BYTES - half + 1)])
    with pytest.raises(ClientInputError) as excinfo:
        scan_archive(archive)
    assert excinfo.value.reason is Reason.PROJECT_TOO_LARGE


def test_first_violation_wins() -> None:
    policy = PublishPolicy(max_file_count=1, max_extracted_bytes=10)
    archive = FakeArchive([_info("a.txt", 5), _info("b.txt", 50), _info("c.exe", 1)])
    with pytest.raises(ClientInputError) as excinfo:
        scan_archive(archive, policy)
    assert excinfo.value.reason is Reason.TOO_MANY_FILES


def test_members_without_metadata_are_skipped() -> None:
    archive = FakeArchive([None, _info("index.html", 3)])
    entries = scan_archive(archive)
    assert [(entry.path, entry.source_index) for entry in entries] == [("index.html", 1)]


def test_check_upload_size() -> None:
    check_upload_size(0)
    check_upload_size(MAX_ZIP_BYTES)
    for size in (None, -1, MAX_ZIP_BYTES + 1):
        with pytest.raises(ClientInputError) as excinfo:
            check_upload_size(size)
        assert excinfo.value.reason is Reason.UPLOAD_TOO_LARGE


def test_file_extension() -> None:
    assert file_extension("img/Logo.PNG") == "png"
    assert file_extension("v1.2/readme") == ""
    assert file_extension("notes.") == ""
