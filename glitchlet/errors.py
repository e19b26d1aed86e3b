"""Exceptions raised by the publish pipeline.

Every failure is terminal for the request that triggered it. The HTTP layer
maps each exception class to a status code and renders ``message`` as the
user-facing error; nothing here carries filesystem paths or tracebacks.
"""

from __future__ import annotations

from enum import Enum


class Reason(str, Enum):
    """Machine-readable kind of a publish failure."""

    EMPTY_PATH = "EmptyPath"
    PATH_TOO_LONG = "PathTooLong"
    ABSOLUTE_PATH = "AbsolutePath"
    PARENT_TRAVERSAL = "ParentTraversal"
    HIDDEN_PATH = "HiddenPath"
    BLOCKED_SEGMENT = "BlockedSegment"
    BLOCKED_FILENAME = "BlockedFilename"
    DISALLOWED_FILE_TYPE = "DisallowedFileType"
    TOO_MANY_FILES = "TooManyFiles"
    PROJECT_TOO_LARGE = "ProjectTooLarge"
    EXTRACTION_FAILED = "ExtractionFailed"
    SIZE_MISMATCH = "SizeMismatch"
    MISSING_UPLOAD = "MissingUpload"
    UPLOAD_TOO_LARGE = "UploadTooLarge"
    UPLOAD_FAILED = "UploadFailed"
    INVALID_ARCHIVE = "InvalidArchive"
    METHOD_NOT_ALLOWED = "MethodNotAllowed"
    STORAGE_FAILURE = "StorageFailure"


class PublishError(Exception):
    """Base class for failures surfaced to the uploader."""

    status_code = 500
    default_reason = Reason.STORAGE_FAILURE

    def __init__(self, message: str, reason: Reason | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason


class ClientInputError(PublishError):
    """The upload or one of its entries is malformed, oversized or disallowed."""

    status_code = 400
    default_reason = Reason.INVALID_ARCHIVE


class MethodError(PublishError):
    status_code = 405
    default_reason = Reason.METHOD_NOT_ALLOWED


class StorageError(PublishError):
    """Creating, writing or moving files on the server failed."""

    status_code = 500
    default_reason = Reason.STORAGE_FAILURE
