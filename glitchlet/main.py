"""Entry point for the FastAPI application."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Tuple

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .errors import ClientInputError, MethodError, PublishError, Reason, StorageError
from .manager import PublishManager
from .models import ErrorResponse, PublishResponse, UploadedArchive
from .scanner import check_upload_size
from .utils import remove_file

logger = logging.getLogger(__name__)

app = FastAPI(title="Glitchlet Publisher", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
manager = PublishManager()


async def get_manager() -> PublishManager:
    return manager


def _error_response(exc: PublishError) -> JSONResponse:
    body = ErrorResponse(error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(PublishError)
async def publish_error_handler(request: Request, exc: PublishError) -> JSONResponse:
    return _error_response(exc)


@app.exception_handler(StarletteHTTPException)
async def method_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        return _error_response(MethodError("Method not allowed."))
    return await http_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(ClientInputError("Missing zip file.", Reason.MISSING_UPLOAD))


@app.get("/", response_class=HTMLResponse)
async def index(request: Request, manager: PublishManager = Depends(get_manager)) -> HTMLResponse:
    context = {
        "max_zip_bytes": manager.policy.max_zip_bytes,
        "allowed_extensions": sorted(manager.policy.allowed_extensions),
    }
    return templates.TemplateResponse(request, "index.html", context)


@app.options("/publish", status_code=204, response_class=Response)
async def publish_options() -> Response:
    return Response(status_code=204)


@app.post("/publish", response_model=PublishResponse)
async def publish(
    archive: UploadFile | None = File(None, alias="zip", description="Zip archive of the project"),
    manager: PublishManager = Depends(get_manager),
) -> PublishResponse:
    if archive is None:
        raise ClientInputError("Missing zip file.", Reason.MISSING_UPLOAD)
    check_upload_size(archive.size, manager.policy)

    upload_path, written = await _spool_upload(archive, manager.temp_root, manager.policy.max_zip_bytes)
    try:
        project = await manager.publish(UploadedArchive(path=upload_path, declared_size=written))
    finally:
        remove_file(upload_path)
    return PublishResponse.from_project(project)


async def _spool_upload(archive: UploadFile, temp_root: Path, limit: int) -> Tuple[Path, int]:
    """Copy the uploaded archive into a private file under ``temp_root``.

    Returns the file and the number of bytes actually written.
    """

    try:
        temp_root.mkdir(parents=True, exist_ok=True)
        handle = tempfile.NamedTemporaryFile(
            dir=temp_root, prefix="glitchlet-upload-", suffix=".zip", delete=False
        )
    except OSError as exc:
        logger.exception("Cannot create upload file under %s", temp_root)
        raise StorageError("Failed to store upload.") from exc

    path = Path(handle.name)
    written = 0
    try:
        with handle:
            while True:
                try:
                    chunk = await archive.read(config.DEFAULT_CHUNK_SIZE)
                except OSError as exc:
                    raise ClientInputError("Upload failed.", Reason.UPLOAD_FAILED) from exc
                if not chunk:
                    break
                written += len(chunk)
                if written > limit:
                    raise ClientInputError("Zip file too large.", Reason.UPLOAD_TOO_LARGE)
                handle.write(chunk)
    except OSError as exc:
        remove_file(path)
        raise StorageError("Failed to store upload.") from exc
    except PublishError:
        remove_file(path)
        raise
    return path, written
