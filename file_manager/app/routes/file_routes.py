import uuid
from pathlib import Path
from typing import List

import aiofiles
import aiofiles.os
from fastapi import APIRouter, BackgroundTasks, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from app.models.entry import Listing
from app.models.outcome import Outcome, UploadItem
from logger_config import setup_logger

logger = setup_logger()

router = APIRouter(prefix="/files")


def outcome_response(outcome: Outcome) -> JSONResponse:
    return JSONResponse(status_code=outcome.status_code, content=outcome.model_dump(mode="json"))


@router.get("", response_model=Listing)
def list_files(request: Request, path: str = ""):
    file_ops = request.app.state.file_ops
    return file_ops.listing(path)


@router.get("/download")
async def download(request: Request, filename: str = "", path: str = ""):
    file_ops = request.app.state.file_ops
    logger.info(f"Receiving download request for '{filename}' in '{path}'")

    outcome = await file_ops.download(path, filename)
    if not outcome.ok:
        return outcome_response(outcome)

    payload = outcome.download
    # Covers responses that are never iterated
    cleanup = BackgroundTasks()
    cleanup.add_task(payload.release)
    return StreamingResponse(
        file_ops.stream(payload),
        media_type=payload.media_type,
        headers={
            "content-disposition": payload.content_disposition,
            "content-length": str(payload.content_length),
            "cache-control": "must-revalidate",
        },
        background=cleanup,
    )


@router.post("/create")
async def create_file(request: Request, path: str = "", filename: str = Form(""), content: str = Form("")):
    outcome = await request.app.state.file_ops.create(path, filename, content)
    return outcome_response(outcome)


@router.post("/create_folder")
async def create_folder(request: Request, path: str = "", foldername: str = Form("")):
    outcome = await request.app.state.file_ops.create_folder(path, foldername)
    return outcome_response(outcome)


@router.post("/delete")
async def delete(request: Request, path: str = "", filename: str = Form("")):
    outcome = await request.app.state.file_ops.delete(path, filename)
    return outcome_response(outcome)


async def spool_upload(upload: UploadFile, temp_dir: Path, chunk_size: int) -> UploadItem:
    """Copy an uploaded part into ``temp_dir`` so it can be moved into storage.

    The spool file is created with the process umask so the stored file ends
    up with the same permissions as one made by ``create``.
    """
    temp_path = temp_dir / f"upload_{uuid.uuid4().hex}"
    size = 0
    error = 0
    try:
        async with aiofiles.open(temp_path, 'xb') as f:
            while chunk := await upload.read(chunk_size):
                size += len(chunk)
                await f.write(chunk)
    except OSError as e:
        logger.error(f"Error spooling upload '{upload.filename}': {e}", exc_info=True)
        error = 1
    return UploadItem(name=upload.filename or "", temp_path=temp_path, size=size, error=error)


@router.post("/upload")
async def upload_files(request: Request, path: str = "", uploads: List[UploadFile] = File(default=[])):
    file_ops = request.app.state.file_ops
    settings = file_ops.settings
    logger.info(f"Receiving upload of {len(uploads)} files into '{path}'")

    items = []
    try:
        for upload in uploads:
            items.append(await spool_upload(upload, settings.temp_dir, settings.chunk_size))
        outcome = await file_ops.upload(path, items)
    finally:
        # Remove whatever was not moved into storage
        for item in items:
            if await aiofiles.os.path.exists(item.temp_path):
                await aiofiles.os.unlink(item.temp_path)

    return outcome_response(outcome)
