import logging
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import StreamingResponse

from api.routes.common import finish_job, to_http_error, watch_records
from models.record import FileDraft, FileItem
from storage.base import IngestBackend

router = APIRouter()
logger = logging.getLogger(__name__)

# Dependency to get the files backend from app state
def get_files_backend(request: Request) -> IngestBackend:
    return request.app.state.files_backend

@router.get("/files", response_model=List[FileItem], summary="List uploaded files, newest first")
async def list_files(backend: IngestBackend = Depends(get_files_backend)):
    return await backend.list_records()

@router.post("/files", response_model=FileItem, status_code=201, summary="Upload a PDF and optionally start ingesting it")
async def upload_file(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    auto_run: bool = Form(False),
    backend: IngestBackend = Depends(get_files_backend)
):
    filename = file.filename or ""
    is_pdf = file.content_type == "application/pdf" or filename.lower().endswith(".pdf")
    if not is_pdf:
        raise HTTPException(status_code=400, detail="Only PDF files are supported.")

    try:
        content = await file.read()
        record = await backend.create(
            FileDraft(filename=filename, content=content, content_type=file.content_type or "application/pdf"),
            auto_run=auto_run
        )
    except Exception as e:
        logger.exception(f"Upload failed for {filename}")
        raise to_http_error(e)
    finally:
        await file.close()

    if auto_run and record.id:
        background_tasks.add_task(finish_job, backend, record.id)
    return record

@router.post("/files/{file_id}/ingest", response_model=FileItem, status_code=202, summary="(Re-)ingest an uploaded file")
async def ingest_file(
    file_id: int,
    background_tasks: BackgroundTasks,
    backend: IngestBackend = Depends(get_files_backend)
):
    try:
        record = await backend.start_run(file_id)
    except Exception as e:
        raise to_http_error(e)

    background_tasks.add_task(finish_job, backend, file_id)
    return record

@router.delete("/files/{file_id}", summary="Delete a file record")
async def delete_file(file_id: int, backend: IngestBackend = Depends(get_files_backend)):
    try:
        await backend.delete(file_id)
    except Exception as e:
        raise to_http_error(e)
    return {"id": file_id, "success": True}

@router.get("/files/watch", summary="Stream file list snapshots (SSE) at the polling interval")
async def watch_files(request: Request, backend: IngestBackend = Depends(get_files_backend)):
    interval = request.app.state.settings.polling.interval_seconds
    return StreamingResponse(watch_records(request, backend, interval), media_type="text/event-stream")
