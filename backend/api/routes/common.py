import asyncio
import json
import logging
from typing import AsyncGenerator
from fastapi import HTTPException, Request

from core.errors import (
    BackendError,
    DuplicateRecordError,
    InvalidTransitionError,
    InvalidUrlError,
    RecordNotFoundError,
)
from core.polling.reconciler import PollingReconciler
from storage.base import IngestBackend

logger = logging.getLogger(__name__)

def to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, RecordNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (InvalidTransitionError, DuplicateRecordError)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, InvalidUrlError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, BackendError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))

async def finish_job(backend: IngestBackend, record_id: int) -> None:
    """Background body of a job; failures are recorded on the record, not raised."""
    try:
        outcome = await backend.complete_run(record_id)
        logger.info(f"[{backend.collection}] job #{record_id} finished: {outcome.status.value}")
    except RecordNotFoundError:
        logger.info(f"[{backend.collection}] #{record_id} vanished before its job ran")
    except Exception:
        logger.exception(f"[{backend.collection}] job #{record_id} crashed")

async def watch_records(request: Request, backend: IngestBackend, interval: float) -> AsyncGenerator[str, None]:
    """
    Server-sent events: one full snapshot per poll.
    The poller is stopped as soon as the client goes away.
    """
    queue: asyncio.Queue = asyncio.Queue()
    reconciler = PollingReconciler(backend.list_records, interval=interval, on_snapshot=queue.put_nowait)
    reconciler.start()
    try:
        while not await request.is_disconnected():
            try:
                snapshot = await asyncio.wait_for(queue.get(), timeout=interval)
            except asyncio.TimeoutError:
                continue
            data = [r.model_dump(mode="json", by_alias=True) for r in snapshot]
            yield f"data: {json.dumps(data, ensure_ascii=False)}\n\n"
    finally:
        await reconciler.stop()
