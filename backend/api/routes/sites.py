import logging
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from api.routes.common import finish_job, to_http_error, watch_records
from core.bulk.coordinator import BulkSubmissionCoordinator
from models.bulk import BulkResult, BulkSiteRequest
from models.record import Site, SiteDraft, SiteScope, SiteType
from storage.base import IngestBackend

router = APIRouter()
logger = logging.getLogger(__name__)

class SiteCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    scope: SiteScope = SiteScope.all
    site_type: SiteType = Field(default=SiteType.static_html, alias="type")
    auto_run: bool = False

# Dependency to get the sites backend from app state
def get_sites_backend(request: Request) -> IngestBackend:
    return request.app.state.sites_backend

@router.get("/sites", response_model=List[Site], summary="List registered websites, newest first")
async def list_sites(backend: IngestBackend = Depends(get_sites_backend)):
    return await backend.list_records()

@router.post("/sites", response_model=Site, status_code=201, summary="Register a website and optionally start crawling it")
async def add_site(
    request_data: SiteCreateRequest,
    background_tasks: BackgroundTasks,
    backend: IngestBackend = Depends(get_sites_backend)
):
    draft = SiteDraft(url=request_data.url.strip(), scope=request_data.scope, site_type=request_data.site_type)
    try:
        record = await backend.create(draft, auto_run=request_data.auto_run)
    except Exception as e:
        logger.warning(f"Adding site {request_data.url!r} failed: {e}")
        raise to_http_error(e)

    if request_data.auto_run and record.id:
        background_tasks.add_task(finish_job, backend, record.id)
    return record

@router.post("/sites/bulk", response_model=BulkResult, summary="Register every URL found in a pasted block of text")
async def add_sites_bulk(
    request_data: BulkSiteRequest,
    background_tasks: BackgroundTasks,
    backend: IngestBackend = Depends(get_sites_backend)
):
    async def submit(url: str) -> Site:
        draft = SiteDraft(url=url, scope=request_data.scope, site_type=request_data.site_type)
        return await backend.create(draft, auto_run=request_data.auto_run)

    result = await BulkSubmissionCoordinator(submit).run(request_data.text)
    logger.info(f"Bulk add: {len(result.ok)} ok / {len(result.ng)} failed (total={result.total})")

    if request_data.auto_run:
        for site in result.ok:
            if site.id:
                background_tasks.add_task(finish_job, backend, site.id)
    return result

@router.post("/sites/{site_id}/reingest", response_model=Site, status_code=202, summary="(Re-)crawl a registered website")
async def reingest_site(
    site_id: int,
    background_tasks: BackgroundTasks,
    backend: IngestBackend = Depends(get_sites_backend)
):
    try:
        record = await backend.start_run(site_id)
    except Exception as e:
        raise to_http_error(e)

    background_tasks.add_task(finish_job, backend, site_id)
    return record

@router.delete("/sites/{site_id}", summary="Delete a website record")
async def delete_site(site_id: int, backend: IngestBackend = Depends(get_sites_backend)):
    try:
        await backend.delete(site_id)
    except Exception as e:
        raise to_http_error(e)
    return {"id": site_id, "success": True}

@router.get("/sites/watch", summary="Stream website list snapshots (SSE) at the polling interval")
async def watch_sites(request: Request, backend: IngestBackend = Depends(get_sites_backend)):
    interval = request.app.state.settings.polling.interval_seconds
    return StreamingResponse(watch_records(request, backend, interval), media_type="text/event-stream")
