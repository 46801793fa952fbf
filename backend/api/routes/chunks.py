import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request

from api.routes.chat import get_vector_store
from core.errors import BackendError
from models.chat import ChunkRow
from storage.base import VectorStore

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/chunks", response_model=List[ChunkRow], summary="Newest indexed chunks, optionally filtered by text")
def list_chunks(request: Request, q: str = "", vector_store: VectorStore = Depends(get_vector_store)):
    limit = request.app.state.settings.retrieval.chunk_list_limit
    try:
        return vector_store.list_chunks(q.strip(), limit)
    except BackendError as e:
        logger.error(f"Listing chunks failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
