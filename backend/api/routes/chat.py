import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from core.errors import BackendError, ConfigurationError
from core.generate.llm_client import LLMClient
from core.pipeline.chat import ChatPipeline
from models.chat import ChatRequest, ChatResponse
from storage.base import VectorStore
from storage.supabase_store import SupabaseVectorStore

router = APIRouter()
logger = logging.getLogger(__name__)

def get_vector_store(request: Request) -> VectorStore:
    """Built on first use; a missing database setting surfaces as 503."""
    state = request.app.state
    if state.vector_store is None:
        try:
            state.vector_store = SupabaseVectorStore(state.settings)
        except ConfigurationError as e:
            logger.error(f"Vector store unavailable: {e}")
            raise HTTPException(status_code=503, detail=str(e))
    return state.vector_store

def get_chat_pipeline(request: Request, vector_store: VectorStore = Depends(get_vector_store)) -> ChatPipeline:
    state = request.app.state
    if state.chat_pipeline is None:
        try:
            state.chat_pipeline = ChatPipeline(LLMClient(state.settings), vector_store, state.settings)
        except ConfigurationError as e:
            logger.error(f"Chat unavailable: {e}")
            raise HTTPException(status_code=503, detail=str(e))
    return state.chat_pipeline

@router.post("/chat", response_model=ChatResponse, summary="Answer a question from the retrieval index")
def chat(request_data: ChatRequest, pipeline: ChatPipeline = Depends(get_chat_pipeline)):
    if not request_data.message.strip():
        raise HTTPException(status_code=400, detail="question (or message) is required")

    try:
        return pipeline.run(request_data)
    except BackendError as e:
        logger.error(f"Chat upstream failure: {e}")
        raise HTTPException(status_code=502, detail=f"{type(e).__name__}: {e}")
    except Exception as e:
        logger.exception("Chat pipeline execution failed.")
        raise HTTPException(status_code=500, detail=f"{type(e).__name__}: {e}")
