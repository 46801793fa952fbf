import logging
from typing import Any, Dict, List, Optional
import httpx
from config.settings import AppSettings, settings as default_settings
from core.errors import BackendError
from models.chat import ChunkRow, RetrievedChunk
from storage.base import VectorStore

logger = logging.getLogger(__name__)

class SupabaseVectorStore(VectorStore):
    """
    Implements VectorStore over the Supabase PostgREST API.
    - Similarity search through an RPC (match_documents / match_chunks).
    - Chunk listing straight from the chunk table.
    """

    def __init__(self, app_settings: Optional[AppSettings] = None):
        app_settings = app_settings or default_settings
        self.url = app_settings.require("supabase_url").rstrip("/")
        key = app_settings.require("supabase_key")
        self.rpc_name = app_settings.supabase_match_rpc or "match_documents"
        self.chunk_table = app_settings.retrieval.chunk_table
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json"
        }

    def _call(self, method: str, path: str, **kwargs) -> Any:
        try:
            with httpx.Client(timeout=30.0) as client:
                response = client.request(method, f"{self.url}{path}", headers=self.headers, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            # RLS, missing grants or a wrong RPC name all land here
            raise BackendError(f"{method} {path} failed: {e.response.status_code} {e.response.text[:300]}",
                               e.response.status_code) from e
        except (httpx.HTTPError, ValueError) as e:
            raise BackendError(f"{method} {path} failed: {e}") from e

    def search(self, embedding: List[float], top_k: int) -> List[RetrievedChunk]:
        rows = self._call(
            "POST",
            f"/rest/v1/rpc/{self.rpc_name}",
            json={"query_embedding": embedding, "match_count": top_k}
        )
        if not isinstance(rows, list):
            logger.warning(f"rpc({self.rpc_name}) returned {type(rows).__name__}, expected a list")
            return []
        return [self._to_chunk(r) for r in rows if isinstance(r, dict)]

    @staticmethod
    def _to_chunk(row: Dict[str, Any]) -> RetrievedChunk:
        text = row.get("content") if row.get("content") is not None else row.get("text")
        score = row.get("similarity") if row.get("similarity") is not None else row.get("score")
        try:
            similarity = float(score or 0)
        except (TypeError, ValueError):
            similarity = 0.0
        return RetrievedChunk(text=str(text or ""), source=str(row.get("source") or ""), similarity=similarity)

    def list_chunks(self, query: str = "", limit: int = 50) -> List[ChunkRow]:
        params = {
            "select": "id,content,created_at",
            "order": "created_at.desc",
            "limit": str(limit)
        }
        if query:
            params["content"] = f"ilike.*{query}*"
        rows = self._call("GET", f"/rest/v1/{self.chunk_table}", params=params)
        if not isinstance(rows, list):
            return []
        return [
            ChunkRow(id=str(r.get("id")), content=r.get("content"), created_at=r.get("created_at"))
            for r in rows if isinstance(r, dict)
        ]
