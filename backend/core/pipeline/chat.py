import logging
from typing import Optional
from config.settings import AppSettings, settings as default_settings
from core.generate.llm_client import LLMClient
from core.generate.prompt_builder import PromptBuilder
from models.chat import ChatMeta, ChatRequest, ChatResponse, Reference
from storage.base import VectorStore

logger = logging.getLogger(__name__)

class ChatPipeline:
    """
    Retrieval-augmented chat: embed question -> vector RPC -> chat completion.
    All three steps are delegated to external services.
    """

    def __init__(self, llm: LLMClient, vector_store: VectorStore, app_settings: Optional[AppSettings] = None):
        self.llm = llm
        self.vector_store = vector_store
        self.settings = app_settings or default_settings

    def resolve_top_k(self, requested: Optional[int]) -> int:
        config = self.settings.retrieval
        value = config.default_top_k if requested is None else requested
        return max(1, min(int(value), config.max_top_k))

    def run(self, request: ChatRequest) -> ChatResponse:
        question = request.message.strip()
        if not question:
            raise ValueError("question (or message) is required")

        top_k = self.resolve_top_k(request.top_k)
        logger.info(f"Chat question (top_k={top_k}): '{question[:80]}'")

        # 1. Retrieval
        embedding = self.llm.embed(question)
        retrieved = self.vector_store.search(embedding, top_k)

        # 2. Generation
        messages = PromptBuilder.build_messages(question, retrieved, self.settings.llm.answer_language)
        answer = self.llm.generate(messages)

        return ChatResponse(
            answer=answer,
            references=[Reference(source=r.source, score=r.similarity) for r in retrieved],
            meta=ChatMeta(top_k=top_k, rpc=self.settings.supabase_match_rpc, hits=len(retrieved))
        )
