from pydantic import AliasChoices, BaseModel, Field

class ChatRequest(BaseModel):
    message: str = Field(default="", validation_alias=AliasChoices("message", "question"))
    top_k: int | None = None                # clamped to [1, max_top_k]; None = default

class RetrievedChunk(BaseModel):
    text: str
    source: str
    similarity: float

class Reference(BaseModel):
    source: str
    score: float

class ChatMeta(BaseModel):
    top_k: int
    rpc: str
    hits: int

class ChatResponse(BaseModel):
    answer: str
    references: list[Reference]
    meta: ChatMeta

class ChunkRow(BaseModel):
    id: str
    content: str | None = None
    created_at: str | None = None
