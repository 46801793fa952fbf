from abc import ABC, abstractmethod
from typing import List, Optional
from models.chat import ChunkRow, RetrievedChunk
from models.record import FileDraft, JobOutcome, RecordBase, SiteDraft

class RecordStorage(ABC):
    """Key-value port holding one serialized collection per key."""

    @abstractmethod
    def load(self, key: str) -> Optional[str]:
        """Returns the stored text, or None when nothing was saved under `key`."""
        pass

    @abstractmethod
    def save(self, key: str, text: str) -> None:
        """Replaces the stored text; readers never observe a partial write."""
        pass

class IngestBackend(ABC):
    """One record collection (files or sites) plus the jobs that fill the index from it."""

    collection: str

    @abstractmethod
    async def list_records(self) -> List[RecordBase]:
        pass

    @abstractmethod
    async def create(self, draft: FileDraft | SiteDraft, auto_run: bool = False) -> RecordBase:
        pass

    @abstractmethod
    async def start_run(self, record_id: int) -> RecordBase:
        """Moves the record to 'processing'. Raises RecordNotFoundError / InvalidTransitionError."""
        pass

    @abstractmethod
    async def complete_run(self, record_id: int) -> JobOutcome:
        """Performs the job and records its terminal state. Never raises for job failures."""
        pass

    @abstractmethod
    async def delete(self, record_id: int) -> None:
        pass

    async def run(self, record_id: int) -> JobOutcome:
        await self.start_run(record_id)
        return await self.complete_run(record_id)

class VectorStore(ABC):
    @abstractmethod
    def search(self, embedding: List[float], top_k: int) -> List[RetrievedChunk]:
        pass

    @abstractmethod
    def list_chunks(self, query: str = "", limit: int = 50) -> List[ChunkRow]:
        pass
