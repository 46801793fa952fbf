import json
import logging
from typing import Generic, List, Sequence, Type, TypeVar
from core.decode.responses import Malformed, decode_records
from models.record import RecordBase
from storage.base import RecordStorage

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=RecordBase)

class RecordStore(Generic[R]):
    """
    Whole-collection persistence for one record type, stored as a single JSON array.
    Every mutation is a read-modify-write of the full list; the last writer wins.
    """

    def __init__(self, storage: RecordStorage, key: str, model: Type[R]):
        self.storage = storage
        self.key = key
        self.model = model

    def load_all(self) -> List[R]:
        """Returns all records, newest first. Missing or corrupted storage yields []."""
        text = self.storage.load(self.key)
        if not text:
            return []

        try:
            payload = json.loads(text)
        except (ValueError, RecursionError) as e:
            logger.warning(f"Record storage '{self.key}' is not valid JSON ({e}); treating as empty.")
            return []

        result = decode_records(payload, self.model, self.key)
        if isinstance(result, Malformed):
            logger.warning(f"Record storage '{self.key}' is malformed ({result.reason}); treating as empty.")
            return []

        return sorted(result.records, key=lambda r: (r.created_at or "", r.id), reverse=True)

    def save_all(self, records: Sequence[R]) -> None:
        data = [r.model_dump(mode="json", by_alias=True) for r in records]
        self.storage.save(self.key, json.dumps(data, ensure_ascii=False, indent=2))

    def get(self, record_id: int) -> R | None:
        return next((r for r in self.load_all() if r.id == record_id), None)
