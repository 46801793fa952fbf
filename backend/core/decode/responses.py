import logging
from dataclasses import dataclass
from typing import Any, Generic, Type, TypeVar
from pydantic import ValidationError

from core.status.normalizer import normalize_status_detail
from models.record import RecordBase, RecordStatus

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=RecordBase)

# Legacy field names used by the different backend variants
LABEL_KEYS = ("label", "filename", "url")
RESULT_KEYS = ("result_count", "ingested_chunks", "ingested_urls")
ERROR_KEYS = ("error_message", "error")

@dataclass
class Ok(Generic[R]):
    records: list[R]

@dataclass
class Malformed:
    reason: str

DecodeResult = Ok | Malformed

def _first(item: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None

def _unwrap_list(payload: Any, collection: str) -> list | None:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in (collection, "items", "data"):
            if isinstance(payload.get(key), list):
                return payload[key]
    return None

def _coerce_item(item: dict) -> dict:
    detail = normalize_status_detail(item.get("status"))
    status = detail.status
    result_count = _first(item, RESULT_KEYS)
    error_message = _first(item, ERROR_KEYS)

    data = dict(item)
    data["label"] = str(_first(item, LABEL_KEYS) or "")
    data["status"] = status
    data["raw_status"] = detail.raw if not detail.recognized and detail.raw.strip() else None
    data["result_count"] = result_count if status == RecordStatus.done else None
    data["error_message"] = str(error_message) if status == RecordStatus.error and error_message is not None else None
    data["created_at"] = str(item["created_at"]) if item.get("created_at") is not None else None
    return data

def decode_records(payload: Any, model: Type[R], collection: str) -> DecodeResult:
    """
    Decodes a record list from any of the accepted response shapes:
    a bare array, or an object wrapping it under <collection>, 'items' or 'data'.
    Items that cannot be coerced into `model` are dropped.
    """
    items = _unwrap_list(payload, collection)
    if items is None:
        return Malformed(reason=f"expected a list of {collection}, got {type(payload).__name__}")

    records = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object {collection} entry: {item!r}")
            continue
        try:
            records.append(model.model_validate(_coerce_item(item)))
        except ValidationError as e:
            logger.warning(f"Skipping invalid {collection} entry {item.get('id')!r}: {e.error_count()} error(s)")
    return Ok(records=records)

def extract_created_id(payload: Any, collection: str) -> int | None:
    """Best-effort id lookup in {id}, {<singular>: {id}} or {data: {id}}."""
    if not isinstance(payload, dict):
        return None
    singular = collection[:-1] if collection.endswith("s") else collection
    candidates = [payload.get("id")]
    for key in (singular, "data"):
        nested = payload.get(key)
        if isinstance(nested, dict):
            candidates.append(nested.get("id"))
    for value in candidates:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None
