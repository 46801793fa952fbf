import time
from typing import Iterable, TypeVar

from core.errors import InvalidTransitionError
from models.record import RecordBase, RecordStatus

R = TypeVar("R", bound=RecordBase)

# pending -> processing -> {done, error}; done/error may be re-run
ALLOWED_TRANSITIONS = {
    RecordStatus.pending: {RecordStatus.processing},
    RecordStatus.processing: {RecordStatus.done, RecordStatus.error},
    RecordStatus.done: {RecordStatus.processing},
    RecordStatus.error: {RecordStatus.processing},
}

def can_transition(current: RecordStatus, target: RecordStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]

def transition(record: R,
               target: RecordStatus,
               result_count: int | None = None,
               error_message: str | None = None) -> R:
    """
    Returns a copy of `record` moved to `target`.
    Outcome fields are reset on every move and only set for the matching terminal state.
    """
    if not can_transition(record.status, target):
        raise InvalidTransitionError(
            f"Record {record.id} cannot move from '{record.status.value}' to '{target.value}'"
        )

    data = record.model_dump(by_alias=True)
    data["status"] = target
    data["raw_status"] = None
    data["result_count"] = result_count if target == RecordStatus.done else None
    data["error_message"] = (error_message or "Unknown error") if target == RecordStatus.error else None
    return type(record).model_validate(data)

def next_record_id(existing: Iterable[int]) -> int:
    """Creation timestamp in ms, bumped past the largest existing id."""
    candidate = int(time.time() * 1000)
    highest = max(existing, default=0)
    return max(candidate, highest + 1)
