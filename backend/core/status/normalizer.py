from typing import Any
from pydantic import BaseModel
from models.record import RecordStatus

# Synonyms emitted by backends; consulted before the canonical values
STATUS_SYNONYMS = {
    "uploaded": RecordStatus.done,
    "completed": RecordStatus.done,
    "crawling": RecordStatus.processing,
    "failed": RecordStatus.error,
}

class NormalizedStatus(BaseModel):
    status: RecordStatus
    raw: str
    recognized: bool

    @property
    def label(self) -> str:
        if self.recognized:
            return self.status.value
        return f"unknown: {self.raw}" if self.raw else "unknown"

def normalize_status_detail(value: Any) -> NormalizedStatus:
    """
    Maps any backend status value onto the four canonical statuses.
    Unrecognized input degrades to 'pending'; the raw value is kept for display.
    """
    raw = "" if value is None else str(value)
    key = raw.strip().lower()

    if key in STATUS_SYNONYMS:
        return NormalizedStatus(status=STATUS_SYNONYMS[key], raw=raw, recognized=True)

    try:
        return NormalizedStatus(status=RecordStatus(key), raw=raw, recognized=True)
    except ValueError:
        return NormalizedStatus(status=RecordStatus.pending, raw=raw, recognized=False)

def normalize_status(value: Any) -> RecordStatus:
    return normalize_status_detail(value).status
