from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

class RecordStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    done = "done"
    error = "error"

class SiteScope(str, Enum):
    all = "all"
    one_level = "one-level"
    single = "single"

class SiteType(str, Enum):
    static_html = "static-html"
    wordpress = "wordpress"
    headless_cms = "headless-cms"

def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()

class RecordBase(BaseModel):
    id: int
    label: str                              # filename or URL
    status: RecordStatus = RecordStatus.pending
    result_count: int | None = None         # chunks ingested / pages crawled
    error_message: str | None = None
    created_at: str | None = Field(default_factory=utc_now)   # None when a remote service omits it
    raw_status: str | None = None           # unrecognized status as received

    @computed_field
    @property
    def status_label(self) -> str:
        if self.raw_status is not None:
            return f"unknown: {self.raw_status}"
        return self.status.value

    @model_validator(mode="after")
    def check_outcome_fields(self):
        if self.result_count is not None and self.status != RecordStatus.done:
            raise ValueError("result_count is only allowed when status is 'done'")
        if self.error_message is not None and self.status != RecordStatus.error:
            raise ValueError("error_message is only allowed when status is 'error'")
        return self

class FileItem(RecordBase):
    pass

class Site(RecordBase):
    model_config = ConfigDict(populate_by_name=True)

    scope: SiteScope = SiteScope.all
    site_type: SiteType = Field(default=SiteType.static_html, alias="type")

class FileDraft(BaseModel):
    filename: str
    content: bytes = b""
    content_type: str = "application/pdf"

class SiteDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    scope: SiteScope = SiteScope.all
    site_type: SiteType = Field(default=SiteType.static_html, alias="type")

class JobResult(BaseModel):
    result_count: int
    elapsed_ms: int

class JobOutcome(BaseModel):
    id: int
    status: RecordStatus
    result_count: int | None = None
    error_message: str | None = None
