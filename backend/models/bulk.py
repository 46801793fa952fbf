from pydantic import BaseModel, ConfigDict, Field
from models.record import Site, SiteScope, SiteType

class BulkSiteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    scope: SiteScope = SiteScope.all
    site_type: SiteType = Field(default=SiteType.static_html, alias="type")
    auto_run: bool = False

class BulkFailure(BaseModel):
    url: str
    reason: str

class BulkResult(BaseModel):
    total: int                       # valid, de-duplicated candidates submitted
    ok: list[Site] = []
    ng: list[BulkFailure] = []
