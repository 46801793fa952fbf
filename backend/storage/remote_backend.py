import logging
from typing import Any, Dict, List, Optional, Type
import httpx
from core.decode.responses import Malformed, decode_records, extract_created_id
from core.errors import BackendError, RecordNotFoundError
from core.jobs.lifecycle import transition
from models.record import FileDraft, FileItem, JobOutcome, RecordBase, RecordStatus, Site, SiteDraft
from storage.base import IngestBackend

logger = logging.getLogger(__name__)

# Canonical run endpoint and result field per collection
RUN_CONTRACT = {
    "files": ("ingest_local", "ingested_chunks"),
    "sites": ("reingest", "ingested_urls"),
}

class RemoteBackend(IngestBackend):
    """
    Talks to the external ingestion service:
    GET/POST {base}/{collection}, POST {base}/{collection}/{id}/<run>, DELETE {base}/{collection}/{id}.
    """

    def __init__(self,
                 base_url: str,
                 collection: str,
                 timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        if collection not in RUN_CONTRACT:
            raise ValueError(f"Unsupported collection: {collection}")
        self.base_url = base_url.rstrip("/")
        self.collection = collection
        self.model: Type[RecordBase] = FileItem if collection == "files" else Site
        self.timeout = timeout
        self.transport = transport
        # Latest job outcome per id, layered over the service's listing until the service moves on
        self._outcomes: Dict[int, JobOutcome] = {}
        self._baseline: Dict[int, RecordStatus] = {}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            body = response.text[:500]
            raise BackendError(f"{method} {path} failed: {response.status_code}\n{body}", response.status_code)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    async def _fetch(self) -> List[RecordBase] | None:
        """The service's own view of the collection, or None when it could not be read."""
        try:
            response = await self._request("GET", f"/{self.collection}")
        except BackendError as e:
            logger.warning(f"[{self.collection}] listing failed: {e}")
            return None

        result = decode_records(self._json(response), self.model, self.collection)
        if isinstance(result, Malformed):
            logger.warning(f"[{self.collection}] unexpected list response: {result.reason}")
            return None
        return result.records

    def _begin(self, record: RecordBase) -> None:
        self._baseline[record.id] = record.status
        self._outcomes[record.id] = JobOutcome(id=record.id, status=RecordStatus.processing)

    def _forget(self, record_id: int) -> None:
        self._outcomes.pop(record_id, None)
        self._baseline.pop(record_id, None)

    def _merge(self, record: RecordBase) -> RecordBase:
        outcome = self._outcomes.get(record.id)
        if outcome is None:
            return record
        if record.status != self._baseline.get(record.id):
            # The service reported a state of its own since the run started
            self._forget(record.id)
            return record

        merged = record if record.status == RecordStatus.processing else transition(record, RecordStatus.processing)
        if outcome.status == RecordStatus.processing:
            return merged
        return transition(merged, outcome.status, outcome.result_count, outcome.error_message)

    async def list_records(self) -> List[RecordBase]:
        records = await self._fetch()
        if records is None:
            return []

        listed = {r.id for r in records}
        for stale in [i for i in self._outcomes if i not in listed]:
            self._forget(stale)
        merged = [self._merge(r) for r in records]
        return sorted(merged, key=lambda r: (r.created_at or "", r.id), reverse=True)

    async def create(self, draft: FileDraft | SiteDraft, auto_run: bool = False) -> RecordBase:
        if isinstance(draft, FileDraft):
            files = {"file": (draft.filename, draft.content, draft.content_type)}
            response = await self._request("POST", "/files", files=files)
            label = draft.filename
        else:
            body = draft.model_dump(mode="json", by_alias=True)
            response = await self._request("POST", "/sites", json=body)
            label = draft.url

        created_id = extract_created_id(self._json(response), self.collection)
        logger.info(f"[{self.collection}] created '{label}' (id={created_id})")

        if created_id is not None:
            listed = next((r for r in await self._fetch() or [] if r.id == created_id), None)
            if listed is not None:
                if auto_run:
                    self._begin(listed)
                return self._merge(listed)

        extra: Dict[str, Any] = {}
        if isinstance(draft, SiteDraft):
            extra = {"scope": draft.scope, "site_type": draft.site_type}
        # id 0 stands in when the service did not report one
        record = self.model(id=created_id or 0, label=label, **extra)
        if auto_run and created_id is not None:
            self._begin(record)
            return self._merge(record)
        return record

    async def start_run(self, record_id: int) -> RecordBase:
        # The service owns the state; report the optimistic 'processing' view
        record = next((r for r in await self._fetch() or [] if r.id == record_id), None)
        if record is None:
            raise RecordNotFoundError(f"{self.collection} #{record_id} not found")
        self._begin(record)
        return self._merge(record)

    async def complete_run(self, record_id: int) -> JobOutcome:
        action, result_key = RUN_CONTRACT[self.collection]
        try:
            response = await self._request("POST", f"/{self.collection}/{record_id}/{action}")
        except BackendError as e:
            logger.warning(f"[{self.collection}] job for #{record_id} failed: {e}")
            return self._settle(JobOutcome(id=record_id, status=RecordStatus.error, error_message=str(e)))

        data = self._json(response)
        count = data.get(result_key) if isinstance(data, dict) else None
        if not isinstance(count, int) or isinstance(count, bool):
            count = None
        logger.info(f"[{self.collection}] #{record_id} -> done ({count})")
        return self._settle(JobOutcome(id=record_id, status=RecordStatus.done, result_count=count))

    def _settle(self, outcome: JobOutcome) -> JobOutcome:
        # Only runs started here have a baseline to compare the service's listing against
        if outcome.id in self._baseline:
            self._outcomes[outcome.id] = outcome
        return outcome

    async def delete(self, record_id: int) -> None:
        try:
            await self._request("DELETE", f"/{self.collection}/{record_id}")
        except BackendError as e:
            if e.status_code == 404:
                self._forget(record_id)
                raise RecordNotFoundError(f"{self.collection} #{record_id} not found") from e
            raise
        self._forget(record_id)
