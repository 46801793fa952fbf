import logging
from typing import List
from core.bulk.urls import looks_like_url, normalize_url
from core.errors import DuplicateRecordError, InvalidUrlError, RecordNotFoundError
from core.jobs.lifecycle import next_record_id, transition
from core.jobs.simulated_runner import SimulatedJobRunner
from models.record import FileDraft, FileItem, JobOutcome, RecordBase, RecordStatus, Site, SiteDraft
from storage.base import IngestBackend
from storage.record_store import RecordStore

logger = logging.getLogger(__name__)

class SimulatedBackend(IngestBackend):
    """
    Offline backend: records live in a RecordStore and jobs are played by a SimulatedJobRunner.
    """

    def __init__(self, store: RecordStore, runner: SimulatedJobRunner):
        self.store = store
        self.runner = runner
        self.collection = store.key

    async def list_records(self) -> List[RecordBase]:
        return self.store.load_all()

    def _build(self, draft: FileDraft | SiteDraft, records: List[RecordBase], status: RecordStatus) -> RecordBase:
        record_id = next_record_id(r.id for r in records)

        if isinstance(draft, SiteDraft):
            try:
                url = normalize_url(draft.url)
            except ValueError:
                url = ""
            if not looks_like_url(url):
                raise InvalidUrlError(f"{draft.url!r} is not a valid http(s) URL")
            if any(normalize_url(r.label) == url for r in records):
                raise DuplicateRecordError(f"{url} is already registered")
            return Site(id=record_id, label=url, scope=draft.scope, site_type=draft.site_type, status=status)

        return FileItem(id=record_id, label=draft.filename, status=status)

    async def create(self, draft: FileDraft | SiteDraft, auto_run: bool = False) -> RecordBase:
        records = self.store.load_all()
        status = RecordStatus.processing if auto_run else RecordStatus.pending
        record = self._build(draft, records, status)

        self.store.save_all([record] + records)
        logger.info(f"[{self.collection}] created #{record.id} '{record.label}' ({status.value})")
        return record

    async def start_run(self, record_id: int) -> RecordBase:
        records = self.store.load_all()
        index = next((i for i, r in enumerate(records) if r.id == record_id), None)
        if index is None:
            raise RecordNotFoundError(f"{self.collection} #{record_id} not found")

        records[index] = transition(records[index], RecordStatus.processing)
        self.store.save_all(records)
        logger.info(f"[{self.collection}] #{record_id} -> processing")
        return records[index]

    async def complete_run(self, record_id: int) -> JobOutcome:
        record = self.store.get(record_id)
        if record is None:
            raise RecordNotFoundError(f"{self.collection} #{record_id} not found")

        result = await self.runner.run(record)

        # Re-read: other mutations may have landed while the job was suspended
        records = self.store.load_all()
        index = next((i for i, r in enumerate(records) if r.id == record_id), None)
        if index is None:
            logger.info(f"[{self.collection}] #{record_id} was deleted while its job ran; result dropped")
            return JobOutcome(id=record_id, status=RecordStatus.done, result_count=result.result_count)

        current = records[index]
        if current.status != RecordStatus.processing:
            current = transition(current, RecordStatus.processing)
        records[index] = transition(current, RecordStatus.done, result_count=result.result_count)
        self.store.save_all(records)
        logger.info(f"[{self.collection}] #{record_id} -> done ({result.result_count})")
        return JobOutcome(id=record_id, status=RecordStatus.done, result_count=result.result_count)

    async def delete(self, record_id: int) -> None:
        records = self.store.load_all()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            raise RecordNotFoundError(f"{self.collection} #{record_id} not found")
        self.store.save_all(remaining)
        logger.info(f"[{self.collection}] deleted #{record_id}")
