import asyncio
import os
import random
import sys

# Add backend to sys.path
sys.path.append(os.path.join(os.getcwd(), "backend"))

from core.bulk.coordinator import BulkSubmissionCoordinator
from core.bulk.urls import looks_like_url, normalize_url, tokenize
from core.jobs.simulated_backend import SimulatedBackend
from core.jobs.simulated_runner import SimulatedJobRunner
from models.record import Site, SiteDraft
from storage.file_store import MemoryStorage
from storage.record_store import RecordStore

def _recording_submit(calls):
    async def submit(url: str) -> Site:
        calls.append(url)
        return Site(id=len(calls), label=url)
    return submit

def test_tokenize_and_normalize():
    assert tokenize(" a.com,,b.com\n\tc.com  ") == ["a.com", "b.com", "c.com"]
    assert tokenize("") == []
    assert normalize_url("a.com") == "https://a.com/"
    assert normalize_url("https://a.com") == "https://a.com/"
    assert normalize_url("https://a.com/docs/") == "https://a.com/docs/"
    assert normalize_url("https://a.com/docs") == "https://a.com/docs"
    assert looks_like_url("http://localhost:8000/")
    assert not looks_like_url("ftp://a.com/")
    assert not looks_like_url("https://not/")

def test_duplicates_collapse_to_one_candidate():
    print("Testing bulk de-duplication...")
    calls = []
    result = asyncio.run(BulkSubmissionCoordinator(_recording_submit(calls)).run("a.com, a.com\na.com"))

    assert calls == ["https://a.com/"]
    assert result.total == 1
    assert len(result.ok) == 1 and result.ng == []
    print("De-duplication PASSED")

def test_first_occurrence_order_is_kept():
    candidates, invalid = BulkSubmissionCoordinator.prepare("https://b.com https://a.com/ https://b.com/ a.com")
    assert candidates == ["https://b.com/", "https://a.com/"]
    assert invalid == []

def test_malformed_tokens_are_reported_not_submitted():
    calls = []
    result = asyncio.run(
        BulkSubmissionCoordinator(_recording_submit(calls)).run("https://a.com\nnot a url\nhttps://b.com/page")
    )

    assert result.total == 2
    assert sorted(calls) == ["https://a.com/", "https://b.com/page"]
    assert {f.url for f in result.ng} == {"not", "a", "url"}
    assert all(f.reason == "not a valid http(s) URL" for f in result.ng)

def test_one_failure_does_not_block_the_batch():
    async def submit(url: str) -> Site:
        if "bad" in url:
            raise RuntimeError("backend down")
        await asyncio.sleep(0)
        return Site(id=1 if "a." in url else 2, label=url)

    result = asyncio.run(BulkSubmissionCoordinator(submit).run("https://a.com https://bad.com https://c.com"))
    assert result.total == 3
    assert len(result.ok) == 2
    assert result.ng[0].url == "https://bad.com/"
    assert result.ng[0].reason == "backend down"

def test_already_registered_urls_fail_per_item():
    print("Testing bulk against the simulated store...")

    async def no_sleep(seconds: float):
        return None

    backend = SimulatedBackend(
        RecordStore(MemoryStorage(), "sites", Site),
        SimulatedJobRunner(rng=random.Random(3), sleep=no_sleep)
    )

    async def scenario():
        await backend.create(SiteDraft(url="https://a.com/"))

        async def submit(url: str) -> Site:
            return await backend.create(SiteDraft(url=url))

        return await BulkSubmissionCoordinator(submit).run("a.com b.com c.com/docs")

    result = asyncio.run(scenario())
    assert result.total == 3
    assert sorted(s.label for s in result.ok) == ["https://b.com/", "https://c.com/docs"]
    assert [(f.url, f.reason) for f in result.ng] == [("https://a.com/", "already registered")]
    assert len(backend.store.load_all()) == 3
    assert len({r.id for r in backend.store.load_all()}) == 3
    print("Bulk store tests PASSED")

if __name__ == "__main__":
    test_tokenize_and_normalize()
    test_duplicates_collapse_to_one_candidate()
    test_malformed_tokens_are_reported_not_submitted()
    test_one_failure_does_not_block_the_batch()
    test_already_registered_urls_fail_per_item()
