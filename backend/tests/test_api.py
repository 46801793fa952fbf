import asyncio
import os
import sys
import tempfile
from unittest.mock import MagicMock
import httpx
import pytest
from fastapi.testclient import TestClient

# Add backend to sys.path
sys.path.append(os.path.join(os.getcwd(), "backend"))

from api.main import app, build_backends
from api.routes.common import watch_records
from config.settings import AppSettings, BackendConfig, settings
from core.errors import ConfigurationError
from models.chat import ChatMeta, ChatResponse, Reference
from models.record import FileItem, RecordStatus
from storage.remote_backend import RemoteBackend

@pytest.fixture
def client(monkeypatch):
    with tempfile.TemporaryDirectory() as tmp:
        monkeypatch.setattr(settings.backend, "mode", "simulated")
        monkeypatch.setattr(settings.store, "path", tmp)
        monkeypatch.setattr(settings.simulation, "latency_min_ms", 1)
        monkeypatch.setattr(settings.simulation, "latency_max_ms", 2)
        with TestClient(app) as test_client:
            yield test_client

def test_file_lifecycle_over_http(client):
    print("--- Testing /api/files flow ---")
    assert client.get("/api/files").json() == []

    res = client.post("/api/files", files={"file": ("a.pdf", b"%PDF-1.4", "application/pdf")})
    assert res.status_code == 201
    created = res.json()
    assert created["status"] == "pending"
    assert created["label"] == "a.pdf"

    res = client.post(f"/api/files/{created['id']}/ingest")
    assert res.status_code == 202
    assert res.json()["status"] == "processing"

    # Background job has run by the time the test client returns
    listed = client.get("/api/files").json()
    assert listed[0]["status"] == "done"
    assert 5 <= listed[0]["result_count"] <= 25

    assert client.delete(f"/api/files/{created['id']}").status_code == 200
    assert client.get("/api/files").json() == []
    assert client.delete(f"/api/files/{created['id']}").status_code == 404
    print("Files flow PASSED")

def test_upload_rejects_non_pdf(client):
    res = client.post("/api/files", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert res.status_code == 400

def test_upload_with_auto_run(client):
    res = client.post(
        "/api/files",
        files={"file": ("b.pdf", b"%PDF-1.4", "application/pdf")},
        data={"auto_run": "true"}
    )
    assert res.json()["status"] == "processing"
    assert client.get("/api/files").json()[0]["status"] == "done"

def test_unknown_record_returns_404(client):
    assert client.post("/api/files/999/ingest").status_code == 404
    assert client.post("/api/sites/999/reingest").status_code == 404

def test_sites_single_and_bulk(client):
    print("--- Testing /api/sites flow ---")
    res = client.post("/api/sites", json={"url": "https://a.com", "scope": "single", "type": "wordpress"})
    assert res.status_code == 201
    site = res.json()
    assert site["label"] == "https://a.com/"
    assert site["type"] == "wordpress"

    assert client.post("/api/sites", json={"url": "https://a.com/"}).status_code == 409
    assert client.post("/api/sites", json={"url": "nope"}).status_code == 400

    res = client.post("/api/sites/bulk", json={"text": "a.com, b.com\nb.com not-a-url c.com", "auto_run": True})
    result = res.json()
    assert result["total"] == 3
    assert sorted(s["label"] for s in result["ok"]) == ["https://b.com/", "https://c.com/"]
    assert {f["url"] for f in result["ng"]} == {"https://a.com/", "not-a-url"}

    statuses = {s["label"]: s["status"] for s in client.get("/api/sites").json()}
    assert statuses == {"https://a.com/": "pending", "https://b.com/": "done", "https://c.com/": "done"}

    res = client.post(f"/api/sites/{site['id']}/reingest")
    assert res.status_code == 202
    print("Sites flow PASSED")

def test_chat_route(client):
    pipeline = MagicMock()
    pipeline.run.return_value = ChatResponse(
        answer="Open 9-17",
        references=[Reference(source="a.pdf", score=0.9)],
        meta=ChatMeta(top_k=8, rpc="match_documents", hits=1)
    )
    app.state.vector_store = MagicMock()
    app.state.chat_pipeline = pipeline

    res = client.post("/api/chat", json={"question": "When?"})
    assert res.status_code == 200
    assert res.json()["references"] == [{"source": "a.pdf", "score": 0.9}]

    assert client.post("/api/chat", json={"message": "  "}).status_code == 400

def test_chat_without_configuration_returns_503(client, monkeypatch):
    monkeypatch.setattr(settings, "supabase_url", "")
    app.state.vector_store = None
    app.state.chat_pipeline = None

    res = client.post("/api/chat", json={"message": "hi"})
    assert res.status_code == 503
    assert "SUPABASE_URL is missing" in res.json()["detail"]

def test_remote_ingest_failure_is_listed_as_error(client):
    def handler(request: httpx.Request):
        if request.method == "GET":
            return httpx.Response(200, json=[{"id": 5, "filename": "a.pdf", "status": "pending"}])
        raise httpx.ConnectError("connection refused")

    client.app.state.files_backend = RemoteBackend(
        "http://api.test", "files", transport=httpx.MockTransport(handler)
    )

    res = client.post("/api/files/5/ingest")
    assert res.status_code == 202
    assert res.json()["status"] == "processing"

    listed = client.get("/api/files").json()
    assert listed[0]["status"] == "error"
    assert "connection refused" in listed[0]["error_message"]

def test_remote_mode_requires_api_base():
    remote = AppSettings(api_base="", backend=BackendConfig(mode="remote"))
    with pytest.raises(ConfigurationError, match="RAG_API_BASE is missing"):
        build_backends(remote)

    remote = AppSettings(api_base="http://127.0.0.1:8000", backend=BackendConfig(mode="remote"))
    files_backend, sites_backend = build_backends(remote)
    assert (files_backend.collection, sites_backend.collection) == ("files", "sites")

def test_watch_stream_stops_polling_on_disconnect():
    class FakeRequest:
        def __init__(self):
            self.checks = 0

        async def is_disconnected(self):
            self.checks += 1
            return self.checks > 1

    backend = MagicMock()

    async def list_records():
        return [FileItem(id=1, label="a.pdf", status=RecordStatus.done, result_count=3)]

    backend.list_records = list_records

    async def scenario():
        events = [e async for e in watch_records(FakeRequest(), backend, interval=0.01)]
        await asyncio.sleep(0.03)
        leftover = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
        return events, leftover

    events, leftover = asyncio.run(scenario())
    assert len(events) == 1
    assert events[0].startswith("data: ")
    assert '"result_count": 3' in events[0]
    assert leftover == []
