import os
import sys

# Add backend to sys.path
sys.path.append(os.path.join(os.getcwd(), "backend"))

from core.decode.responses import Malformed, Ok, decode_records, extract_created_id
from models.record import FileItem, RecordStatus, Site

def test_accepts_array_and_wrapped_shapes():
    item = {"id": 1, "filename": "a.pdf", "status": "uploaded", "ingested_chunks": 12}
    for payload in [[item], {"files": [item]}, {"items": [item]}, {"data": [item]}]:
        result = decode_records(payload, FileItem, "files")
        assert isinstance(result, Ok)
        assert result.records[0].label == "a.pdf"
        assert result.records[0].status == RecordStatus.done
        assert result.records[0].result_count == 12

def test_unrecognized_shape_is_malformed():
    for payload in [None, "text", 5, {"files": "nope"}, {"other": []}]:
        assert isinstance(decode_records(payload, FileItem, "files"), Malformed)

def test_outcome_fields_follow_status():
    payload = [
        {"id": 1, "url": "https://a.com/", "status": "crawling", "ingested_urls": 4},
        {"id": 2, "url": "https://b.com/", "status": "error", "error_message": "timeout"},
        {"id": 3, "url": "https://c.com/", "status": "???", "type": "wordpress", "scope": "single"},
    ]
    result = decode_records(payload, Site, "sites")
    first, second, third = result.records

    assert first.status == RecordStatus.processing and first.result_count is None
    assert second.error_message == "timeout"
    assert third.status == RecordStatus.pending
    assert third.site_type.value == "wordpress"

def test_unknown_status_keeps_raw_value():
    result = decode_records([{"id": 1, "filename": "a.pdf", "status": "queued_v2"}], FileItem, "files")
    record = result.records[0]

    assert record.status == RecordStatus.pending
    assert record.raw_status == "queued_v2"
    assert record.status_label == "unknown: queued_v2"
    assert record.model_dump(mode="json")["status_label"] == "unknown: queued_v2"

    known = decode_records([{"id": 2, "filename": "b.pdf", "status": "failed"}], FileItem, "files").records[0]
    assert known.raw_status is None
    assert known.status_label == "error"

def test_missing_created_at_is_not_invented():
    payload = [{"id": 1, "filename": "a.pdf", "status": "done"}]
    first = decode_records(payload, FileItem, "files").records[0]
    second = decode_records(payload, FileItem, "files").records[0]

    assert first.created_at is None
    assert first == second

def test_extract_created_id():
    assert extract_created_id({"id": 5}, "files") == 5
    assert extract_created_id({"file": {"id": 6}}, "files") == 6
    assert extract_created_id({"site": {"id": 7}}, "sites") == 7
    assert extract_created_id({"data": {"id": 8}}, "sites") == 8
    assert extract_created_id({"id": "9"}, "files") is None
    assert extract_created_id(None, "files") is None
    assert extract_created_id({"id": True}, "files") is None

if __name__ == "__main__":
    test_accepts_array_and_wrapped_shapes()
    test_unrecognized_shape_is_malformed()
    test_outcome_fields_follow_status()
    test_unknown_status_keeps_raw_value()
    test_missing_created_at_is_not_invented()
    test_extract_created_id()
    print("Decode tests PASSED")
