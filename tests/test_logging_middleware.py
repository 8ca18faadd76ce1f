import json
import logging

from fastapi.testclient import TestClient

from panchang_api.app import app


client = TestClient(app)


def test_access_line_emitted_when_enabled(monkeypatch, caplog):
    monkeypatch.setenv("LOGGING_ENABLED", "true")
    with caplog.at_level(logging.INFO, logger="panchang_api.access"):
        resp = client.get("/__health?check=1")
    assert resp.status_code == 200

    lines = [json.loads(r.getMessage()) for r in caplog.records if r.name == "panchang_api.access"]
    assert len(lines) == 1
    assert lines[0]["endpoint"] == "/__health"
    assert lines[0]["query"] == "check=1"
    assert lines[0]["status"] == 200


def test_access_line_suppressed_by_default(monkeypatch, caplog):
    monkeypatch.delenv("LOGGING_ENABLED", raising=False)
    with caplog.at_level(logging.INFO, logger="panchang_api.access"):
        client.get("/__health")
    assert not [r for r in caplog.records if r.name == "panchang_api.access"]
