from __future__ import annotations

from fastapi.testclient import TestClient

from statepilot.apps.api import deps
from statepilot.apps.api.main import create_app
from statepilot.core.config import Settings
from statepilot.core.runtime import Runtime


def _client(backend) -> TestClient:
    app = create_app(Settings.from_env())
    app.dependency_overrides[deps.get_runtime] = lambda: Runtime(backend)
    return TestClient(app)


def test_invalid_body_is_bad_request(scripted_backend) -> None:
    with _client(scripted_backend) as client:
        blank = client.post("/api/query", json={"query": "   "})
        missing = client.post("/api/query", json={"state": {}})

    assert blank.status_code == 400
    assert "error" in blank.json()
    assert missing.status_code == 400
    assert scripted_backend.calls == []


def test_malformed_action_catalog_is_bad_request(scripted_backend) -> None:
    with _client(scripted_backend) as client:
        untyped = client.post("/api/query", json={"query": "create a task", "actions": [{"description": "no type"}]})
        scalar = client.post("/api/query", json={"query": "create a task", "actions": 7})

    assert untyped.status_code == 400
    assert untyped.json()["error"].startswith("actions")
    assert "type" in untyped.json()["error"]
    assert scalar.status_code == 400
    assert scripted_backend.calls == []


def test_not_found_and_method_not_allowed(scripted_backend) -> None:
    with _client(scripted_backend) as client:
        not_found = client.post("/nope", json={"query": "hi"})
        wrong_method = client.get("/api/query")

    assert not_found.status_code == 404
    assert not_found.json() == {"error": "Not found"}
    assert wrong_method.status_code == 405
    assert wrong_method.json() == {"error": "Method not allowed"}
