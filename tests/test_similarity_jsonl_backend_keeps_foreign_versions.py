from __future__ import annotations

import json

from statepilot.core.memory import JsonlBackend, SimilarityStore


def test_jsonl_backend_persists_and_skips_foreign_versions(tmp_path) -> None:
    path = tmp_path / "interactions.jsonl"
    store = SimilarityStore(backend=JsonlBackend(path), dimensions=16)
    store.store_interaction("create a task", "done", intent="action", action={"type": "task/create"})

    with path.open("a", encoding="utf-8") as handle:
        handle.write("{not json\n")
        old = json.loads(path.read_text(encoding="utf-8").splitlines()[0])
        old["id"] = "legacy"
        old["version"] = 0
        handle.write(json.dumps(old) + "\n")

    reopened = SimilarityStore(backend=JsonlBackend(path), dimensions=16)
    entries = reopened.get_all_entries()

    assert len(entries) == 1
    assert entries[0].metadata.intent == "action"
    assert entries[0].metadata.action == {"type": "task/create"}


def test_jsonl_eviction_keeps_lines_from_other_versions(tmp_path) -> None:
    path = tmp_path / "interactions.jsonl"
    store = SimilarityStore(backend=JsonlBackend(path), dimensions=16, max_entries=1)
    store.store_interaction("first", "one")

    with path.open("a", encoding="utf-8") as handle:
        handle.write("{not json\n")
        newer = json.loads(path.read_text(encoding="utf-8").splitlines()[0])
        newer["id"] = "v2-entry"
        newer["version"] = 2
        handle.write(json.dumps(newer) + "\n")

    store.store_interaction("second", "two")

    lines = path.read_text(encoding="utf-8").splitlines()
    ids = [json.loads(line)["id"] for line in lines if line != "{not json"]

    assert "{not json" in lines
    assert "v2-entry" in ids
    assert [entry.metadata.query for entry in store.get_all_entries()] == ["second"]
