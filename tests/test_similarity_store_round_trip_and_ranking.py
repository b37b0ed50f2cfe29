from __future__ import annotations

from statepilot.core.memory import SimilarityStore


def test_round_trip_single_entry() -> None:
    store = SimilarityStore(dimensions=32)

    store.store_interaction("show all tasks", "There are no tasks.", {"tasks": []})
    results = store.retrieve_similar("show all tasks", 1)

    assert len(results) == 1
    assert results[0].metadata.query == "show all tasks"
    assert results[0].metadata.response == "There are no tasks."
    assert results[0].metadata.state == {"tasks": []}
    assert len(results[0].vector) == 32


def test_retrieve_on_empty_store_returns_empty_list() -> None:
    store = SimilarityStore()

    assert store.retrieve_similar("anything") == []
    assert store.get_all_entries() == []


def test_retrieve_orders_by_similarity() -> None:
    store = SimilarityStore(dimensions=128)
    store.store_interaction("what is the weather like", "sunny")
    store.store_interaction("create a task called groceries", "created")
    store.store_interaction("delete every task", "deleted")

    results = store.retrieve_similar("create a task called laundry", 2)

    assert results[0].metadata.query == "create a task called groceries"
    assert len(results) == 2


def test_state_snapshot_is_copied() -> None:
    store = SimilarityStore()
    state = {"tasks": ["a"]}

    store.store_interaction("q", "r", state)
    state["tasks"].append("b")

    assert store.get_all_entries()[0].metadata.state == {"tasks": ["a"]}
