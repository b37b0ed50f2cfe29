from __future__ import annotations

from statepilot.core.catalog import Catalog
from statepilot.core.dispatch import INVALID_ACTION_MESSAGE, CommandDispatcher, StateStore


def _counter_store() -> StateStore:
    return StateStore(
        initial_state={"count": 0},
        reducers={"test/increment": lambda state, command: {**state, "count": state["count"] + 1}},
    )


def test_valid_payloadless_command_is_dispatched() -> None:
    store = _counter_store()
    dispatcher = CommandDispatcher(Catalog.parse([{"type": "test/increment"}]), store)

    outcome = dispatcher.apply({"type": "test/increment"}, "Incremented")

    assert outcome.dispatched is True
    assert outcome.action == {"type": "test/increment"}
    assert outcome.message == "Incremented"
    assert store.get_state() == {"count": 1}


def test_invalid_command_returns_apology_and_leaves_state() -> None:
    store = _counter_store()
    dispatcher = CommandDispatcher(Catalog.parse([{"type": "test/increment"}]), store)

    outcome = dispatcher.apply({"invalid": "format"}, "Incremented")

    assert outcome.dispatched is False
    assert outcome.action is None
    assert outcome.message == INVALID_ACTION_MESSAGE
    assert outcome.errors
    assert store.get_state() == {"count": 0}


def test_command_with_unresolvable_payload_ref_returns_apology() -> None:
    store = _counter_store()
    catalog = Catalog.parse([{"type": "test/increment", "payload": {"$ref": "#/definitions/missing"}}])
    dispatcher = CommandDispatcher(catalog, store)

    outcome = dispatcher.apply({"type": "test/increment", "payload": {}}, "Incremented")

    assert outcome.dispatched is False
    assert outcome.message == INVALID_ACTION_MESSAGE
    assert store.get_state() == {"count": 0}
