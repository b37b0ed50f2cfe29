from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Callable

logger = logging.getLogger("statepilot.state")

Reducer = Callable[[dict[str, Any], dict[str, Any]], dict[str, Any]]
Handler = Callable[[dict[str, Any], "StateStore"], Any]
Middleware = Callable[[dict[str, Any], Any], None]
Listener = Callable[[dict[str, Any]], None]


class StateStore:
    """Minimal application state container driven by typed commands.

    ``reducers`` compute the next state for a command type. ``handlers`` run
    after the reducer and may return an awaitable for asynchronous follow-up
    work; whatever they return is the dispatch result handed to middleware.
    """

    def __init__(
        self,
        initial_state: dict[str, Any] | None = None,
        reducers: dict[str, Reducer] | None = None,
        handlers: dict[str, Handler] | None = None,
    ) -> None:
        self._state: dict[str, Any] = copy.deepcopy(initial_state or {})
        self.reducers: dict[str, Reducer] = dict(reducers or {})
        self.handlers: dict[str, Handler] = dict(handlers or {})
        self._middleware: list[Middleware] = []
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()

    def get_state(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._state)

    def add_middleware(self, middleware: Middleware) -> None:
        self._middleware.append(middleware)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, command: dict[str, Any]) -> Any:
        action_type = command.get("type")
        with self._lock:
            reducer = self.reducers.get(action_type)
            if reducer is not None:
                next_state = reducer(copy.deepcopy(self._state), command)
                if next_state is not None:
                    self._state = next_state

        handler = self.handlers.get(action_type)
        result = handler(command, self) if handler is not None else None

        for middleware in list(self._middleware):
            middleware(command, result)

        snapshot = self.get_state()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("state_listener_failed", extra={"extra_fields": {"type": action_type}})
        logger.debug("command_applied", extra={"extra_fields": {"type": action_type}})
        return result
