from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import BaseModel, Field

from statepilot.core.catalog import Catalog
from statepilot.core.memory import SimilarityStore

from .state import StateStore

INVALID_ACTION_MESSAGE = "I couldn't create a valid action for that request. Could you rephrase it?"

logger = logging.getLogger("statepilot.dispatch")


class DispatchOutcome(BaseModel):
    message: str
    action: dict[str, Any] | None = None
    dispatched: bool = False
    errors: list[str] = Field(default_factory=list)


class CommandDispatcher:
    """Gatekeeper between generated commands and application state.

    Commands are checked against the catalog and normalized before they
    reach the state store; rejected commands never touch state.
    """

    def __init__(
        self,
        catalog: Catalog,
        state_store: StateStore,
        similarity_store: SimilarityStore | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self.catalog = catalog
        self.state_store = state_store
        self.similarity_store = similarity_store
        self.on_error = on_error

    def apply(self, command: Any, message: str = "") -> DispatchOutcome:
        result = self.catalog.validate_command(command)
        if not result.valid:
            logger.warning("command_rejected", extra={"extra_fields": {"errors": result.messages()}})
            return DispatchOutcome(message=INVALID_ACTION_MESSAGE, action=None, errors=result.messages())

        normalized = result.value
        self.state_store.dispatch(normalized)
        logger.info("command_dispatched", extra={"extra_fields": {"type": normalized["type"]}})
        return DispatchOutcome(message=message, action=normalized, dispatched=True)

    def dispatch(self, query: str, message: str, command: Any) -> DispatchOutcome:
        """Validate and apply ``command``, then record the turn."""
        outcome = self.apply(command, message)
        if outcome.dispatched:
            self.record(query, outcome.message, action=outcome.action, intent="action")
        return outcome

    def record(
        self,
        query: str,
        message: str,
        action: dict[str, Any] | None = None,
        intent: str | None = None,
    ) -> bool:
        if self.similarity_store is None:
            return False
        try:
            self.similarity_store.store_interaction(
                query,
                message,
                self.state_store.get_state(),
                intent=intent,
                action=action,
            )
        except Exception as exc:
            logger.exception("interaction_store_failed")
            if self.on_error is not None:
                self.on_error(exc)
            return False
        return True
