from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Callable
from uuid import uuid4

from pydantic import BaseModel, Field

from statepilot.core.catalog import Catalog
from statepilot.core.effects import EffectTracker
from statepilot.core.logging.context import get_log_context, log_context
from statepilot.core.memory import SimilarityStore, format_history
from statepilot.core.observability.trace import Trace
from statepilot.core.runtime import CompletionResponse, Runtime

from .dispatcher import CommandDispatcher
from .state import StateStore

logger = logging.getLogger("statepilot.assistant")


class AssistantResult(BaseModel):
    query_id: str
    message: str
    response: CompletionResponse
    dispatched: list[dict[str, Any]] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)
    trace_events: list[dict[str, Any]] = Field(default_factory=list)


class Assistant:
    """One conversational session over an application's state.

    Wires the runtime, the command dispatcher, the effect tracker and the
    similarity store together. The tracker is installed as state store
    middleware so every applied command is inspected for async work.
    """

    def __init__(
        self,
        runtime: Runtime,
        catalog: Catalog,
        state_store: StateStore,
        similarity_store: SimilarityStore | None = None,
        tracker: EffectTracker | None = None,
        history_limit: int = 3,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self.runtime = runtime
        self.catalog = catalog
        self.state_store = state_store
        self.similarity_store = similarity_store
        self.tracker = tracker or EffectTracker()
        self.history_limit = history_limit
        self.dispatcher = CommandDispatcher(
            catalog=catalog,
            state_store=state_store,
            similarity_store=similarity_store,
            on_error=on_error,
        )
        self.state_store.add_middleware(self.tracker.observe)

    async def _history(self, query: str) -> str | None:
        if self.similarity_store is None or self.history_limit <= 0:
            return None
        try:
            entries = await self.similarity_store.aretrieve_similar(query, self.history_limit)
        except Exception:
            logger.exception("history_retrieval_failed")
            return None
        return format_history(entries) or None

    async def process_query(self, query: str, conversations: str | None = None) -> AssistantResult:
        context = get_log_context()
        trace = Trace(query=query, query_id=str(uuid4()), correlation_id=context.get("correlation_id"))
        with log_context(query_id=trace.query_id):
            if conversations is None:
                conversations = await self._history(query)
            trace.emit("HistoryRetrieved", {"has_history": bool(conversations)})

            response = await self.runtime.query(
                query,
                actions=self.catalog,
                state=self.state_store.get_state(),
                conversations=conversations,
                trace=trace,
            )

            dispatched: list[dict[str, Any]] = []
            rejected: list[str] = []
            if response.intent == "pipeline":
                for index, step in enumerate(response.pipeline or []):
                    if step.action is None:
                        continue
                    with log_context(step_index=str(index)):
                        outcome = self.dispatcher.apply(step.action, step.message)
                        step.action = outcome.action
                        step.message = outcome.message
                        if outcome.dispatched:
                            dispatched.append(outcome.action)
                        else:
                            rejected.extend(outcome.errors)
                        await self.tracker.wait_for_effects()
                    trace.emit("StepApplied", {"index": index, "dispatched": outcome.dispatched})
            elif response.action is not None:
                outcome = self.dispatcher.apply(response.action, response.message)
                response.action = outcome.action
                response.message = outcome.message
                if outcome.dispatched:
                    dispatched.append(outcome.action)
                else:
                    rejected.extend(outcome.errors)
                await self.tracker.wait_for_effects()
                trace.emit("ActionApplied", {"dispatched": outcome.dispatched})

            loop = asyncio.get_running_loop()
            await loop.run_in_executor(
                None,
                partial(
                    self.dispatcher.record,
                    query,
                    response.message,
                    action=response.action,
                    intent=response.intent,
                ),
            )
            trace.emit("InteractionRecorded", {"dispatched": len(dispatched), "rejected": len(rejected)})

            return AssistantResult(
                query_id=trace.query_id or "",
                message=response.message,
                response=response,
                dispatched=dispatched,
                rejected=rejected,
                trace_events=trace.events,
            )
