from __future__ import annotations

import logging
import time
from typing import Any
from uuid import uuid4

from statepilot.core.catalog import Catalog
from statepilot.core.logging.context import log_context
from statepilot.core.models.backend import GenerationBackend, Message
from statepilot.core.observability.trace import Trace
from statepilot.core.prompts import SYSTEM_PROMPT, PromptParams, generate_prompt

from .parsing import parse_classification, parse_pipeline_plan, parse_stage_response
from .schemas import STEP_INTENTS, TOP_LEVEL_INTENTS, CompletionResponse, QueryRequest, StepResult


class Runtime:
    """Classifies a query and resolves it into a structured response.

    The runtime never dispatches commands; returned actions are only
    shape-checked and must be validated against the catalog by the caller.
    """

    def __init__(self, backend: GenerationBackend, debug: bool = False) -> None:
        self.backend = backend
        self.debug = debug
        self.logger = logging.getLogger("statepilot.runtime")

    async def handle(self, request: QueryRequest, trace: Trace | None = None) -> CompletionResponse:
        return await self.query(
            request.query,
            actions=request.actions,
            state=request.state,
            conversations=request.conversations,
            trace=trace,
        )

    async def query(
        self,
        query: str,
        *,
        actions: Any = None,
        state: dict[str, Any] | None = None,
        conversations: str | None = None,
        trace: Trace | None = None,
    ) -> CompletionResponse:
        if not isinstance(query, str) or not query.strip():
            raise ValueError("Query is required")

        trace = trace or Trace(query=query, query_id=str(uuid4()))
        params = PromptParams(
            query=query,
            actions=Catalog.parse(actions),
            state=state,
            conversations=conversations,
        )

        with log_context(query_id=trace.query_id):
            trace.emit(
                "QueryStarted",
                {"has_actions": params.has_actions, "has_state": params.has_state},
            )
            raw = await self._complete(generate_prompt("intent", params), stage="intent")
            classification = parse_classification(raw)
            trace.emit("IntentClassified", {"intent": classification.intent})
            self.logger.info(
                "intent_classified",
                extra={"extra_fields": {"intent": classification.intent}},
            )

            response = await self._resolve(params, classification.intent, TOP_LEVEL_INTENTS, trace)
            if not response.reasoning:
                response.reasoning = list(classification.reasoning)
            trace.emit(
                "QueryCompleted",
                {"intent": response.intent, "has_action": response.action is not None},
            )
            return response

    async def _resolve(
        self,
        params: PromptParams,
        intent: str,
        allowed: frozenset[str],
        trace: Trace,
    ) -> CompletionResponse:
        resolved = self._effective_intent(params, intent, allowed)
        if resolved != intent:
            trace.emit("IntentDowngraded", {"from": intent, "to": resolved})
            self.logger.info(
                "intent_downgraded",
                extra={"extra_fields": {"from": intent, "to": resolved}},
            )

        if resolved == "pipeline":
            return await self._run_pipeline(params, trace)

        raw = await self._complete(generate_prompt(resolved, params), stage=resolved)
        answer = parse_stage_response(raw)
        action = answer["action"]
        if resolved != "action" and action is not None:
            # state and conversation answers never carry commands
            self.logger.warning(
                "action_discarded",
                extra={"extra_fields": {"intent": resolved, "action_type": action.get("type")}},
            )
            action = None
        return CompletionResponse(
            intent=resolved,
            message=answer["message"],
            reasoning=answer["reasoning"],
            action=action,
        )

    def _effective_intent(self, params: PromptParams, intent: Any, allowed: frozenset[str]) -> str:
        if intent not in allowed:
            return "conversation"
        if intent == "action" and not params.has_actions:
            return "conversation"
        if intent == "state" and not params.has_state:
            return "conversation"
        return intent

    async def _run_pipeline(self, params: PromptParams, trace: Trace) -> CompletionResponse:
        raw = await self._complete(generate_prompt("pipeline", params), stage="pipeline")
        summary, descriptors = parse_pipeline_plan(raw)
        trace.emit("PipelineDecomposed", {"step_count": len(descriptors)})

        steps: list[StepResult] = []
        # Strictly sequential: later steps may depend on earlier ones.
        for index, descriptor in enumerate(descriptors):
            with log_context(step_index=str(index)):
                step_params = PromptParams(
                    query=descriptor["query"],
                    actions=params.actions,
                    state=params.state,
                    conversations=params.conversations,
                )
                resolved = await self._resolve(step_params, descriptor["intent"], STEP_INTENTS, trace)
                steps.append(
                    StepResult(
                        intent=resolved.intent,
                        message=resolved.message,
                        reasoning=resolved.reasoning,
                        action=resolved.action,
                        query=descriptor["query"],
                    )
                )
                trace.emit(
                    "StepResolved",
                    {"index": index, "intent": resolved.intent, "has_action": resolved.action is not None},
                )

        return CompletionResponse(intent="pipeline", message=summary, reasoning=[], action=None, pipeline=steps)

    async def _complete(self, prompt: str, stage: str) -> str:
        messages = [
            Message(role="system", content=SYSTEM_PROMPT),
            Message(role="user", content=prompt),
        ]
        if self.debug:
            self.logger.debug("prompt", extra={"extra_fields": {"stage": stage, "prompt": prompt}})

        start = time.perf_counter()
        try:
            raw = await self.backend.complete(messages)
        except Exception:
            self.logger.info(
                "backend_call",
                extra={
                    "extra_fields": {
                        "stage": stage,
                        "ok": False,
                        "duration_ms": int((time.perf_counter() - start) * 1000),
                    }
                },
            )
            raise

        self.logger.info(
            "backend_call",
            extra={
                "extra_fields": {
                    "stage": stage,
                    "ok": True,
                    "duration_ms": int((time.perf_counter() - start) * 1000),
                    "prompt_len": len(prompt),
                    "response_len": len(raw or ""),
                }
            },
        )
        if self.debug:
            self.logger.debug("raw_response", extra={"extra_fields": {"stage": stage, "raw": raw}})
        return raw
