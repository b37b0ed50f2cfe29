from __future__ import annotations

import asyncio
import logging
from functools import partial
from uuid import uuid4

import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from statepilot.core.catalog import Catalog
from statepilot.core.config import Settings
from statepilot.core.effects import EffectTracker
from statepilot.core.logging import configure_logging
from statepilot.core.logging.context import get_log_context, log_context
from statepilot.core.memory import SimilarityStore, format_history
from statepilot.core.observability.trace import Trace
from statepilot.core.runtime import QueryRequest, Runtime

from .deps import get_default_catalog, get_effect_tracker, get_runtime, get_settings, get_similarity_store
from .errors import classify_backend_error

logger = logging.getLogger("statepilot.api")


def _first_validation_message(exc: RequestValidationError) -> str:
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg") or "invalid request")
        return f"{location}: {message}" if location else message
    return "invalid request"


async def _history(store: SimilarityStore, query: str, limit: int) -> str | None:
    if limit <= 0:
        return None
    try:
        entries = await store.aretrieve_similar(query, limit)
    except Exception:
        logger.exception("history_retrieval_failed")
        return None
    return format_history(entries) or None


async def _record(store: SimilarityStore, request: QueryRequest, message: str, intent: str, action) -> None:
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(
            None,
            partial(store.store_interaction, request.query, message, request.state, intent=intent, action=action),
        )
    except Exception:
        logger.exception("interaction_store_failed")


async def query_endpoint(
    request: QueryRequest,
    runtime: Runtime = Depends(get_runtime),
    store: SimilarityStore = Depends(get_similarity_store),
    settings: Settings = Depends(get_settings),
    default_catalog: Catalog = Depends(get_default_catalog),
) -> JSONResponse:
    trace = Trace(
        query=request.query,
        query_id=str(uuid4()),
        correlation_id=get_log_context().get("correlation_id"),
    )
    conversations = request.conversations
    if conversations is None:
        conversations = await _history(store, request.query, settings.history_limit)
    actions = request.actions if request.actions is not None else default_catalog

    try:
        response = await runtime.query(
            request.query,
            actions=actions,
            state=request.state,
            conversations=conversations,
            trace=trace,
        )
    except Exception as exc:
        status, body = classify_backend_error(exc)
        logger.warning(
            "query_failed",
            extra={"extra_fields": {"status": status, "error_type": exc.__class__.__name__}},
        )
        return JSONResponse(status_code=status, content=body)

    await _record(store, request, response.message, response.intent, response.action)
    return JSONResponse(status_code=200, content=response.to_wire())


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.state_dir)

    app = FastAPI(title="StatePilot API")
    app.add_api_route(settings.endpoint, query_endpoint, methods=["POST"])

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
        with log_context(correlation_id=correlation_id):
            response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Not found"})
        if exc.status_code == 405:
            return JSONResponse(status_code=405, content={"error": "Method not allowed"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail), "status": "error"})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _first_validation_message(exc)})

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/interactions")
    def interactions(
        limit: int = Query(default=50),
        store: SimilarityStore = Depends(get_similarity_store),
    ) -> dict:
        normalized_limit = max(1, min(200, limit))
        entries = list(reversed(store.get_all_entries()))[:normalized_limit]
        return {
            "limit": normalized_limit,
            "entries": [
                {"id": entry.id, "timestamp": entry.timestamp, "metadata": entry.metadata.model_dump()}
                for entry in entries
            ],
        }

    @app.get("/effects")
    def effects(tracker: EffectTracker = Depends(get_effect_tracker)) -> dict:
        return tracker.side_effect_info()

    return app


app = create_app()


def run() -> None:
    uvicorn.run("statepilot.apps.api.main:app", host="127.0.0.1", port=8000)
