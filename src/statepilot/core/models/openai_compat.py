from __future__ import annotations

import logging
import time
from typing import Sequence

import httpx

from statepilot.core.config import LLMConfig
from statepilot.core.logging.redact import redact_string

from .backend import Message
from .errors import (
    BackendAuthError,
    BackendConnectionError,
    BackendModelAccessError,
    BackendRateLimitError,
    BackendTimeoutError,
    GenerationBackendError,
)

logger = logging.getLogger("statepilot.llm")


class OpenAICompatBackend:
    """Chat-completions client for OpenAI-compatible servers.

    One attempt per call; failures are raised as typed
    :class:`GenerationBackendError` subclasses and never retried.
    """

    def __init__(self, config: LLMConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def complete(self, messages: Sequence[Message]) -> str:
        payload: dict[str, object] = {
            "model": self.config.model,
            "messages": [message.model_dump() for message in messages],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "response_format": {"type": "json_object"},
        }

        start = time.perf_counter()
        ok = False
        try:
            if self._client is not None:
                response = await self._client.post(
                    self.config.url, json=payload, headers=self._headers(), timeout=self.config.timeout_s
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_s) as client:
                    response = await client.post(self.config.url, json=payload, headers=self._headers())
            content = self._content(response)
            ok = True
            return content
        except httpx.TimeoutException as exc:
            raise BackendTimeoutError(f"Provider timeout after {self.config.timeout_s}s") from exc
        except (httpx.ConnectError, httpx.NetworkError, httpx.RemoteProtocolError) as exc:
            raise BackendConnectionError(f"Provider connection error: {exc.__class__.__name__}") from exc
        finally:
            logger.info(
                "llm_call",
                extra={
                    "extra_fields": {
                        "model": self.config.model,
                        "duration_ms": int((time.perf_counter() - start) * 1000),
                        "ok": ok,
                        "message_count": len(messages),
                    }
                },
            )

    def _content(self, response: httpx.Response) -> str:
        if response.status_code >= 400:
            detail = redact_string(self._error_detail(response))
            if response.status_code == 401:
                raise BackendAuthError(f"Authentication failed: invalid or missing API key ({detail})")
            if response.status_code == 403:
                raise BackendModelAccessError(f"API key does not have access to model {self.config.model} ({detail})")
            if response.status_code == 429:
                raise BackendRateLimitError(f"Provider rate limit exceeded ({detail})")
            raise GenerationBackendError(f"Provider error {response.status_code}: {detail}")

        try:
            data = response.json()
        except ValueError as exc:
            raise GenerationBackendError("Provider returned a non-JSON envelope") from exc
        if not isinstance(data, dict):
            raise GenerationBackendError("Provider returned an unexpected envelope")
        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return str(message.get("content") or "")

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict):
                return str(error.get("message") or error)
            if error:
                return str(error)
        return str(data)[:200]
