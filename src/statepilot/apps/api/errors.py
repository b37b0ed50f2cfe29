from __future__ import annotations

from statepilot.core.models.errors import (
    BackendAuthError,
    BackendModelAccessError,
    BackendRateLimitError,
)

_AUTH_MARKERS = ("api key", "apikey", "authentication")
_MODEL_ACCESS_MARKERS = ("does not have access to model",)
_RATE_LIMIT_MARKERS = ("rate limit",)


def classify_backend_error(exc: BaseException) -> tuple[int, dict[str, str]]:
    """Map a failure raised while answering a query to ``(status, body)``."""
    message = str(exc) or exc.__class__.__name__
    if isinstance(exc, BackendAuthError):
        return 401, {"error": message, "status": "error"}
    if isinstance(exc, BackendModelAccessError):
        return 403, {"error": message, "status": "error"}
    if isinstance(exc, BackendRateLimitError):
        return 429, {"error": message, "status": "error"}

    lowered = message.casefold()
    if any(marker in lowered for marker in _MODEL_ACCESS_MARKERS):
        return 403, {"error": message, "status": "error"}
    if any(marker in lowered for marker in _AUTH_MARKERS):
        return 401, {"error": message, "status": "error"}
    if any(marker in lowered for marker in _RATE_LIMIT_MARKERS):
        return 429, {"error": message, "status": "error"}
    return 500, {"error": message, "status": "error"}
