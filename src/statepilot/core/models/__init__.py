from .backend import DisabledBackend, GenerationBackend, Message, build_backend
from .errors import (
    BackendAuthError,
    BackendConnectionError,
    BackendModelAccessError,
    BackendRateLimitError,
    BackendTimeoutError,
    BackendUnavailable,
    GenerationBackendError,
)
from .openai_compat import OpenAICompatBackend

__all__ = [
    "BackendAuthError",
    "BackendConnectionError",
    "BackendModelAccessError",
    "BackendRateLimitError",
    "BackendTimeoutError",
    "BackendUnavailable",
    "DisabledBackend",
    "GenerationBackend",
    "GenerationBackendError",
    "Message",
    "OpenAICompatBackend",
    "build_backend",
]
