from __future__ import annotations


class GenerationBackendError(RuntimeError):
    """Base error for calls to the generation backend."""


class BackendUnavailable(GenerationBackendError):
    pass


class BackendAuthError(GenerationBackendError):
    pass


class BackendModelAccessError(GenerationBackendError):
    pass


class BackendRateLimitError(GenerationBackendError):
    pass


class BackendTimeoutError(GenerationBackendError):
    pass


class BackendConnectionError(GenerationBackendError):
    pass
