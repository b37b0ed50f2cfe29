from .assistant import Assistant, AssistantResult
from .dispatcher import INVALID_ACTION_MESSAGE, CommandDispatcher, DispatchOutcome
from .state import StateStore

__all__ = [
    "INVALID_ACTION_MESSAGE",
    "Assistant",
    "AssistantResult",
    "CommandDispatcher",
    "DispatchOutcome",
    "StateStore",
]
