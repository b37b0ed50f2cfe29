from .heuristics import split_lifecycle
from .tracker import EffectDeclaration, EffectStatus, EffectTracker, TrackedEffect

__all__ = ["EffectDeclaration", "EffectStatus", "EffectTracker", "TrackedEffect", "split_lifecycle"]
