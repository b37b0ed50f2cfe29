from .backends import EntryBackend, InMemoryBackend, JsonlBackend
from .embedding import cosine_similarity, text_to_vector
from .schemas import STORAGE_VERSION, InteractionMetadata, SimilarityEntry
from .store import SimilarityStore, format_history

__all__ = [
    "STORAGE_VERSION",
    "EntryBackend",
    "InMemoryBackend",
    "InteractionMetadata",
    "JsonlBackend",
    "SimilarityEntry",
    "SimilarityStore",
    "cosine_similarity",
    "format_history",
    "text_to_vector",
]
