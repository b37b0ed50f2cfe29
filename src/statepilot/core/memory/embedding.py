from __future__ import annotations

import re
import zlib
from typing import Sequence

import numpy as np

_WORD_RE = re.compile(r"[a-z0-9]+")


def _features(text: str) -> list[str]:
    lowered = text.casefold()
    words = _WORD_RE.findall(lowered)
    features = [f"w:{word}" for word in words]
    compact = " ".join(words)
    features.extend(f"c:{compact[index : index + 3]}" for index in range(max(0, len(compact) - 2)))
    return features


def text_to_vector(text: str, dimensions: int = 128) -> np.ndarray:
    """Hash words and character trigrams into a fixed-length vector in [0, 1]."""
    vector = np.zeros(max(1, dimensions), dtype=np.float32)
    for feature in _features(text or ""):
        vector[zlib.crc32(feature.encode("utf-8")) % vector.shape[0]] += 1.0
    peak = float(vector.max()) if vector.size else 0.0
    if peak > 0:
        vector /= peak
    return vector


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    left = np.asarray(a, dtype=np.float64)
    right = np.asarray(b, dtype=np.float64)
    if left.shape != right.shape or left.size == 0:
        return 0.0
    norms = float(np.linalg.norm(left) * np.linalg.norm(right))
    if norms == 0.0:
        return 0.0
    return float(np.dot(left, right) / norms)
