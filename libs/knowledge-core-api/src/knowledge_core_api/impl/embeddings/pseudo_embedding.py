"""Deterministic pseudo-embeddings used as a degraded fallback and in tests."""

import hashlib
import math
import random

from langchain_core.embeddings import Embeddings


class PseudoEmbeddings(Embeddings):
    """Unit vectors seeded from the SHA-256 of the text. Carries no semantic similarity."""

    def __init__(self, dimension: int = 768):
        self._dimension = dimension

    def embed_query(self, text: str) -> list[float]:
        seed = int.from_bytes(hashlib.sha256(text.encode("utf-8")).digest()[:8], "big")
        rng = random.Random(seed)
        vector = [rng.gauss(0.0, 1.0) for _ in range(self._dimension)]
        norm = math.sqrt(sum(value * value for value in vector)) or 1.0
        return [value / norm for value in vector]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(text) for text in texts]
