"""Bag-of-words embeddings for deterministic retrieval tests."""

import asyncio

from langchain_core.embeddings import Embeddings


class KeywordEmbeddings(Embeddings):
    """One dimension per vocabulary word plus a small constant so no vector is zero."""

    def __init__(self, vocabulary, fail_on=(), delays=None):
        self._vocabulary = list(vocabulary)
        self._fail_on = tuple(fail_on)
        self._delays = dict(delays or {})
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def embed_query(self, text: str) -> list[float]:
        if any(marker in text for marker in self._fail_on):
            raise RuntimeError("embedding backend down")
        words = text.lower().split()
        return [float(words.count(term)) for term in self._vocabulary] + [0.01]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(text) for text in texts]

    async def aembed_query(self, text: str) -> list[float]:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self._delays.get(text, 0))
            self.calls.append(text)
            return self.embed_query(text)
        finally:
            self.in_flight -= 1
