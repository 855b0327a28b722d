"""Embeddings served by an Ollama instance."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import requests
from langchain_core.embeddings import Embeddings

from knowledge_core_api.impl.settings.embedder_settings import EmbedderSettings
from knowledge_core_lib.errors import DependencyUnavailableError

logger = logging.getLogger(__name__)


class OllamaEmbedder(Embeddings):
    """Call ``POST {base_url}/api/embed`` once per text."""

    def __init__(self, settings: EmbedderSettings, session: Optional[requests.Session] = None):
        self._settings = settings
        self._session = session or requests.Session()
        self._url = f"{settings.base_url.rstrip('/')}/api/embed"

    def embed_query(self, text: str) -> list[float]:
        try:
            response = self._session.post(
                self._url,
                json={"model": self._settings.model, "input": text},
                timeout=self._settings.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.error("Embedding request to %s failed: %s", self._url, exc)
            raise DependencyUnavailableError(f"Embedding provider unreachable: {exc}") from exc

        if response.status_code != 200:
            logger.error("Embedding request failed with status %s", response.status_code)
            raise DependencyUnavailableError(f"Embedding provider returned status {response.status_code}")

        return self._extract_vector(response.json())

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(text) for text in texts]

    async def aembed_query(self, text: str) -> list[float]:
        return await asyncio.to_thread(self.embed_query, text)

    async def aembed_documents(self, texts: list[str]) -> list[list[float]]:
        return await asyncio.to_thread(self.embed_documents, texts)

    def _extract_vector(self, data: dict[str, Any]) -> list[float]:
        embeddings = data.get("embeddings") or []
        vector = embeddings[0] if embeddings else data.get("embedding")
        if not vector:
            raise DependencyUnavailableError("Embedding provider returned no vector")
        if len(vector) != self._settings.dimension:
            raise DependencyUnavailableError(
                f"Embedding dimension mismatch: expected {self._settings.dimension}, got {len(vector)}"
            )
        return [float(value) for value in vector]
