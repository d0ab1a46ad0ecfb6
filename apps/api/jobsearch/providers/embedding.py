"""Query embeddings from an OpenAI-compatible HTTP endpoint.

Job chunk embeddings are written by the ingestion pipeline; this API only
embeds the search query, so a provider call is one short request per search.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from jobsearch.core import get_settings
from jobsearch.utils import normalize_embedding

logger = logging.getLogger(__name__)


class EmbeddingServiceError(Exception):
    """The embedding API was unreachable, answered with an error, or sent something unusable."""


class EmbeddingProvider(ABC):
    @property
    @abstractmethod
    def dimension(self) -> int:
        pass

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        pass


def _vectors_from_payload(payload: Any) -> list[list[float]]:
    """OpenAI shape: {"data": [{"index": i, "embedding": [...]}, ...]}, possibly out of order."""
    try:
        items = sorted(payload["data"], key=lambda item: item["index"])
        return [list(item["embedding"]) for item in items]
    except (KeyError, TypeError) as e:
        raise EmbeddingServiceError("Embedding API returned unexpected response format.") from e


class OpenAICompatibleEmbeddingProvider(EmbeddingProvider):
    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        model: str,
        dimension: int,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        root = base_url.rstrip("/")
        self.endpoint = f"{root}/embeddings" if root.endswith("/v1") else f"{root}/v1/embeddings"
        self.model = model
        self.timeout_s = timeout_s
        self._headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._dimension = dimension
        self._transport = transport

    @property
    def dimension(self) -> int:
        return self._dimension

    async def _post(self, texts: list[str]) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
            r = await client.post(
                self.endpoint, json={"model": self.model, "input": texts}, headers=self._headers
            )
            r.raise_for_status()
            try:
                return r.json()
            except ValueError as e:
                raise EmbeddingServiceError("Embedding API returned unexpected response format.") from e

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            payload = await self._post(texts)
        except httpx.HTTPStatusError as e:
            raise EmbeddingServiceError(
                f"Embedding API returned {e.response.status_code}. Please try again later."
            ) from e
        except httpx.RequestError as e:
            raise EmbeddingServiceError(
                "Embedding service unavailable (timeout or connection error). Please try again later."
            ) from e
        # Stored chunk vectors have a fixed width; query vectors must match it
        return [normalize_embedding(v, self._dimension) for v in _vectors_from_payload(payload)]


async def embed_query(
    provider: EmbeddingProvider,
    text: str,
    retries: int = 2,
    base_delay_s: float = 0.5,
) -> list[float]:
    """Embed one search query. EmbeddingServiceError is retried `retries` times, waiting base_delay_s * attempt."""
    attempt = 0
    while True:
        try:
            vectors = await provider.embed([text])
            if not vectors or not vectors[0]:
                raise EmbeddingServiceError("Embedding API returned no vector for the query.")
            return vectors[0]
        except EmbeddingServiceError as e:
            attempt += 1
            if attempt > retries:
                raise
            logger.warning("Query embedding failed (attempt %s of %s), retrying: %s", attempt, retries + 1, e)
            await asyncio.sleep(base_delay_s * attempt)


def get_embedding_provider() -> EmbeddingProvider:
    s = get_settings()
    if not s.embed_api_base_url:
        raise RuntimeError("Embedding model not configured. Set EMBED_API_BASE_URL (and EMBED_MODEL).")
    return OpenAICompatibleEmbeddingProvider(
        base_url=s.embed_api_base_url,
        api_key=s.embed_api_key,
        model=s.embed_model,
        dimension=s.embed_dimension,
        timeout_s=s.embed_timeout_s,
    )
