from .embedding import (
    EmbeddingProvider,
    EmbeddingServiceError,
    OpenAICompatibleEmbeddingProvider,
    embed_query,
    get_embedding_provider,
)

__all__ = [
    "EmbeddingProvider",
    "EmbeddingServiceError",
    "OpenAICompatibleEmbeddingProvider",
    "embed_query",
    "get_embedding_provider",
]
