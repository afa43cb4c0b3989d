"""Embedding provider boundary."""

from .provider import (
    EmbeddingProvider,
    HashingEmbeddingProvider,
    embed_text,
    normalize_text,
    resolve_bio_embedding,
)

__all__ = [
    "EmbeddingProvider",
    "HashingEmbeddingProvider",
    "embed_text",
    "normalize_text",
    "resolve_bio_embedding",
]
