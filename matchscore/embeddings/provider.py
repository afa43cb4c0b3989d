"""
Embedding provider boundary.

The scoring core always receives already-resolved vectors. This module
defines the interface a text-embedding backend implements, the helpers
the orchestrator uses to fill in missing bio embeddings, and an offline
hashing-based provider.

Rules at the boundary:
- Text is normalized (trimmed, lower-cased, whitespace collapsed)
- Empty text maps to a zero vector without calling the provider
- Provider errors and wrong-sized outputs surface as EmbeddingProviderError
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from sklearn.feature_extraction.text import HashingVectorizer

from ..errors import EmbeddingProviderError
from ..scoring.schema import Profile

logger = logging.getLogger(__name__)

DEFAULT_DIMENSIONS = 1536


def normalize_text(text: Optional[str]) -> str:
    """Trim, lower-case and collapse whitespace."""
    if not text:
        return ""
    return " ".join(text.strip().lower().split())


class EmbeddingProvider(ABC):
    """
    Converts text to a fixed-length vector.

    Attributes:
        dimensions: Length of every vector returned by embed()
    """

    dimensions: int = DEFAULT_DIMENSIONS

    @abstractmethod
    def embed(self, text: str) -> np.ndarray:
        """Embed non-empty normalized text."""


class HashingEmbeddingProvider(EmbeddingProvider):
    """
    Offline embedding provider based on feature hashing.

    Word unigrams and bigrams are hashed into a fixed number of
    non-negative, l2-normalized features. No fitting or network access is
    required, so bios embedded at different times share one space.

    Attributes:
        dimensions: Number of hashed features
        vectorizer: Underlying HashingVectorizer
    """

    def __init__(self, dimensions: int = DEFAULT_DIMENSIONS, ngram_range=(1, 2)):
        """
        Initialize the provider.

        Args:
            dimensions: Output vector length
            ngram_range: Word n-gram range to hash
        """
        if dimensions <= 0:
            raise ValueError(f"dimensions must be positive, got {dimensions}")
        self.dimensions = dimensions
        self.vectorizer = HashingVectorizer(
            n_features=dimensions,
            ngram_range=ngram_range,
            alternate_sign=False,
            norm="l2",
            stop_words="english",
        )
        logger.info(f"Initialized HashingEmbeddingProvider with {dimensions} dimensions")

    def embed(self, text: str) -> np.ndarray:
        matrix = self.vectorizer.transform([text])
        return matrix.toarray()[0].astype(np.float32)


def embed_text(provider: EmbeddingProvider, text: Optional[str]) -> np.ndarray:
    """
    Embed text through a provider, enforcing the boundary rules.

    Args:
        provider: Embedding provider
        text: Raw text (may be empty or None)

    Returns:
        Vector of length provider.dimensions

    Raises:
        EmbeddingProviderError: If the provider fails or returns a vector
            of the wrong size
    """
    clean = normalize_text(text)
    if not clean:
        return np.zeros(provider.dimensions, dtype=np.float32)

    try:
        vector = np.asarray(provider.embed(clean), dtype=np.float32).ravel()
    except EmbeddingProviderError:
        raise
    except Exception as e:
        raise EmbeddingProviderError(f"Embedding provider failed: {e}") from e

    if vector.size != provider.dimensions:
        raise EmbeddingProviderError(
            f"Embedding provider returned {vector.size} dimensions, "
            f"expected {provider.dimensions}"
        )
    return vector


def resolve_bio_embedding(profile: Profile, provider: Optional[EmbeddingProvider]) -> Profile:
    """
    Return the profile with a bio embedding, computing it if needed.

    Profiles that already carry an embedding, have no bio, or are scored
    without a provider are returned unchanged.

    Args:
        profile: Profile to resolve
        provider: Embedding provider (None disables resolution)

    Returns:
        Profile with bio_embedding set when it could be computed

    Raises:
        EmbeddingProviderError: If the provider fails for this profile
    """
    if provider is None or profile.bio_embedding is not None or profile.bio is None:
        return profile

    try:
        vector = embed_text(provider, profile.bio)
    except EmbeddingProviderError as e:
        e.profile_id = profile.id
        raise

    logger.debug(f"Computed bio embedding for profile {profile.id}")
    return profile.with_embedding(vector)
