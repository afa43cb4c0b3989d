"""Exceptions raised at the engine's external boundaries."""


class EmbeddingProviderError(RuntimeError):
    """The embedding provider failed to embed a text."""

    def __init__(self, message: str, profile_id: str = None):
        super().__init__(message)
        self.profile_id = profile_id


class CacheUnavailableError(RuntimeError):
    """The score cache backend could not be read or written."""
