from __future__ import annotations


class FetchError(RuntimeError):
    """Raised when every catalog endpoint failed or returned no contracts."""

    def __init__(self, message: str, *, failures: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.failures = dict(failures or {})


class EmbeddingUnavailable(RuntimeError):
    """Raised inside the embedding client when vectors cannot be obtained."""


class MalformedUpstreamItem(ValueError):
    """Raised when a single upstream market lacks the fields a Contract needs."""


__all__ = ["EmbeddingUnavailable", "FetchError", "MalformedUpstreamItem"]
