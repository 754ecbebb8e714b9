"""Protocols for the remote collaborators consumed by the routing core.

The router never talks to a network API directly. It depends on two
capabilities that the surrounding application supplies:

- an embedding provider that turns text into a fixed-length vector
- a label classifier backed by a generative language model

Both are async; cancellation is the caller's ``asyncio`` task cancellation.

Example:
    >>> class StaticEmbedder:
    ...     model_name = "static"
    ...     async def embed(self, text: str) -> List[float]:
    ...         return [1.0, 0.0]
    >>> isinstance(StaticEmbedder(), EmbeddingProvider)
    True
"""

from typing import List, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for text embedding providers."""

    model_name: str

    async def embed(self, text: str) -> List[float]:
        """Embed a single text.

        Must raise on failure instead of returning a zero/default vector.
        """
        ...


@runtime_checkable
class LabelClassifier(Protocol):
    """Protocol for language-model label classification."""

    async def classify(self, text: str, labels: Sequence[str]) -> Optional[str]:
        """Pick one label from ``labels`` for ``text``; ``None`` when no answer."""
        ...

    async def generate_text(self, prompt: str) -> str:
        """Free-form generation, used only when bootstrapping the corpus."""
        ...
