"""Type definitions for intent-router."""

from .protocols import EmbeddingProvider, LabelClassifier
from .types import (
    BatchEntry,
    ClassificationError,
    ConfigurationError,
    CorpusError,
    CorpusLoadError,
    CorpusModelMismatchError,
    CorpusPersistenceError,
    EmbeddingError,
    EmbeddingLike,
    IntentLabel,
    IntentRouterError,
    ProviderError,
    RoutingTier,
    Score,
    ScoredIntent,
    UtteranceText,
    ValidationError,
    VectorArray,
)

__all__ = [
    "IntentLabel",
    "UtteranceText",
    "Score",
    "ScoredIntent",
    "BatchEntry",
    "EmbeddingLike",
    "VectorArray",
    "RoutingTier",
    "EmbeddingProvider",
    "LabelClassifier",
    "IntentRouterError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "EmbeddingError",
    "ClassificationError",
    "CorpusError",
    "CorpusLoadError",
    "CorpusModelMismatchError",
    "CorpusPersistenceError",
]
