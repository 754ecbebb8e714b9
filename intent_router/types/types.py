"""
Type system for intent-router.

This module provides the shared type aliases and the exception hierarchy used
across the routing core, the corpus store and the provider adapters.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt
from typing_extensions import Literal, TypeAlias

# Type Aliases and Custom Types
IntentLabel = str  # Wire form of an intent; the closed set lives in intents.catalog
UtteranceText = str  # Type alias for user / example text
Score = float  # Cosine similarity or fixed fallback score
ConfigDict = Dict[str, Any]  # Type alias for configs

# Vector Types
VectorArray: TypeAlias = npt.NDArray[np.float32]
EmbeddingLike: TypeAlias = Union[Sequence[float], VectorArray]
ScoredIntent: TypeAlias = Tuple[IntentLabel, Score]
BatchEntry: TypeAlias = Tuple[IntentLabel, UtteranceText, EmbeddingLike]

# Constants and Literals
RoutingTier = Literal[
    "empty",
    "high",
    "medium",
    "low",
    "below_minimum",
    "llm_fallback",
    "error",
]


# Exception Hierarchy
class IntentRouterError(Exception):
    """Base exception class for intent-router."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(IntentRouterError):
    """
    Raised when there's an issue with configuration.

    Examples:
        - Config file not found or unparseable
        - Thresholds out of order
        - Unknown provider name
    """


class ValidationError(IntentRouterError):
    """Errors related to input/output validation."""


class ProviderError(IntentRouterError):
    """Raised when a remote embedding or language-model call fails."""


class EmbeddingError(ProviderError):
    """
    Raised when the embedding provider cannot produce a vector.

    Examples:
        - HTTP / API error
        - Timeout
        - Empty response payload
    """


class ClassificationError(ProviderError):
    """Raised when a label classification or text generation call fails."""


class CorpusError(IntentRouterError):
    """Errors related to the example corpus."""


class CorpusLoadError(CorpusError):
    """Raised when a persisted corpus cannot be read or parsed."""


class CorpusModelMismatchError(CorpusLoadError):
    """
    Raised when a persisted corpus was built for another embedding space.

    Examples:
        - Declared model differs from the configured embedding model
        - Records carry embeddings of different lengths
    """


class CorpusPersistenceError(CorpusError):
    """Raised when writing the corpus to durable storage fails."""


