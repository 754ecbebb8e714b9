"""
intent-router: embedding-based intent classification with language-model fallback.
"""

__version__ = "0.1.0"

from .corpus import CorpusBootstrapper, InMemoryCorpusStore, JsonCorpusStore
from .intents import Intent, IntentDefinition
from .routing import IntentRouter, RouterDiagnostics, RoutingDecision
from .types import EmbeddingProvider, IntentRouterError, LabelClassifier

__all__ = [
    "__version__",
    "CorpusBootstrapper",
    "InMemoryCorpusStore",
    "JsonCorpusStore",
    "Intent",
    "IntentDefinition",
    "IntentRouter",
    "RouterDiagnostics",
    "RoutingDecision",
    "EmbeddingProvider",
    "IntentRouterError",
    "LabelClassifier",
]
