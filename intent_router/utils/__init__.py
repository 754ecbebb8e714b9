"""Utility functions and helpers for intent-router."""

from .async_retry import async_retry
from .background import BackgroundTaskRunner
from .config import ConfigManager, load_config
from .logging_config import get_logger, setup_logging
from .schema import (
    BootstrapConfig,
    CorpusConfig,
    EmbeddingSettings,
    IntentRouterConfig,
    LLMSettings,
    LoggingConfig,
    RouterConfig,
)
from .vector_math import as_vector, cosine_similarity, similarity_scores, top_k_matches

__all__ = [
    "async_retry",
    "BackgroundTaskRunner",
    "ConfigManager",
    "load_config",
    "get_logger",
    "setup_logging",
    "BootstrapConfig",
    "CorpusConfig",
    "EmbeddingSettings",
    "IntentRouterConfig",
    "LLMSettings",
    "LoggingConfig",
    "RouterConfig",
    "as_vector",
    "cosine_similarity",
    "similarity_scores",
    "top_k_matches",
]
