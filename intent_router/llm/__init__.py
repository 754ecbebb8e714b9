"""Remote model providers."""

from .providers import (
    CLASSIFIER_PROMPT,
    OpenAIEmbeddingProvider,
    OpenAILabelClassifier,
    create_providers,
    parse_label,
)

__all__ = [
    "CLASSIFIER_PROMPT",
    "OpenAIEmbeddingProvider",
    "OpenAILabelClassifier",
    "create_providers",
    "parse_label",
]
