"""Closed intent vocabulary and bootstrap seed definitions."""

from .catalog import (
    ALL_LABELS,
    DEFAULT_DEFINITIONS,
    NONE_LABEL,
    Intent,
    IntentDefinition,
    candidate_labels,
    get_all_definitions,
    is_content_processing_intent,
    is_learning_intent,
    load_definitions,
    parse_intent,
)

__all__ = [
    "ALL_LABELS",
    "DEFAULT_DEFINITIONS",
    "NONE_LABEL",
    "Intent",
    "IntentDefinition",
    "candidate_labels",
    "get_all_definitions",
    "is_content_processing_intent",
    "is_learning_intent",
    "load_definitions",
    "parse_intent",
]
