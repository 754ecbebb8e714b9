"""Example corpus: data model, persistent stores and bootstrapping."""

from .bootstrap import CorpusBootstrapper, build_generation_prompt, parse_generated_examples
from .models import ExampleRecord, IntentCorpus, dedup_key
from .store import CorpusStore, InMemoryCorpusStore, JsonCorpusStore, create_store

__all__ = [
    "CorpusBootstrapper",
    "build_generation_prompt",
    "parse_generated_examples",
    "ExampleRecord",
    "IntentCorpus",
    "dedup_key",
    "CorpusStore",
    "InMemoryCorpusStore",
    "JsonCorpusStore",
    "create_store",
]
