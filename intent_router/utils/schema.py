"""
Configuration schemas for validation.

These dataclasses are used as OmegaConf structured configs: YAML files and
environment overrides are merged on top of them, and values are type-checked
against the annotations.
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None
    json_format: bool = False


@dataclass
class RouterConfig:
    """Confidence tiers and search bounds for the intent router."""

    high_threshold: float = 0.78
    medium_threshold: float = 0.55
    minimum_threshold: float = 0.30
    noise_floor: float = 0.1
    top_k: int = 20
    verification_candidates: int = 3
    # Scores reported when the decision came from the language model alone
    fallback_score: float = 0.75
    low_fallback_score: float = 0.3
    # Overall budget per provider call, retries included
    embed_timeout: float = 60.0
    classify_timeout: float = 60.0


@dataclass
class CorpusConfig:
    path: str = "data/intent_embeddings.json"
    version: str = "1.0"
    keep_backups: bool = True
    max_backups: int = 10


@dataclass
class EmbeddingSettings:
    provider: str = "openai"
    model: str = "text-embedding-3-small"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 30.0
    max_retries: int = 3


@dataclass
class LLMSettings:
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.0
    max_tokens: int = 16
    generation_max_tokens: int = 512
    generation_temperature: float = 0.7
    timeout: float = 30.0
    max_retries: int = 3


@dataclass
class BootstrapConfig:
    examples_per_intent: int = 10
    embed_delay_seconds: float = 0.1


@dataclass
class IntentRouterConfig:
    name: str = "intent-router"
    version: str = "0.1.0"
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    router: RouterConfig = field(default_factory=RouterConfig)
    corpus: CorpusConfig = field(default_factory=CorpusConfig)
    embedding: EmbeddingSettings = field(default_factory=EmbeddingSettings)
    llm: LLMSettings = field(default_factory=LLMSettings)
    bootstrap: BootstrapConfig = field(default_factory=BootstrapConfig)
