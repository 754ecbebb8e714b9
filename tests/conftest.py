"""
Shared pytest fixtures for intent-router tests.
"""
import asyncio
import math
from pathlib import Path
from typing import Callable, Dict, Generator, List, Optional, Sequence, Tuple, Union

import pytest
from omegaconf import OmegaConf

from intent_router.corpus.models import ExampleRecord, IntentCorpus
from intent_router.corpus.store import InMemoryCorpusStore
from intent_router.utils.config import ConfigManager
from intent_router.utils.schema import RouterConfig
from intent_router.utils.vector_math import as_vector

EMBED_MODEL = "fake-embedding-model"


def unit(x: float, y: float = 0.0) -> List[float]:
    """3-d unit vector with the given first two components; the rest goes to z."""
    z = math.sqrt(max(0.0, 1.0 - x * x - y * y))
    return [x, y, z]


# Corpus examples live on the x and y axes so a query's first two
# components are exactly its cosine scores against them.
GREETING_VEC = [1.0, 0.0, 0.0]
HELP_VEC = [0.0, 1.0, 0.0]


class FakeEmbedder:
    """Deterministic embedder with call recording."""

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        default: Optional[List[float]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.model_name = EMBED_MODEL
        self.vectors = vectors or {}
        self.default = default if default is not None else [0.0, 0.0, 1.0]
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.vectors.get(text, self.default))


Response = Union[Optional[str], Exception, Callable[[str, Sequence[str]], Optional[str]]]


class FakeClassifier:
    """Label classifier returning a scripted answer, with call recording."""

    def __init__(self, response: Response = None, generated: Union[str, Exception] = "[]"):
        self.response = response
        self.generated = generated
        self.calls: List[Tuple[str, List[str]]] = []
        self.prompts: List[str] = []

    async def classify(self, text: str, labels: Sequence[str]) -> Optional[str]:
        self.calls.append((text, list(labels)))
        if isinstance(self.response, Exception):
            raise self.response
        if callable(self.response):
            return self.response(text, labels)
        return self.response

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.generated, Exception):
            raise self.generated
        return self.generated


def make_corpus(entries: Sequence[Tuple[str, str, List[float]]], model: str = EMBED_MODEL) -> IntentCorpus:
    return IntentCorpus(
        version="1.0",
        model=model,
        records=[
            ExampleRecord(intent=intent, text=text, embedding=as_vector(vector))
            for intent, text, vector in entries
        ],
    )


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def empty_store() -> InMemoryCorpusStore:
    return InMemoryCorpusStore(model=EMBED_MODEL)


@pytest.fixture
def seeded_store() -> InMemoryCorpusStore:
    """Store with one greeting and one help example."""
    corpus = make_corpus(
        [
            ("greeting", "Hello", GREETING_VEC),
            ("get_help", "Help", HELP_VEC),
        ]
    )
    return InMemoryCorpusStore(model=EMBED_MODEL, initial=corpus)


@pytest.fixture
def router_config() -> RouterConfig:
    return RouterConfig()


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory with a test corpus path."""
    config_dir = tmp_path / "config"
    (config_dir / "router").mkdir(parents=True)

    test_config = {
        "name": "intent-router-test",
        "version": "0.0.1",
        "corpus": {"path": str(tmp_path / "data" / "intent_embeddings.json")},
        "embedding": {"model": EMBED_MODEL},
    }
    OmegaConf.save(OmegaConf.create(test_config), config_dir / "config.yaml")
    OmegaConf.save(OmegaConf.create({"high_threshold": 0.8}), config_dir / "router" / "default.yaml")
    return config_dir


@pytest.fixture
def config_manager(
    temp_config_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[ConfigManager, None, None]:
    """Get a ConfigManager instance with test configuration."""
    monkeypatch.setenv("INTENT_ROUTER_CONFIG_DIR", str(temp_config_dir))
    ConfigManager.reset()
    yield ConfigManager.get_instance()
    # Reset singleton for other tests
    ConfigManager.reset()
