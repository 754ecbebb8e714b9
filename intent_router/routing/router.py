"""
Confidence-tiered intent routing over an example corpus.

Every call embeds the user text once, scores it against every stored example
and picks a branch by the best similarity:

- High: trust the nearest neighbour outright
- Medium: let the language model verify among the top few labels
- Low: let the language model choose from the full label set
- Below minimum: answer ``none``

Confident decisions are written back into the corpus as new examples
(self-training) by detached background tasks, so the corpus keeps growing
without adding latency to the caller. Classification uncertainty is reported
as a low score; provider failures fall one tier down and never reach the
caller.

Example:
    >>> router = IntentRouter(embedder, classifier, store)
    >>> intent, score = await router.route("hey there!")
    >>> intent
    'greeting'
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..corpus.models import ExampleRecord
from ..corpus.store import CorpusStore, create_store
from ..intents.catalog import ALL_LABELS, NONE_LABEL, candidate_labels
from ..llm.providers import create_providers
from ..types.protocols import EmbeddingProvider, LabelClassifier
from ..types.types import RoutingTier, VectorArray
from ..utils.background import BackgroundTaskRunner
from ..utils.schema import RouterConfig
from ..utils.vector_math import as_vector, similarity_scores, top_k_matches

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutingDecision:
    """Result of one routing call; unpacks as ``(intent, score)``."""

    intent: str
    score: float
    tier: RoutingTier

    def __iter__(self) -> Iterator[Union[str, float]]:
        yield self.intent
        yield self.score


@dataclass
class RouterDiagnostics:
    """Snapshot of the router and its corpus."""

    total_embeddings: int
    unique_intents: int
    intent_distribution: Dict[str, int] = field(default_factory=dict)
    is_initialized: bool = False
    high_threshold: float = 0.0
    medium_threshold: float = 0.0
    minimum_threshold: float = 0.0
    pending_writes: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class IntentRouter:
    """
    Maps free-form text to one intent label.

    Args:
        embedder: Embedding provider; must match the corpus embedding space
        classifier: Language-model label classifier
        store: Example corpus store
        config: Thresholds, search bounds and timeouts
        labels: Closed label set offered to the classifier; ``none`` is
            always added
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        classifier: LabelClassifier,
        store: CorpusStore,
        config: Optional[RouterConfig] = None,
        labels: Optional[Sequence[str]] = None,
    ):
        self.embedder = embedder
        self.classifier = classifier
        self.store = store
        self.config = config or RouterConfig()
        self.labels: List[str] = candidate_labels(labels if labels is not None else ALL_LABELS)
        self._label_set = frozenset(self.labels)

        self._initialized = False
        self._load_lock = asyncio.Lock()
        self._background = BackgroundTaskRunner(name="self-training")

        self._matrix_records: Optional[Tuple[ExampleRecord, ...]] = None
        self._matrix: Optional[np.ndarray] = None
        # Corpus snapshot whose dimension disagrees with the embedder
        self._inconsistent_records: Optional[Tuple[ExampleRecord, ...]] = None

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        embedder: Optional[EmbeddingProvider] = None,
        classifier: Optional[LabelClassifier] = None,
        store: Optional[CorpusStore] = None,
    ) -> "IntentRouter":
        """Build a router, its providers and a file store from an ``IntentRouterConfig``."""
        if embedder is None or classifier is None:
            default_embedder, default_classifier = create_providers(settings.embedding, settings.llm)
            embedder = embedder or default_embedder
            classifier = classifier or default_classifier
        if store is None:
            store = create_store(settings.corpus, model=settings.embedding.model)
        return cls(embedder, classifier, store, config=settings.router)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def _ensure_loaded(self) -> None:
        if self._initialized:
            return
        async with self._load_lock:
            if self._initialized:
                return
            if not self.store.is_loaded:
                await self.store.load()
            self._initialized = True
            logger.info("Intent router initialized with %d examples", len(self.store.records()))

    async def reload(self) -> None:
        """Re-read the persisted corpus, replacing the in-memory state."""
        async with self._load_lock:
            await self.store.load()
            self._matrix_records = None
            self._matrix = None
            self._inconsistent_records = None
            self._initialized = True

    async def route(self, text: Optional[str]) -> RoutingDecision:
        """
        Decide the intent of ``text``.

        Never raises for provider or classification failures; cancellation
        of the calling task propagates.

        Args:
            text: User utterance

        Returns:
            RoutingDecision with the intent, its score and the deciding tier
        """
        if text is None or not text.strip():
            return RoutingDecision(NONE_LABEL, 0.0, "empty")
        text = text.strip()

        try:
            await self._ensure_loaded()
            return await self._route_with_corpus(text)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Routing failed, retrying with language model only: %s", e, exc_info=True)

        try:
            return await self._classify_llm_only(text, None, tier="llm_fallback")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Language model fallback failed: %s", e)
            return RoutingDecision(NONE_LABEL, 0.0, "error")

    async def _route_with_corpus(self, text: str) -> RoutingDecision:
        records = self.store.records()
        if not records:
            logger.debug("Corpus empty, classifying with language model only")
            return await self._classify_llm_only(text, None, tier="llm_fallback")

        if records is self._inconsistent_records:
            return await self._classify_llm_only(text, None, tier="llm_fallback", learn=False)

        embedding = await self._embed(text)
        if embedding.shape[0] != records[0].dimension:
            logger.warning(
                "Embedding length %d does not match corpus dimension %d, treating corpus as cold",
                embedding.shape[0],
                records[0].dimension,
            )
            self._inconsistent_records = records
            return await self._classify_llm_only(text, embedding, tier="llm_fallback", learn=False)

        scores = similarity_scores(embedding, self._embedding_matrix(records))
        top = top_k_matches(scores, self.config.top_k, floor=self.config.noise_floor)

        if top.size == 0:
            best_score = float(scores.max()) if scores.size else 0.0
            logger.debug("No match above noise floor (best %.3f)", best_score)
            self._self_train(NONE_LABEL, text, embedding)
            return RoutingDecision(NONE_LABEL, best_score, "below_minimum")

        best_score = float(scores[top[0]])
        best_intent = records[top[0]].intent
        logger.debug("Best match '%s' at %.3f", best_intent, best_score)

        if best_score >= self.config.high_threshold:
            self._self_train(best_intent, text, embedding)
            return RoutingDecision(best_intent, best_score, "high")

        if best_score >= self.config.medium_threshold:
            return await self._verify(text, embedding, records, top, best_intent, best_score)

        if best_score >= self.config.minimum_threshold:
            return await self._classify_llm_only(text, embedding, tier="low")

        self._self_train(NONE_LABEL, text, embedding)
        return RoutingDecision(NONE_LABEL, best_score, "below_minimum")

    async def _verify(
        self,
        text: str,
        embedding: VectorArray,
        records: Sequence[ExampleRecord],
        top: np.ndarray,
        best_intent: str,
        best_score: float,
    ) -> RoutingDecision:
        nearest = [records[i].intent for i in top[: self.config.verification_candidates]]
        candidates = candidate_labels(nearest)

        try:
            label = await self._classify(text, candidates)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Verification failed, trusting nearest neighbour: %s", e)
            return RoutingDecision(best_intent, best_score, "medium")

        if label is not None and label != NONE_LABEL and label in candidates:
            self._self_train(label, text, embedding)
            return RoutingDecision(label, best_score, "medium")

        return RoutingDecision(best_intent, best_score, "medium")

    async def _classify_llm_only(
        self,
        text: str,
        embedding: Optional[VectorArray],
        tier: RoutingTier,
        learn: bool = True,
    ) -> RoutingDecision:
        label = await self._classify(text, self.labels)

        if label is not None and label != NONE_LABEL and label in self._label_set:
            if learn:
                self._self_train(label, text, embedding)
            return RoutingDecision(label, self.config.fallback_score, tier)

        return RoutingDecision(NONE_LABEL, self.config.low_fallback_score, tier)

    async def _embed(self, text: str) -> VectorArray:
        vector = await asyncio.wait_for(
            self.embedder.embed(text), timeout=self.config.embed_timeout
        )
        return as_vector(vector)

    async def _classify(self, text: str, labels: Sequence[str]) -> Optional[str]:
        return await asyncio.wait_for(
            self.classifier.classify(text, list(labels)), timeout=self.config.classify_timeout
        )

    def _embedding_matrix(self, records: Tuple[ExampleRecord, ...]) -> np.ndarray:
        # Stores swap in a new tuple on every write
        if records is not self._matrix_records:
            self._matrix = np.vstack([record.embedding for record in records])
            self._matrix_records = records
        return self._matrix  # type: ignore[return-value]

    def _self_train(self, intent: str, text: str, embedding: Optional[VectorArray]) -> None:
        self._background.submit(
            self._record_example(intent, text, embedding),
            task_name=f"self-train:{intent}",
        )

    async def _record_example(
        self, intent: str, text: str, embedding: Optional[VectorArray]
    ) -> None:
        if embedding is None:
            embedding = await self._embed(text)
        added = await self.store.append_example(intent, text, embedding)
        if added:
            logger.debug("Learned example for '%s'", intent)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for outstanding self-training writes."""
        await self._background.drain(timeout=timeout)

    def diagnostics(self) -> RouterDiagnostics:
        stats = self.store.stats()
        return RouterDiagnostics(
            total_embeddings=stats["total_examples"],
            unique_intents=stats["unique_intents"],
            intent_distribution=stats["intent_distribution"],
            is_initialized=self._initialized,
            high_threshold=self.config.high_threshold,
            medium_threshold=self.config.medium_threshold,
            minimum_threshold=self.config.minimum_threshold,
            pending_writes=self._background.pending_count,
        )
