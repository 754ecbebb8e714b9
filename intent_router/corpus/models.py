"""
Corpus data model: labelled example embeddings and their persisted document.

Persisted layout::

    {
      "version": "1.0",
      "model": "text-embedding-3-small",
      "created_at": "2025-01-01T00:00:00+00:00",
      "intents": [
        {"intent": "greeting", "text": "Hi", "embedding": [...], "generated_at": "..."}
      ]
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..types.types import CorpusLoadError, CorpusModelMismatchError, VectorArray
from ..utils.vector_math import as_vector


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        return utc_now()
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def dedup_key(intent: str, text: str) -> Tuple[str, str]:
    """Identity of an example: label plus whitespace-trimmed, case-folded text."""
    return intent, text.strip().casefold()


@dataclass(frozen=True)
class ExampleRecord:
    """One labelled example utterance with its embedding."""

    intent: str
    text: str
    embedding: VectorArray
    generated_at: datetime = field(default_factory=utc_now)

    @property
    def key(self) -> Tuple[str, str]:
        return dedup_key(self.intent, self.text)

    @property
    def dimension(self) -> int:
        return int(self.embedding.shape[0])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent,
            "text": self.text,
            "embedding": [float(x) for x in self.embedding],
            "generated_at": self.generated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExampleRecord":
        embedding = as_vector(data["embedding"])
        if embedding.size == 0:
            raise ValueError(f"Example '{data.get('text')}' has an empty embedding")
        return cls(
            intent=str(data["intent"]),
            text=str(data["text"]),
            embedding=embedding,
            generated_at=_parse_timestamp(data.get("generated_at")),
        )


@dataclass
class IntentCorpus:
    """The unit of persistence: every record shares one embedding space."""

    version: str
    model: str
    created_at: datetime = field(default_factory=utc_now)
    records: List[ExampleRecord] = field(default_factory=list)

    @property
    def dimension(self) -> Optional[int]:
        """Embedding length shared by all records; ``None`` for an empty corpus."""
        if not self.records:
            return None
        return self.records[0].dimension

    def validate(self, expected_model: Optional[str] = None) -> None:
        """
        Check that the corpus belongs to a single, expected embedding space.

        Raises:
            CorpusModelMismatchError: On a foreign model or mixed dimensions
        """
        if expected_model is not None and self.model != expected_model:
            raise CorpusModelMismatchError(
                f"Corpus was built with model '{self.model}', expected '{expected_model}'",
                context={"corpus_model": self.model, "expected_model": expected_model},
            )
        dimensions = {record.dimension for record in self.records}
        if len(dimensions) > 1:
            raise CorpusModelMismatchError(
                f"Corpus records have inconsistent embedding dimensions: {sorted(dimensions)}",
                context={"dimensions": sorted(dimensions)},
            )

    def intent_distribution(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for record in self.records:
            counts[record.intent] = counts.get(record.intent, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "model": self.model,
            "created_at": self.created_at.isoformat(),
            "intents": [record.to_dict() for record in self.records],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IntentCorpus":
        """
        Build a corpus from its persisted document.

        Raises:
            CorpusLoadError: If required fields are missing or malformed
        """
        try:
            return cls(
                version=str(data.get("version", "1.0")),
                model=str(data["model"]),
                created_at=_parse_timestamp(data.get("created_at")),
                records=[ExampleRecord.from_dict(item) for item in data.get("intents", [])],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CorpusLoadError(f"Malformed corpus document: {e}", cause=e)
