"""
Append-only, concurrency-safe storage for the example corpus.

Routing reads happen on every request while self-training writes arrive from
detached background tasks. The store keeps the corpus as an immutable
snapshot tuple that is swapped on every successful write, so readers never
observe a half-applied append, and serialises the
"check duplicate, append, persist" sequence behind one ``asyncio.Lock``.

Two implementations are provided:

- :class:`JsonCorpusStore` writes the whole document atomically
  (temp file + rename) and keeps timestamped backups
- :class:`InMemoryCorpusStore` keeps everything in process memory

Example:
    >>> store = JsonCorpusStore("data/intent_embeddings.json", model="text-embedding-3-small")
    >>> corpus = await store.load()
    >>> added = await store.append_example("greeting", "hello there", vector)
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from ..types.types import (
    BatchEntry,
    CorpusLoadError,
    CorpusModelMismatchError,
    CorpusPersistenceError,
    EmbeddingLike,
    ValidationError,
)
from ..utils.vector_math import as_vector
from .models import ExampleRecord, IntentCorpus, dedup_key, utc_now

logger = logging.getLogger(__name__)


class CorpusStore(ABC):
    """
    Base class for corpus stores.

    Subclasses only implement raw document I/O (:meth:`_read` and
    :meth:`_write`); dedup, validation, locking and snapshot handling live here.
    """

    def __init__(self, model: str, version: str = "1.0") -> None:
        self.model = model
        self.version = version
        self._lock = asyncio.Lock()
        self._loaded = False
        self._created_at: datetime = utc_now()
        self._records: Tuple[ExampleRecord, ...] = ()
        self._keys: Set[Tuple[str, str]] = set()

    @abstractmethod
    async def _read(self) -> Optional[IntentCorpus]:
        """Return the persisted corpus, or ``None`` if nothing is persisted."""

    @abstractmethod
    async def _write(self, corpus: IntentCorpus) -> None:
        """Durably persist ``corpus``; raise :class:`CorpusPersistenceError` on failure."""

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def load(self) -> Optional[IntentCorpus]:
        """
        Load the persisted corpus into memory.

        A missing, unreadable or foreign-model corpus is a cold start: the
        problem is logged and ``None`` is returned.

        Returns:
            The loaded corpus, or ``None`` on cold start
        """
        async with self._lock:
            return await self._load_locked()

    async def _load_locked(self) -> Optional[IntentCorpus]:
        corpus: Optional[IntentCorpus]
        try:
            corpus = await self._read()
            if corpus is not None:
                corpus.validate(expected_model=self.model)
        except CorpusModelMismatchError as e:
            logger.warning("Ignoring persisted corpus: %s", e.message)
            corpus = None
        except CorpusLoadError as e:
            logger.error("Failed to load corpus, starting cold: %s", e.message)
            corpus = None

        if corpus is None:
            self._set_state(utc_now(), ())
        else:
            self.version = corpus.version
            self._set_state(corpus.created_at, tuple(corpus.records))
            logger.info(
                "Loaded %d examples for %d intents",
                len(corpus.records),
                len(corpus.intent_distribution()),
            )
        self._loaded = True
        return corpus

    def _set_state(self, created_at: datetime, records: Tuple[ExampleRecord, ...]) -> None:
        self._created_at = created_at
        self._records = records
        self._keys = {record.key for record in records}

    async def append_example(self, intent: str, text: str, embedding: EmbeddingLike) -> bool:
        """
        Add one example unless an identical one is already stored.

        Returns:
            True if a record was added and persisted, False for a duplicate
        """
        return await self.append_batch([(intent, text, embedding)]) == 1

    async def append_batch(self, entries: Iterable[BatchEntry], reset: bool = False) -> int:
        """
        Add several examples with a single persist.

        Args:
            entries: ``(intent, text, embedding)`` tuples
            reset: Start from an empty corpus instead of the current one.
                The previous corpus stays in effect if persisting fails.

        Returns:
            Number of records added

        Raises:
            ValidationError: On empty label/text or an embedding whose length
                differs from the corpus dimension
            CorpusPersistenceError: If the corpus could not be written
        """
        async with self._lock:
            if not self._loaded:
                await self._load_locked()

            created_at = utc_now() if reset else self._created_at
            records: List[ExampleRecord] = [] if reset else list(self._records)
            keys: Set[Tuple[str, str]] = set() if reset else set(self._keys)
            dimension = records[0].dimension if records else None

            added: List[ExampleRecord] = []
            for intent, text, embedding in entries:
                record = self._make_record(intent, text, embedding)
                if dimension is None:
                    dimension = record.dimension
                elif record.dimension != dimension:
                    raise ValidationError(
                        f"Embedding length {record.dimension} does not match corpus dimension {dimension}",
                        context={"intent": intent, "text": text},
                    )
                if record.key in keys:
                    continue
                keys.add(record.key)
                added.append(record)

            if not added and not reset:
                return 0

            records.extend(added)
            corpus = IntentCorpus(
                version=self.version,
                model=self.model,
                created_at=created_at,
                records=records,
            )
            await self._write(corpus)
            self._set_state(created_at, tuple(records))

        logger.debug("Persisted %d new example(s), corpus size %d", len(added), len(records))
        return len(added)

    @staticmethod
    def _make_record(intent: str, text: str, embedding: EmbeddingLike) -> ExampleRecord:
        if not intent or not intent.strip():
            raise ValidationError("Example intent cannot be empty")
        if not text or not text.strip():
            raise ValidationError("Example text cannot be empty", context={"intent": intent})
        try:
            vector = as_vector(embedding)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid embedding: {e}", context={"intent": intent}, cause=e)
        if vector.size == 0:
            raise ValidationError("Embedding cannot be empty", context={"intent": intent})
        return ExampleRecord(intent=intent, text=text.strip(), embedding=vector)

    def contains(self, intent: str, text: str) -> bool:
        return dedup_key(intent, text) in self._keys

    def records(self) -> Tuple[ExampleRecord, ...]:
        """Point-in-time snapshot of all records."""
        return self._records

    def snapshot(self) -> IntentCorpus:
        return IntentCorpus(
            version=self.version,
            model=self.model,
            created_at=self._created_at,
            records=list(self._records),
        )

    def stats(self) -> Dict[str, Any]:
        """Get store statistics."""
        corpus = self.snapshot()
        distribution = corpus.intent_distribution()
        return {
            "loaded": self._loaded,
            "model": self.model,
            "version": self.version,
            "created_at": self._created_at.isoformat(),
            "total_examples": len(corpus.records),
            "unique_intents": len(distribution),
            "dimension": corpus.dimension,
            "intent_distribution": distribution,
        }


class InMemoryCorpusStore(CorpusStore):
    """Process-local store for tests and ephemeral deployments."""

    def __init__(
        self,
        model: str,
        version: str = "1.0",
        initial: Optional[IntentCorpus] = None,
    ) -> None:
        super().__init__(model=model, version=version)
        self.persisted: Optional[IntentCorpus] = initial
        self.write_count = 0

    async def _read(self) -> Optional[IntentCorpus]:
        if self.persisted is None:
            return None
        return IntentCorpus(
            version=self.persisted.version,
            model=self.persisted.model,
            created_at=self.persisted.created_at,
            records=list(self.persisted.records),
        )

    async def _write(self, corpus: IntentCorpus) -> None:
        self.persisted = corpus
        self.write_count += 1


class JsonCorpusStore(CorpusStore):
    """
    Single JSON document on local disk.

    Every write replaces the file atomically. When backups are enabled the
    previous document is copied to ``<stem>_backup_<timestamp><suffix>``
    beforehand, and only the newest ``max_backups`` copies are kept.
    """

    def __init__(
        self,
        path: Union[str, Path],
        model: str,
        version: str = "1.0",
        keep_backups: bool = True,
        max_backups: int = 10,
    ) -> None:
        super().__init__(model=model, version=version)
        self.path = Path(path)
        self.keep_backups = keep_backups
        self.max_backups = max_backups

    async def _read(self) -> Optional[IntentCorpus]:
        return await asyncio.to_thread(self._read_sync)

    def _read_sync(self) -> Optional[IntentCorpus]:
        if not self.path.exists():
            logger.info("No corpus at %s, starting cold", self.path)
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorpusLoadError(
                f"Cannot read corpus file {self.path}: {e}",
                context={"path": str(self.path)},
                cause=e,
            )
        if not isinstance(data, dict):
            raise CorpusLoadError(f"Corpus file {self.path} is not a JSON object")
        return IntentCorpus.from_dict(data)

    async def _write(self, corpus: IntentCorpus) -> None:
        await asyncio.to_thread(self._write_sync, corpus.to_dict())

    def _write_sync(self, document: Dict[str, Any]) -> None:
        temp_path: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())

            if self.keep_backups and self.path.exists():
                self._backup_sync()

            Path(temp_path).replace(self.path)
            temp_path = None
        except OSError as e:
            raise CorpusPersistenceError(
                f"Failed to write corpus to {self.path}: {e}",
                context={"path": str(self.path)},
                cause=e,
            )
        finally:
            if temp_path is not None:
                Path(temp_path).unlink(missing_ok=True)

    def _backup_pattern(self) -> str:
        return f"{self.path.stem}_backup_*{self.path.suffix}"

    def _backup_sync(self) -> None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup = self.path.with_name(f"{self.path.stem}_backup_{timestamp}{self.path.suffix}")
        shutil.copy2(self.path, backup)

        # Timestamped names sort chronologically
        backups = sorted(self.path.parent.glob(self._backup_pattern()))
        for stale in backups[: max(0, len(backups) - self.max_backups)]:
            stale.unlink(missing_ok=True)

    def list_backups(self) -> List[Path]:
        return sorted(self.path.parent.glob(self._backup_pattern()))


def create_store(corpus_config: Any, model: str) -> CorpusStore:
    """Build the file-backed store from a ``CorpusConfig``."""
    return JsonCorpusStore(
        path=corpus_config.path,
        model=model,
        version=corpus_config.version,
        keep_backups=corpus_config.keep_backups,
        max_backups=corpus_config.max_backups,
    )
