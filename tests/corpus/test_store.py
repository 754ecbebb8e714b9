"""Tests for the example corpus stores."""

import asyncio
import json
from pathlib import Path

import pytest

from conftest import EMBED_MODEL, make_corpus
from intent_router.corpus.models import IntentCorpus
from intent_router.corpus.store import InMemoryCorpusStore, JsonCorpusStore
from intent_router.types.types import CorpusLoadError, CorpusPersistenceError, ValidationError


@pytest.fixture
def corpus_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "intent_embeddings.json"


@pytest.fixture
def json_store(corpus_path: Path) -> JsonCorpusStore:
    return JsonCorpusStore(corpus_path, model=EMBED_MODEL, max_backups=3)


class TestInMemoryCorpusStore:
    """Store semantics shared by every implementation."""

    @pytest.mark.asyncio
    async def test_cold_start_returns_none(self, empty_store):
        assert await empty_store.load() is None
        assert empty_store.is_loaded
        assert empty_store.records() == ()

    @pytest.mark.asyncio
    async def test_load_existing_corpus(self, seeded_store):
        corpus = await seeded_store.load()
        assert isinstance(corpus, IntentCorpus)
        assert [r.intent for r in seeded_store.records()] == ["greeting", "get_help"]

    @pytest.mark.asyncio
    async def test_append_is_idempotent(self, empty_store):
        assert await empty_store.append_example("greeting", "Hello there", [1.0, 0.0]) is True
        assert await empty_store.append_example("greeting", "  hello THERE ", [1.0, 0.0]) is False
        assert len(empty_store.records()) == 1
        assert empty_store.write_count == 1

    @pytest.mark.asyncio
    async def test_same_text_different_intent_is_distinct(self, empty_store):
        await empty_store.append_example("greeting", "hi", [1.0, 0.0])
        await empty_store.append_example("none", "hi", [1.0, 0.0])
        assert len(empty_store.records()) == 2

    @pytest.mark.asyncio
    async def test_append_persists_before_returning(self, empty_store):
        await empty_store.append_example("greeting", "Hey", [1.0, 0.0])
        assert empty_store.persisted is not None
        assert [r.text for r in empty_store.persisted.records] == ["Hey"]
        assert empty_store.persisted.model == EMBED_MODEL

    @pytest.mark.asyncio
    async def test_dimension_mismatch_rejected(self, seeded_store):
        await seeded_store.load()
        with pytest.raises(ValidationError):
            await seeded_store.append_example("greeting", "Yo", [1.0, 0.0])
        assert len(seeded_store.records()) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("intent, text", [("", "hi"), ("greeting", "   ")])
    async def test_blank_fields_rejected(self, empty_store, intent, text):
        with pytest.raises(ValidationError):
            await empty_store.append_example(intent, text, [1.0])

    @pytest.mark.asyncio
    async def test_batch_persists_once(self, empty_store):
        added = await empty_store.append_batch(
            [
                ("greeting", "hi", [1.0, 0.0]),
                ("greeting", "HI", [1.0, 0.0]),
                ("get_help", "help", [0.0, 1.0]),
            ]
        )
        assert added == 2
        assert empty_store.write_count == 1

    @pytest.mark.asyncio
    async def test_batch_of_duplicates_skips_write(self, seeded_store):
        added = await seeded_store.append_batch([("greeting", "hello", [1.0, 0.0, 0.0])])
        assert added == 0
        assert seeded_store.write_count == 0

    @pytest.mark.asyncio
    async def test_reset_batch_replaces_corpus(self, seeded_store):
        added = await seeded_store.append_batch([("none", "asdf", [0.0, 0.0, 1.0])], reset=True)
        assert added == 1
        assert [r.intent for r in seeded_store.records()] == ["none"]

    @pytest.mark.asyncio
    async def test_snapshot_is_stable_across_appends(self, empty_store):
        await empty_store.append_example("greeting", "hi", [1.0, 0.0])
        snapshot = empty_store.records()
        await empty_store.append_example("greeting", "hello", [1.0, 0.0])
        assert len(snapshot) == 1
        assert len(empty_store.records()) == 2

    @pytest.mark.asyncio
    async def test_concurrent_appends_lose_nothing(self, empty_store):
        await asyncio.gather(
            *(empty_store.append_example("greeting", f"hi {i}", [1.0, 0.0]) for i in range(20)),
            *(empty_store.append_example("greeting", "same", [1.0, 0.0]) for _ in range(5)),
        )
        assert len(empty_store.records()) == 21
        assert len(empty_store.persisted.records) == 21

    @pytest.mark.asyncio
    async def test_model_mismatch_is_cold_start(self):
        corpus = make_corpus([("greeting", "Hello", [1.0, 0.0])], model="other-model")
        store = InMemoryCorpusStore(model=EMBED_MODEL, initial=corpus)
        assert await store.load() is None
        assert store.records() == ()

    @pytest.mark.asyncio
    async def test_mixed_dimensions_is_cold_start(self):
        corpus = make_corpus([("greeting", "Hello", [1.0, 0.0]), ("get_help", "Help", [0.0, 1.0, 0.0])])
        store = InMemoryCorpusStore(model=EMBED_MODEL, initial=corpus)
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_stats(self, seeded_store):
        await seeded_store.load()
        stats = seeded_store.stats()
        assert stats["total_examples"] == 2
        assert stats["unique_intents"] == 2
        assert stats["dimension"] == 3
        assert stats["intent_distribution"] == {"greeting": 1, "get_help": 1}
        assert stats["loaded"] is True


class TestJsonCorpusStore:
    """File-backed persistence."""

    @pytest.mark.asyncio
    async def test_missing_file_is_cold_start(self, json_store):
        assert await json_store.load() is None

    @pytest.mark.asyncio
    async def test_document_layout(self, json_store, corpus_path):
        await json_store.append_example("greeting", "Hello", [1.0, 0.0])

        document = json.loads(corpus_path.read_text(encoding="utf-8"))
        assert document["version"] == "1.0"
        assert document["model"] == EMBED_MODEL
        assert "created_at" in document
        assert document["intents"][0]["intent"] == "greeting"
        assert document["intents"][0]["text"] == "Hello"
        assert document["intents"][0]["embedding"] == [1.0, 0.0]
        assert "generated_at" in document["intents"][0]

    @pytest.mark.asyncio
    async def test_reload_from_disk(self, json_store, corpus_path):
        await json_store.append_batch([("greeting", "Hello", [1.0, 0.0]), ("get_help", "Help", [0.0, 1.0])])

        fresh = JsonCorpusStore(corpus_path, model=EMBED_MODEL)
        corpus = await fresh.load()

        assert corpus is not None
        assert [(r.intent, r.text) for r in fresh.records()] == [("greeting", "Hello"), ("get_help", "Help")]
        assert fresh.contains("greeting", "hello")

    @pytest.mark.asyncio
    async def test_corrupt_file_is_cold_start(self, json_store, corpus_path):
        corpus_path.parent.mkdir(parents=True)
        corpus_path.write_text("{not json", encoding="utf-8")

        assert await json_store.load() is None
        assert await json_store.append_example("greeting", "Hello", [1.0, 0.0]) is True

    @pytest.mark.asyncio
    async def test_empty_embeddings_are_cold_start(self, json_store, corpus_path):
        corpus_path.parent.mkdir(parents=True)
        document = {
            "version": "1.0",
            "model": EMBED_MODEL,
            "intents": [
                {"intent": "greeting", "text": "Hello", "embedding": []},
                {"intent": "get_help", "text": "Help", "embedding": []},
            ],
        }
        corpus_path.write_text(json.dumps(document), encoding="utf-8")

        assert await json_store.load() is None
        assert json_store.records() == ()
        assert await json_store.append_example("greeting", "Hello", [1.0, 0.0]) is True

    @pytest.mark.asyncio
    async def test_foreign_model_is_cold_start(self, json_store, corpus_path):
        other = JsonCorpusStore(corpus_path, model="other-model")
        await other.append_example("greeting", "Hello", [1.0, 0.0])

        assert await json_store.load() is None

    @pytest.mark.asyncio
    async def test_backups_are_pruned(self, json_store):
        for i in range(6):
            await json_store.append_example("greeting", f"hello {i}", [1.0, 0.0])

        # First write has nothing to back up
        assert len(json_store.list_backups()) == 3

    @pytest.mark.asyncio
    async def test_backups_disabled(self, corpus_path):
        store = JsonCorpusStore(corpus_path, model=EMBED_MODEL, keep_backups=False)
        await store.append_example("greeting", "a", [1.0])
        await store.append_example("greeting", "b", [1.0])
        assert store.list_backups() == []

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, json_store, corpus_path):
        await json_store.append_example("greeting", "Hello", [1.0, 0.0])
        leftovers = [p for p in corpus_path.parent.iterdir() if p.suffix == ".tmp"]
        assert leftovers == []

    @pytest.mark.asyncio
    async def test_persistence_failure_raises(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("", encoding="utf-8")
        store = JsonCorpusStore(blocker / "corpus.json", model=EMBED_MODEL)

        with pytest.raises(CorpusPersistenceError):
            await store.append_example("greeting", "Hello", [1.0, 0.0])
        assert store.records() == ()


def test_from_dict_rejects_missing_model():
    with pytest.raises(CorpusLoadError):
        IntentCorpus.from_dict({"version": "1.0", "intents": []})


def test_from_dict_rejects_bad_embedding():
    with pytest.raises(CorpusLoadError):
        IntentCorpus.from_dict(
            {"model": EMBED_MODEL, "intents": [{"intent": "greeting", "text": "hi", "embedding": "oops"}]}
        )


def test_from_dict_rejects_empty_embedding():
    with pytest.raises(CorpusLoadError):
        IntentCorpus.from_dict(
            {"model": EMBED_MODEL, "intents": [{"intent": "greeting", "text": "hi", "embedding": []}]}
        )
