"""
Seed the example corpus from intent definitions.

For every definition the bootstrapper asks the language model for extra
paraphrases, embeds seeds and paraphrases one by one, and replaces the
persisted corpus with the result in a single write. The process is
best-effort: a failed generation or embedding skips that piece and the run
continues.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, List, Optional, Sequence

from ..intents.catalog import IntentDefinition
from ..types.protocols import EmbeddingProvider, LabelClassifier
from ..types.types import BatchEntry, CorpusPersistenceError, ValidationError
from ..utils.schema import BootstrapConfig
from .store import CorpusStore

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)

GENERATION_PROMPT = """Generate {count} different ways a user might express the intent '{intent}' in a chat conversation.

Intent: {intent}
Description: {description}
Existing examples: {examples}

Create variations that include:
- Different formality levels (casual, formal)
- Different phrase lengths (short, long)
- Common typos or informal language
- Questions vs statements
- Different emotional tones

Return ONLY a JSON array of strings, no other text:
["example 1", "example 2", ...]"""


def build_generation_prompt(definition: IntentDefinition, count: int) -> str:
    return GENERATION_PROMPT.format(
        count=count,
        intent=definition.intent,
        description=definition.description,
        examples=", ".join(definition.examples),
    )


def parse_generated_examples(response: str) -> List[str]:
    """
    Extract example strings from a model reply.

    Accepts a bare JSON array or one wrapped in a Markdown code fence.
    Non-string items and blank strings are dropped.

    Raises:
        ValueError: If no JSON array can be parsed from the reply
    """
    content = response.strip()
    fenced = _CODE_FENCE.search(content)
    if fenced:
        content = fenced.group(1).strip()

    data: Any = json.loads(content)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array, got {type(data).__name__}")

    return [item.strip() for item in data if isinstance(item, str) and item.strip()]


class CorpusBootstrapper:
    """Builds a fresh corpus from seed definitions plus generated paraphrases."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        classifier: LabelClassifier,
        store: CorpusStore,
        config: Optional[BootstrapConfig] = None,
    ) -> None:
        self.embedder = embedder
        self.classifier = classifier
        self.store = store
        self.config = config or BootstrapConfig()

    async def generate_examples(self, definition: IntentDefinition) -> List[str]:
        """Ask the language model for paraphrases; empty list on any failure."""
        prompt = build_generation_prompt(definition, self.config.examples_per_intent)
        try:
            response = await self.classifier.generate_text(prompt)
            generated = parse_generated_examples(response)
        except asyncio.CancelledError:
            raise
        except ValueError as e:
            logger.warning("Unparseable examples for '%s': %s", definition.intent, e)
            return []
        except Exception as e:
            logger.warning("Example generation failed for '%s': %s", definition.intent, e)
            return []

        seeds = {example.casefold() for example in definition.examples}
        unique: List[str] = []
        for example in generated:
            folded = example.casefold()
            if folded not in seeds:
                seeds.add(folded)
                unique.append(example)
        logger.info("Generated %d examples for '%s'", len(unique), definition.intent)
        return unique

    async def _embed_all(self, intent: str, texts: Sequence[str]) -> List[BatchEntry]:
        entries: List[BatchEntry] = []
        for index, text in enumerate(texts):
            if index > 0 and self.config.embed_delay_seconds > 0:
                await asyncio.sleep(self.config.embed_delay_seconds)
            try:
                embedding = await self.embedder.embed(text)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("Skipping example '%s' for '%s': %s", text, intent, e)
                continue
            entries.append((intent, text, embedding))
        return entries

    async def bootstrap(self, definitions: Sequence[IntentDefinition]) -> bool:
        """
        Rebuild the corpus from ``definitions``.

        Args:
            definitions: Intent definitions with seed examples

        Returns:
            True if at least one example was embedded and the corpus persisted
        """
        logger.info("Bootstrapping corpus for %d intents", len(definitions))
        entries: List[BatchEntry] = []

        for definition in definitions:
            generated = await self.generate_examples(definition)
            texts = list(definition.examples) + generated
            embedded = await self._embed_all(definition.intent, texts)
            logger.info(
                "Embedded %d/%d examples for '%s'", len(embedded), len(texts), definition.intent
            )
            entries.extend(embedded)

        if not entries:
            logger.error("Bootstrap produced no embedded examples; corpus left unchanged")
            return False

        try:
            added = await self.store.append_batch(entries, reset=True)
        except (CorpusPersistenceError, ValidationError) as e:
            logger.error("Bootstrap failed to persist corpus: %s", e.message)
            return False

        logger.info("Bootstrap complete: %d examples stored", added)
        return True
