"""
OpenAI-backed embedding and label classification providers.

Both providers use ``AsyncOpenAI`` with the client's own retries disabled;
retries go through :func:`~intent_router.utils.async_retry.async_retry` so
backoff and logging look the same for every remote call, and each attempt is
bounded by ``asyncio.wait_for``. Failures surface as :class:`EmbeddingError`
or :class:`ClassificationError`; cancellation always propagates.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, List, Optional, Sequence, Tuple

import openai
from openai import AsyncOpenAI

from ..types.types import ClassificationError, ConfigurationError, EmbeddingError
from ..utils.async_retry import async_retry
from ..utils.schema import EmbeddingSettings, LLMSettings

logger = logging.getLogger(__name__)

# Errors that a retry cannot fix
_NON_RETRYABLE = (
    openai.AuthenticationError,
    openai.PermissionDeniedError,
    openai.BadRequestError,
    openai.NotFoundError,
)

_LABEL_PUNCTUATION = "\"'`.,:;!?()[]{}*"

CLASSIFIER_SYSTEM_PROMPT = "You are a concise label classifier."

CLASSIFIER_PROMPT = (
    "You are a classifier. Possible labels: {labels}, or 'none'.\n"
    "Read the user text and return exactly one label (no explanation), only the label string.\n"
    'User text: "{text}"\n'
    "Return label:"
)


def parse_label(content: Optional[str], labels: Sequence[str]) -> Optional[str]:
    """
    Map a free-form model reply onto one of ``labels``.

    Matching is case-insensitive: the whole reply first, then its first
    token. The canonical spelling from ``labels`` is returned.

    Args:
        content: Raw model output
        labels: Allowed labels

    Returns:
        The matched label, or None if the reply names none of them
    """
    if not content:
        return None

    canonical = {label.casefold(): label for label in labels}
    answer = content.strip().strip(_LABEL_PUNCTUATION).strip().casefold()
    if not answer:
        return None

    if answer in canonical:
        return canonical[answer]

    first_token = answer.split()[0].strip(_LABEL_PUNCTUATION)
    return canonical.get(first_token)


def _resolve_api_key(api_key: Optional[str]) -> Optional[str]:
    return api_key or os.environ.get("OPENAI_API_KEY")


class OpenAIEmbeddingProvider:
    """Embeds one text at a time with the OpenAI embeddings API."""

    MODEL_DIMENSIONS = {
        "text-embedding-ada-002": 1536,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
    }

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        client: Optional[Any] = None,
    ):
        self.model_name = model
        self.timeout = timeout
        self.client = client or AsyncOpenAI(
            api_key=_resolve_api_key(api_key),
            base_url=base_url,
            max_retries=0,
        )
        self._embed_with_retry = async_retry(
            max_attempts=max(0, max_retries) + 1,
            base_delay=0.5,
            max_delay=8.0,
            non_retryable_exceptions=_NON_RETRYABLE,
        )(self._embed_once)

    @property
    def dimensions(self) -> int:
        return self.MODEL_DIMENSIONS.get(self.model_name, 1536)

    async def _embed_once(self, text: str) -> List[float]:
        response = await asyncio.wait_for(
            self.client.embeddings.create(input=text, model=self.model_name),
            timeout=self.timeout,
        )
        if not response.data:
            raise EmbeddingError("Embedding response contained no data")
        return list(response.data[0].embedding)

    async def embed(self, text: str) -> List[float]:
        """
        Embed a single text.

        Raises:
            EmbeddingError: If every attempt failed or the reply was empty
        """
        try:
            return await self._embed_with_retry(text)
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(
                f"Embedding request failed: {e}",
                context={"model": self.model_name},
                cause=e,
            )


class OpenAILabelClassifier:
    """Chat-completion classifier that answers with a single label."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.0,
        max_tokens: int = 16,
        generation_max_tokens: int = 512,
        generation_temperature: float = 0.7,
        timeout: float = 30.0,
        max_retries: int = 3,
        client: Optional[Any] = None,
    ):
        self.model_name = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.generation_max_tokens = generation_max_tokens
        self.generation_temperature = generation_temperature
        self.timeout = timeout
        self.client = client or AsyncOpenAI(
            api_key=_resolve_api_key(api_key),
            base_url=base_url,
            max_retries=0,
        )
        self._complete_with_retry = async_retry(
            max_attempts=max(0, max_retries) + 1,
            base_delay=0.5,
            max_delay=8.0,
            non_retryable_exceptions=_NON_RETRYABLE,
        )(self._complete_once)

    async def _complete_once(
        self, messages: List[dict], temperature: float, max_tokens: int
    ) -> str:
        response = await asyncio.wait_for(
            self.client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            ),
            timeout=self.timeout,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def _complete(self, messages: List[dict], temperature: float, max_tokens: int) -> str:
        try:
            return await self._complete_with_retry(messages, temperature, max_tokens)
        except Exception as e:
            raise ClassificationError(
                f"Chat completion failed: {e}",
                context={"model": self.model_name},
                cause=e,
            )

    async def classify(self, text: str, labels: Sequence[str]) -> Optional[str]:
        """
        Ask the model to pick one of ``labels`` for ``text``.

        Returns:
            A label from ``labels``, or None when the reply matches none

        Raises:
            ClassificationError: If the request itself failed
        """
        # The prompt already offers 'none' as an escape
        offered = [label for label in labels if label != "none"]
        prompt = CLASSIFIER_PROMPT.format(labels=", ".join(offered), text=text)
        messages = [
            {"role": "system", "content": CLASSIFIER_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        content = await self._complete(messages, self.temperature, self.max_tokens)
        label = parse_label(content, labels)
        if label is None:
            logger.debug("Classifier reply %r matched no label", content)
        return label

    async def generate_text(self, prompt: str) -> str:
        messages = [{"role": "user", "content": prompt}]
        return await self._complete(
            messages, self.generation_temperature, self.generation_max_tokens
        )


def create_providers(
    embedding: EmbeddingSettings, llm: LLMSettings
) -> Tuple[OpenAIEmbeddingProvider, OpenAILabelClassifier]:
    """
    Build the configured providers.

    Raises:
        ConfigurationError: For an unsupported provider name or client setup failure
    """
    if embedding.provider != "openai":
        raise ConfigurationError(f"Unsupported embedding provider: {embedding.provider}")
    if llm.provider != "openai":
        raise ConfigurationError(f"Unsupported LLM provider: {llm.provider}")

    try:
        embedder = OpenAIEmbeddingProvider(
            model=embedding.model,
            api_key=embedding.api_key,
            base_url=embedding.base_url,
            timeout=embedding.timeout,
            max_retries=embedding.max_retries,
        )
        classifier = OpenAILabelClassifier(
            model=llm.model,
            api_key=llm.api_key,
            base_url=llm.base_url,
            temperature=llm.temperature,
            max_tokens=llm.max_tokens,
            generation_max_tokens=llm.generation_max_tokens,
            generation_temperature=llm.generation_temperature,
            timeout=llm.timeout,
            max_retries=llm.max_retries,
        )
    except openai.OpenAIError as e:
        raise ConfigurationError(f"Cannot create OpenAI client: {e}", cause=e)
    return embedder, classifier
