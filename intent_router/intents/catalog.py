"""
Intent vocabulary for the learning assistant bot.

The set of intents is closed: every label the router returns is a member of
:class:`Intent`. Labels travel as plain strings at the classifier and corpus
boundaries (a language model only understands text), and are compared
case-sensitively against this set.

Example usage:
    >>> Intent.GREETING.value
    'greeting'
    >>> parse_intent("greeting") is Intent.GREETING
    True
    >>> parse_intent("Greeting") is None
    True
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import yaml

from ..types.types import ValidationError

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    """Application intents plus the reserved ``none`` sentinel."""

    # Content processing
    PROCESS_URL = "process_url"
    GET_SUMMARY = "get_summary"
    CREATE_QUIZ = "create_quiz"
    SAVE_FOR_LATER = "save_for_later"

    # Learning
    STUDY_FLASHCARDS = "study_flashcards"
    REVIEW_DUE = "review_due"
    TAKE_QUIZ = "take_quiz"
    GET_PROGRESS = "get_progress"

    # Discovery
    BROWSE_ARTICLES = "browse_articles"
    SHARE_ARTICLE = "share_article"
    FIND_SIMILAR = "find_similar"
    GET_RECOMMENDATIONS = "get_recommendations"

    # Account / meta
    SET_PREFERENCES = "set_preferences"
    GET_HELP = "get_help"
    GET_STATS = "get_stats"

    GREETING = "greeting"
    NONE = "none"


NONE_LABEL = Intent.NONE.value

ALL_LABELS: List[str] = [intent.value for intent in Intent]

_CONTENT_PROCESSING = frozenset(
    {Intent.PROCESS_URL, Intent.GET_SUMMARY, Intent.CREATE_QUIZ, Intent.SAVE_FOR_LATER}
)
_LEARNING = frozenset(
    {Intent.STUDY_FLASHCARDS, Intent.REVIEW_DUE, Intent.TAKE_QUIZ, Intent.GET_PROGRESS}
)


def parse_intent(label: Optional[str]) -> Optional[Intent]:
    """Exact, case-sensitive lookup of a wire label; ``None`` if unknown."""
    if label is None:
        return None
    try:
        return Intent(label)
    except ValueError:
        return None


def candidate_labels(labels: Iterable[Union[str, Intent]], include_none: bool = True) -> List[str]:
    """
    Deduplicate labels preserving first-seen order.

    Args:
        labels: Labels or Intent members
        include_none: Append the ``none`` sentinel if it is not present

    Returns:
        Plain string labels ready to send to a classifier
    """
    seen: Dict[str, None] = {}
    for label in labels:
        value = label.value if isinstance(label, Intent) else label
        seen.setdefault(value, None)
    if include_none:
        seen.setdefault(NONE_LABEL, None)
    return list(seen)


def is_content_processing_intent(label: Union[str, Intent]) -> bool:
    """True for intents that act on a URL or processed article."""
    return parse_intent(label.value if isinstance(label, Intent) else label) in _CONTENT_PROCESSING


def is_learning_intent(label: Union[str, Intent]) -> bool:
    """True for study / spaced-repetition intents."""
    return parse_intent(label.value if isinstance(label, Intent) else label) in _LEARNING


@dataclass
class IntentDefinition:
    """Seed material for one intent, used only to bootstrap the corpus."""

    intent: str
    description: str
    examples: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.intent or not self.intent.strip():
            raise ValidationError("IntentDefinition.intent cannot be empty")
        self.examples = [e for e in (ex.strip() for ex in self.examples) if e]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IntentDefinition":
        try:
            return cls(
                intent=str(data["intent"]),
                description=str(data.get("description", "")),
                examples=[str(e) for e in data.get("examples", [])],
            )
        except KeyError as e:
            raise ValidationError(f"Intent definition missing field {e}", context=dict(data))
        except TypeError as e:
            raise ValidationError(f"Malformed intent definition: {data!r}", cause=e)


DEFAULT_DEFINITIONS: Dict[Intent, IntentDefinition] = {
    Intent.PROCESS_URL: IntentDefinition(
        intent=Intent.PROCESS_URL.value,
        description="User wants to process, analyze, or learn from a URL/article",
        examples=[
            "Can you summarize this article?",
            "https://example.com/article",
            "I found this interesting link",
            "Process this URL for me",
            "What's this article about?",
            "Make a quiz from this link",
            "Turn this into flashcards",
        ],
    ),
    Intent.GET_SUMMARY: IntentDefinition(
        intent=Intent.GET_SUMMARY.value,
        description="User wants a summary of previously processed content",
        examples=[
            "Show me the summary",
            "What were the key points?",
            "Give me the main ideas",
            "Summarize that article",
            "What did it say?",
            "Can I get a summary?",
            "Main takeaways please",
        ],
    ),
    Intent.CREATE_QUIZ: IntentDefinition(
        intent=Intent.CREATE_QUIZ.value,
        description="User wants to create or take a quiz based on content",
        examples=[
            "Make a quiz from this",
            "Test my knowledge",
            "Create questions",
            "I want to take a quiz",
            "Generate practice questions",
            "Quiz me on this topic",
            "Test what I learned",
        ],
    ),
    Intent.STUDY_FLASHCARDS: IntentDefinition(
        intent=Intent.STUDY_FLASHCARDS.value,
        description="User wants to study using flashcards or spaced repetition",
        examples=[
            "Start studying",
            "Review my flashcards",
            "Time to study",
            "Show me my cards",
            "Practice session",
            "Study mode",
            "Review what I learned",
        ],
    ),
    Intent.REVIEW_DUE: IntentDefinition(
        intent=Intent.REVIEW_DUE.value,
        description="User wants to see what's due for review or schedule study",
        examples=[
            "What's due for review?",
            "Do I have anything to study?",
            "Check my progress",
            "What should I review today?",
            "Any cards due?",
            "Study reminder",
            "What's next?",
        ],
    ),
    Intent.GET_PROGRESS: IntentDefinition(
        intent=Intent.GET_PROGRESS.value,
        description="User wants to see their learning progress and statistics",
        examples=[
            "Show my progress",
            "How am I doing?",
            "My learning stats",
            "Progress report",
            "How much have I learned?",
            "Study statistics",
            "My achievements",
        ],
    ),
    Intent.GET_HELP: IntentDefinition(
        intent=Intent.GET_HELP.value,
        description="User needs help or wants to know available commands",
        examples=[
            "Help",
            "/help",
            "What can you do?",
            "How does this work?",
            "Commands",
            "How to use this bot?",
            "I need assistance",
            "Show me options",
        ],
    ),
    Intent.GREETING: IntentDefinition(
        intent=Intent.GREETING.value,
        description="User is greeting the bot or starting conversation",
        examples=[
            "Hello",
            "Hi",
            "Hey there",
            "/start",
            "Good morning",
            "What's up?",
            "Hi bot",
        ],
    ),
    Intent.NONE: IntentDefinition(
        intent=Intent.NONE.value,
        description="No clear intent detected or unrecognized input",
        examples=["Random text", "Unclear message", "Gibberish input"],
    ),
}


def get_all_definitions() -> List[IntentDefinition]:
    """Built-in seed definitions, in catalog order."""
    return list(DEFAULT_DEFINITIONS.values())


def load_definitions(path: Union[str, Path]) -> List[IntentDefinition]:
    """
    Read intent definitions from a YAML or JSON file.

    The file holds either a list of ``{intent, description, examples}``
    mappings or a mapping with a top-level ``intents`` list.

    Args:
        path: ``.yaml``/``.yml`` or ``.json`` file

    Returns:
        Parsed definitions

    Raises:
        OSError: If the file cannot be read
        ValidationError: If the file is malformed
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (ValueError, yaml.YAMLError) as e:
            raise ValidationError(f"Cannot parse intent definitions in {path}: {e}", cause=e)

    if isinstance(data, Mapping):
        data = data.get("intents", [])
    if not isinstance(data, list):
        raise ValidationError(f"Expected a list of intent definitions in {path}")

    definitions = [IntentDefinition.from_dict(item) for item in data]
    logger.info("Loaded %d intent definitions from %s", len(definitions), path)
    return definitions
