"""Declarative table of summary fields.

Every field the summarizer can be asked for is described once here. The
prompt builder reads the instruction, caps and example value; the aggregator
reads the merge policy and placeholder. Table order is the order fields
appear in prompts and in the final report.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Verbosity(str, Enum):
    """How long the summary fields should be."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class MergePolicy(Enum):
    """How per-chunk values of one field are combined."""

    CONCAT = "concat"  # join text with single spaces
    FLATTEN = "flatten"  # flatten lists one level
    DEDUPE = "dedupe"  # flatten, case-fold dedupe, capitalize, sort
    MAX = "max"  # largest number
    FIRST = "first"  # first chunk's value
    SUM = "sum"  # numeric total


NOTHING_FOUND = "Nothing found for this summary list type."

LIST_ITEMS_SMALL = {Verbosity.HIGH: 5, Verbosity.MEDIUM: 3, Verbosity.LOW: 2}
LIST_ITEMS_LARGE = {Verbosity.HIGH: 10, Verbosity.MEDIUM: 5, Verbosity.LOW: 3}
CHAPTER_ITEMS = {Verbosity.HIGH: 10, Verbosity.MEDIUM: 6, Verbosity.LOW: 3}
SUMMARY_SHARE = {Verbosity.HIGH: "20-25%", Verbosity.MEDIUM: "10-15%", Verbosity.LOW: "5-10%"}


@dataclass(frozen=True)
class SummaryField:
    """One requestable summary field.

    Attributes:
        key: JSON key the model must emit
        label: Human-readable option name
        instruction: Prompt fragment; may use ``{count}``, ``{words}`` and ``{share}``
        example: Value shown for this key in the worked example object
        policy: Merge policy applied across chunks
        placeholder: Value used when no chunk produced anything
        item_caps: Maximum list length per verbosity level
        word_cap: Maximum words per list item
    """

    key: str
    label: str
    instruction: str
    example: Any
    policy: MergePolicy
    placeholder: Any
    item_caps: Optional[Mapping[Verbosity, int]] = None
    word_cap: Optional[int] = None

    def render_instruction(self, verbosity: Verbosity) -> str:
        """Fill in the verbosity-dependent caps."""
        return self.instruction.format(
            count=self.item_caps[verbosity] if self.item_caps else "",
            words=self.word_cap or "",
            share=SUMMARY_SHARE[verbosity],
        )


_EXAMPLE_ITEMS = ["item 1", "item 2", "item 3"]


def _list_field(
    key: str,
    label: str,
    description: str,
    placeholder: str,
    item_caps: Mapping[Verbosity, int] = LIST_ITEMS_SMALL,
    word_cap: int = 100,
    extra: str = "",
    policy: MergePolicy = MergePolicy.FLATTEN,
) -> SummaryField:
    instruction = (
        f'Key "{key}" - add an array of {description}. '
        "Limit each item to {words} words, and limit the list to {count} items."
    )
    if extra:
        instruction = f"{instruction} {extra}"
    return SummaryField(
        key=key,
        label=label,
        instruction=instruction,
        example=list(_EXAMPLE_ITEMS),
        policy=policy,
        placeholder=[placeholder] if placeholder else [],
        item_caps=dict(item_caps),
        word_cap=word_cap,
    )


FIELDS: Tuple[SummaryField, ...] = (
    SummaryField(
        key="summary",
        label="Summary",
        instruction='Key "summary" - create a summary that is roughly {share} of the length of the transcript.',
        example="A collection of buttons for Notion",
        policy=MergePolicy.CONCAT,
        placeholder="No summary available.",
    ),
    _list_field("main_points", "Main Points", "the main points", "No main points found.",
                item_caps=LIST_ITEMS_LARGE),
    _list_field(
        "action_items", "Action Items", "action items", "No action items found.",
        extra=(
            "The current date will be provided at the top of the transcript; use it to add "
            "ISO 8601 dates in parentheses to action items that mention relative days "
            '(e.g. "tomorrow").'
        ),
    ),
    _list_field("follow_up", "Follow-up Questions", "follow-up questions",
                "No follow-up questions found."),
    _list_field("stories", "Stories", "stories or examples found in the transcript",
                "No stories or examples found.", word_cap=200),
    _list_field("references", "References",
                "references to external works or data found in the transcript",
                "No references found."),
    _list_field("arguments", "Arguments", "potential counter-arguments to the transcript",
                "No arguments found."),
    _list_field("related_topics", "Related Topics", "topics related to the transcript",
                "", item_caps=LIST_ITEMS_LARGE, policy=MergePolicy.DEDUPE),
    SummaryField(
        key="chapters",
        label="Chapters",
        instruction=(
            'Key "chapters" - add an array of potential chapters for this recording. '
            "Limit the list to {count} items; each item is an object with a title and, "
            "where possible, a start_time and end_time."
        ),
        example=[
            {"title": "Introduction", "start_time": "00:00", "end_time": "03:45"},
            {"title": "Main topic", "start_time": "03:46", "end_time": "12:30"},
        ],
        policy=MergePolicy.FLATTEN,
        placeholder=[{"title": "No chapters found", "start_time": "00:00", "end_time": "00:00"}],
        item_caps=dict(CHAPTER_ITEMS),
    ),
    SummaryField(
        key="sentiment",
        label="Sentiment",
        instruction='Key "sentiment" - add a sentiment analysis.',
        example="positive",
        policy=MergePolicy.FIRST,
        placeholder="neutral",
    ),
    SummaryField(
        key="day_overview",
        label="Day Overview",
        instruction=(
            'Key "day_overview" - add a short description (50-100 words) of the overall mood '
            "and themes of the day based on the transcript."
        ),
        example="A short description of the overall mood and themes of the day.",
        policy=MergePolicy.CONCAT,
        placeholder="No day overview available.",
    ),
    _list_field("key_events", "Key Events", "key events of the day", "No key events found.",
                word_cap=50),
    _list_field("achievements", "Achievements", "achievements or completed tasks",
                "No achievements found.", word_cap=50),
    _list_field("challenges", "Challenges", "challenges encountered", "No challenges found.",
                word_cap=50),
    _list_field("insights", "Insights", "key insights or discoveries", "No insights found.",
                word_cap=50),
    _list_field("action_plan", "Action Plan", "concrete plans or actions to take",
                "No action plan found.", word_cap=50),
    SummaryField(
        key="personal_growth",
        label="Personal Growth",
        instruction=(
            'Key "personal_growth" - add a description (50-100 words) of moments of personal '
            "growth or the positive impact of the day."
        ),
        example="A description of moments of personal growth.",
        policy=MergePolicy.CONCAT,
        placeholder="No personal growth noted.",
    ),
    SummaryField(
        key="reflection",
        label="Reflection",
        instruction='Key "reflection" - add a summary (1-2 sentences) of the impact of the day.',
        example="The impact of the day in 1-2 sentences.",
        policy=MergePolicy.CONCAT,
        placeholder="No reflection available.",
    ),
    SummaryField(
        key="day_rating",
        label="Day Rating",
        instruction='Key "day_rating" - add an integer from 1 to 100 rating the day overall.',
        example=85,
        policy=MergePolicy.MAX,
        placeholder=50,
    ),
    SummaryField(
        key="ai_recommendations",
        label="AI Recommendations",
        instruction=(
            'Key "ai_recommendations" - add an array of exactly 5 concrete, practical '
            "recommendations based on the transcript. Each recommendation should be 50-70 "
            "words and contain advice that can be applied right away."
        ),
        example=[
            "Recommendation 1: Use technology X for Y, because it will raise your productivity.",
            "Recommendation 2: Consider method A to achieve B.",
            "Recommendation 3: Practice D regularly to improve E.",
        ],
        policy=MergePolicy.FLATTEN,
        placeholder=["No recommendations available."],
    ),
    SummaryField(
        key="resources_to_check",
        label="Resources to Check",
        instruction=(
            'Key "resources_to_check" - add an array of 3-5 specific resources (books, '
            "articles, courses, tools) relevant to the topics of the transcript. For each one "
            "give a short description (20-30 words) and, if possible, a link or author."
        ),
        example=[
            "Book 'Title' (Author): Why it is useful in this context.",
            "Article 'Name': What can be learned from it.",
        ],
        policy=MergePolicy.FLATTEN,
        placeholder=["No resources suggested."],
    ),
)

FIELDS_BY_KEY: Dict[str, SummaryField] = {f.key: f for f in FIELDS}
_KEYS_BY_LABEL: Dict[str, str] = {f.label.lower(): f.key for f in FIELDS}

TITLE_KEY = "title"
DEFAULT_TITLE = "Untitled recording"
TITLE_EXAMPLE = "Notion Buttons"


def resolve_field_key(name: str) -> str:
    """Map a field key or option label (case-insensitive) to its key.

    Raises:
        KeyError: If the name matches no field
    """
    normalized = name.strip()
    if normalized in FIELDS_BY_KEY:
        return normalized
    try:
        return _KEYS_BY_LABEL[normalized.lower()]
    except KeyError:
        raise KeyError(f"Unknown summary field: {name!r}") from None


def ordered_fields(keys: List[str]) -> List[SummaryField]:
    """Return the descriptors for ``keys`` in table order."""
    wanted = set(keys)
    return [f for f in FIELDS if f.key in wanted]
