"""Data models for the merged summary report and usage accounting."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class AggregatedSummary:
    """The single report merged from every chunk's partial summary.

    ``fields`` holds the enabled summary fields in table order; ``title`` and
    the token totals are always present.
    """

    title: str
    fields: Dict[str, Any] = field(default_factory=dict)
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def get(self, key: str, default: Any = None) -> Any:
        """Return a merged field value, or ``default`` when it was not enabled."""
        if key == "title":
            return self.title
        return self.fields.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key == "title" or key in self.fields

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "title": self.title,
            **self.fields,
            "tokens": {
                "prompt": self.prompt_tokens,
                "completion": self.completion_tokens,
                "total": self.total_tokens,
            },
        }


@dataclass(frozen=True)
class UsageRecord:
    """Usage counters tied to a pricing lookup key.

    Attributes:
        provider: Pricing provider key (e.g. 'openai', 'anthropic')
        modality: 'text' for token-billed calls, 'audio' for duration-billed calls
        model: Model identifier as used in the rate table
        tier: Optional pricing tier for duration-billed models
        prompt_tokens: Prompt/input token count
        completion_tokens: Completion/output token count
        duration_seconds: Audio duration for duration-billed modalities
    """

    provider: str
    modality: str
    model: str
    tier: Optional[str] = None
    prompt_tokens: int = 0
    completion_tokens: int = 0
    duration_seconds: Optional[float] = None
