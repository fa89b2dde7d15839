"""Validated per-run options."""
from __future__ import annotations

import logging
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..analysis.fields import Verbosity, resolve_field_key

logger = logging.getLogger(__name__)

# provider -> (default budget, ceiling)
TOKEN_BUDGETS = {
    "openai": (2750, 5000),
    "anthropic": (5000, 50000),
}
MIN_TOKENS_PER_CHUNK = 500

DEFAULT_WHISPER_PROMPT = "Hello, welcome to my lecture."


class SummaryOptions(BaseModel):
    """What the summarizer is asked for and how."""

    fields: List[str] = Field(default_factory=list, description="Enabled summary field keys")
    verbosity: Verbosity = Field(Verbosity.MEDIUM, description="Length of summary fields")
    temperature: int = Field(2, ge=0, le=10, description="Sampling temperature on a 0-10 scale")
    summary_language: Optional[str] = Field(None, description="Language of the summary values")
    title_language: Optional[str] = Field(None, description="Language of the title")

    @field_validator("fields")
    @classmethod
    def validate_fields(cls, v: List[str]) -> List[str]:
        """Accept keys or labels; drop duplicates while keeping order."""
        keys: List[str] = []
        for name in v:
            try:
                key = resolve_field_key(name)
            except KeyError as e:
                raise ValueError(e.args[0]) from e
            if key not in keys:
                keys.append(key)
        return keys

    @field_validator("summary_language", "title_language")
    @classmethod
    def blank_language_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() or None if v else None

    @property
    def sampling_temperature(self) -> float:
        """Temperature as passed to the completion service (0.0-1.0)."""
        return self.temperature / 10

    @property
    def title_only(self) -> bool:
        return not self.fields


class PipelineOptions(BaseModel):
    """Per-run pipeline settings."""

    provider: Literal["openai", "anthropic"] = "openai"
    chunk_size_mb: int = Field(24, ge=10, le=50, description="Target segment size in MB")
    max_tokens_per_chunk: Optional[int] = Field(None, description="Token budget per summary chunk")
    period_search_radius: int = Field(100, ge=0, description="Tokens searched around a boundary")
    transcript_language: Optional[str] = None
    whisper_prompt: str = DEFAULT_WHISPER_PROMPT
    moderation: bool = True
    fail_on_no_duration: bool = False
    summary: SummaryOptions = Field(default_factory=SummaryOptions)

    @model_validator(mode="after")
    def apply_token_budget(self) -> "PipelineOptions":
        """Default the budget per provider and enforce its range."""
        default, ceiling = TOKEN_BUDGETS[self.provider]
        if self.max_tokens_per_chunk is None:
            self.max_tokens_per_chunk = default
        elif not MIN_TOKENS_PER_CHUNK <= self.max_tokens_per_chunk <= ceiling:
            raise ValueError(
                f"max_tokens_per_chunk must be between {MIN_TOKENS_PER_CHUNK} and {ceiling} "
                f"for provider '{self.provider}', got {self.max_tokens_per_chunk}"
            )
        return self
