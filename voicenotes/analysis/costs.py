"""Convert usage counters into USD cost.

Rates are keyed ``provider -> modality -> model``:

- ``text`` entries hold ``prompt`` and ``completion`` rates in USD per 1000 tokens.
- ``audio`` entries map a pricing tier to a USD per-minute rate.

A missing key never aborts a run: the lookup logs a warning and costs 0.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..models.summary import UsageRecord
from ..utils.errors import VoiceNotesError

logger = logging.getLogger(__name__)

DEFAULT_TIER = "default"

DEFAULT_RATES: Dict[str, Dict[str, Dict[str, Any]]] = {
    "openai": {
        "text": {
            "gpt-3.5-turbo": {"prompt": 0.001, "completion": 0.002},
            "gpt-4": {"prompt": 0.03, "completion": 0.06},
            "gpt-4-1106-preview": {"prompt": 0.01, "completion": 0.03},
            "gpt-4o": {"prompt": 0.0025, "completion": 0.01},
            "gpt-4o-mini": {"prompt": 0.00015, "completion": 0.0006},
        },
        "audio": {
            "whisper": {"large": 0.006},
            "whisper-1": {"large": 0.006},
        },
    },
    "anthropic": {
        "text": {
            "claude-3-haiku-20240307": {"prompt": 0.00025, "completion": 0.00125},
            "claude-3-5-haiku-20241022": {"prompt": 0.0008, "completion": 0.004},
            "claude-3-5-sonnet-20241022": {"prompt": 0.003, "completion": 0.015},
        },
    },
    "deepgram": {
        "audio": {
            "nova-2": {DEFAULT_TIER: 0.0043},
        },
    },
}

# Tier used when a record does not name one
DEFAULT_AUDIO_TIERS = {"openai": "large"}


class UnknownPricingError(VoiceNotesError):
    """The rate table has no entry for a usage record's lookup key."""


@dataclass
class CostBreakdown:
    """Cost of one pipeline run in USD."""

    transcript: float = 0.0
    summary: float = 0.0

    @property
    def total(self) -> float:
        return self.transcript + self.summary

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary for JSON serialization."""
        return {
            "transcript": round(self.transcript, 6),
            "summary": round(self.summary, 6),
            "total": round(self.total, 6),
        }


class CostAccountant:
    """Price usage records against a rate table.

    Args:
        rates: Rate table (defaults to ``DEFAULT_RATES``)
    """

    def __init__(self, rates: Optional[Mapping[str, Mapping[str, Mapping[str, Any]]]] = None):
        self.rates = rates if rates is not None else DEFAULT_RATES

    def _lookup(self, record: UsageRecord) -> Any:
        provider = record.provider.lower()
        try:
            return self.rates[provider][record.modality][record.model.lower()]
        except KeyError as e:
            raise UnknownPricingError(
                f"No {record.modality} pricing for {provider}/{record.model}",
                hint="Add the model to the rate table to include it in cost reports.",
            ) from e

    def _text_cost(self, record: UsageRecord) -> float:
        entry = self._lookup(record)
        return (record.prompt_tokens / 1000) * entry["prompt"] + (
            record.completion_tokens / 1000
        ) * entry["completion"]

    def _audio_cost(self, record: UsageRecord) -> float:
        entry = self._lookup(record)
        tier = record.tier or DEFAULT_AUDIO_TIERS.get(record.provider.lower(), DEFAULT_TIER)
        if tier not in entry:
            raise UnknownPricingError(
                f"No '{tier}' tier pricing for {record.provider}/{record.model}"
            )
        if not record.duration_seconds:
            logger.warning(f"Duration unknown for {record.model}; transcription cost set to 0")
            return 0.0
        return (record.duration_seconds / 60) * entry[tier]

    def text_cost(self, record: UsageRecord) -> float:
        """Cost of a token-billed record; 0 with a warning if the model is unknown."""
        try:
            cost = self._text_cost(record)
        except UnknownPricingError as e:
            logger.warning(f"{e.message}. Returning 0.")
            return 0.0
        logger.debug(f"Text cost for {record.model}: ${cost:.4f}")
        return cost

    def audio_cost(self, record: UsageRecord) -> float:
        """Cost of a duration-billed record; 0 with a warning if the model is unknown."""
        try:
            cost = self._audio_cost(record)
        except UnknownPricingError as e:
            logger.warning(f"{e.message}. Returning 0.")
            return 0.0
        logger.debug(f"Audio cost for {record.model}: ${cost:.4f}")
        return cost

    def cost(self, record: UsageRecord) -> float:
        """Price a record according to its modality."""
        if record.modality == "audio":
            return self.audio_cost(record)
        if record.modality == "text":
            return self.text_cost(record)
        logger.warning(f"Unknown modality '{record.modality}'. Returning 0.")
        return 0.0

    def breakdown(self, transcript: UsageRecord, summary: UsageRecord) -> CostBreakdown:
        """Price the transcription and summarization usage of one run."""
        result = CostBreakdown(transcript=self.cost(transcript), summary=self.cost(summary))
        logger.info(
            f"Cost: transcript ${result.transcript:.3f}, summary ${result.summary:.3f}, "
            f"total ${result.total:.3f}"
        )
        return result
