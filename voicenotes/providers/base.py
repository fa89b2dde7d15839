"""Abstract base classes and shared types for remote service providers.

Three roles are modelled: speech-to-text (transcription), chat completion
(summarization) and moderation. Concrete providers raise the SDK's own
exceptions; the services that call them classify those errors with the retry
policies and surface the errors defined here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Optional

from ..utils.errors import VoiceNotesError


class ProviderError(VoiceNotesError):
    """Base class for failures talking to a remote service."""


class TransientProviderError(ProviderError):
    """A retryable failure that was still failing when the attempt budget ran out."""


class TerminalProviderError(ProviderError):
    """A failure classified as not worth retrying."""


class ContentPolicyError(ProviderError):
    """The moderation service flagged the content, or returned no verdict."""


@dataclass
class CompletionUsage:
    """Token counts reported by a completion call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary for JSON serialization."""
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class CompletionResult:
    """Provider-agnostic completion response.

    Attributes:
        content: Text of the first choice / first text block
        usage: Token counts for the call
        model: Model identifier that served the call
    """

    content: str
    usage: CompletionUsage = field(default_factory=CompletionUsage)
    model: str = ""


class BaseProvider(ABC):
    """Common surface of every provider.

    Attributes:
        pricing_key: Key of this provider in the cost rate table
    """

    pricing_key: str = ""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get the human-readable name of this provider."""


class BaseTranscriptionProvider(BaseProvider):
    """Speech-to-text service for one audio segment at a time."""

    model: str = ""

    @abstractmethod
    async def transcribe(
        self,
        audio_file: BinaryIO,
        *,
        language: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> str:
        """Transcribe an open audio file.

        Args:
            audio_file: Binary file handle positioned at the start of the segment
            language: ISO-639-1 language hint, or None for auto-detection
            prompt: Priming text for the recognizer

        Returns:
            Recognized text

        Raises:
            Exception: The SDK's own error, left for the caller to classify
        """


class BaseCompletionProvider(BaseProvider):
    """Chat completion service returning JSON text."""

    model: str = ""
    max_output_tokens: int = 4096

    @abstractmethod
    async def complete(self, system: str, user: str, temperature: float) -> CompletionResult:
        """Run one completion.

        Args:
            system: System prompt
            user: User message
            temperature: Sampling temperature (0.0-1.0)

        Returns:
            CompletionResult in the common shape
        """


class BaseModerationProvider(BaseProvider):
    """Content moderation service."""

    @abstractmethod
    async def is_flagged(self, text: str) -> Optional[bool]:
        """Check one chunk of text.

        Returns:
            True if flagged, False if clean, None if the service gave no verdict
        """
