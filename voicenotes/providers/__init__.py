"""Remote service providers for transcription, completion and moderation."""

from .base import (
    BaseCompletionProvider,
    BaseModerationProvider,
    BaseTranscriptionProvider,
    CompletionResult,
    CompletionUsage,
    ContentPolicyError,
    ProviderError,
    TerminalProviderError,
    TransientProviderError,
)

__all__ = [
    "BaseCompletionProvider",
    "BaseModerationProvider",
    "BaseTranscriptionProvider",
    "CompletionResult",
    "CompletionUsage",
    "ContentPolicyError",
    "ProviderError",
    "TerminalProviderError",
    "TransientProviderError",
]
