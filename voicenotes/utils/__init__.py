"""Utility modules for the voicenotes pipeline."""

from .errors import VoiceNotesError
from .rate_limit import AsyncLimiter
from .retry import (
    COMPLETION_RETRY_POLICY,
    TRANSCRIPTION_RETRY_POLICY,
    RetryAbortedError,
    RetryConfig,
    RetryExhaustedError,
    calculate_delay,
    call_with_retry,
    is_connection_or_server_error,
)

__all__ = [
    "AsyncLimiter",
    "COMPLETION_RETRY_POLICY",
    "RetryAbortedError",
    "RetryConfig",
    "RetryExhaustedError",
    "TRANSCRIPTION_RETRY_POLICY",
    "VoiceNotesError",
    "calculate_delay",
    "call_with_retry",
    "is_connection_or_server_error",
]
