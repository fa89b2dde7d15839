"""Data models for transcription output and token chunks."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TranscriptSegment:
    """Recognized text for one audio segment."""

    index: int
    text: str


@dataclass(frozen=True)
class TokenChunk:
    """A token-budgeted slice of the full transcript.

    Attributes:
        index: Position of the chunk in the transcript (0-based)
        text: Decoded text of the chunk
        start_token: Index of the first token in the encoded transcript
        end_token: Index one past the last token in the encoded transcript
    """

    index: int
    text: str
    start_token: int
    end_token: int

    @property
    def token_count(self) -> int:
        """Number of tokens in the chunk."""
        return self.end_token - self.start_token
