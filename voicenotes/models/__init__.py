"""Data models for the voice notes pipeline.

This module provides data structures for source audio, transcript segments,
token chunks, usage records and the merged summary report.
"""

from .audio import AudioFile, Segment
from .summary import AggregatedSummary, UsageRecord
from .transcription import TokenChunk, TranscriptSegment

__all__ = [
    "AggregatedSummary",
    "AudioFile",
    "Segment",
    "TokenChunk",
    "TranscriptSegment",
    "UsageRecord",
]
