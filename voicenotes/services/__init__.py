"""Core services for segmentation, transcription, moderation and summarization."""

from .moderation import ModerationChecker
from .segmenter import SegmentationError, Segmenter, probe_duration
from .summarization import SummarizationScheduler
from .transcription import TranscriptionScheduler, stitch_transcripts

__all__ = [
    "ModerationChecker",
    "SegmentationError",
    "Segmenter",
    "SummarizationScheduler",
    "TranscriptionScheduler",
    "probe_duration",
    "stitch_transcripts",
]
