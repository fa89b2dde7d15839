"""Pipeline orchestration."""

from .audio_pipeline import PipelineResult, VoiceNotesPipeline
from .context import RunContext

__all__ = ["PipelineResult", "RunContext", "VoiceNotesPipeline"]
