"""End-to-end pipeline: recording -> transcript -> structured summary.

This module wires the services together in a fixed order:

validate -> probe duration -> segment -> transcribe -> cleanup scratch ->
stitch -> longest-gap diagnostic -> moderation -> chunk -> summarize ->
parse/aggregate -> paragraphs -> costs
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from ..analysis.aggregator import aggregate
from ..analysis.chunking import TokenChunker
from ..analysis.costs import CostAccountant, CostBreakdown
from ..analysis.paragraphs import make_paragraphs
from ..analysis.parsing import parse_partial
from ..models.summary import AggregatedSummary, UsageRecord
from ..providers.base import (
    BaseCompletionProvider,
    BaseModerationProvider,
    BaseTranscriptionProvider,
)
from ..services.moderation import ModerationChecker
from ..services.segmenter import Segmenter, probe_duration
from ..services.summarization import SummarizationScheduler
from ..services.transcription import TranscriptionScheduler, stitch_transcripts
from ..utils.file_validation import ValidationError, validate_audio_file
from ..utils.retry import COMPLETION_RETRY_POLICY, TRANSCRIPTION_RETRY_POLICY
from .context import RunContext

if TYPE_CHECKING:
    from ..config import Config
    from ..config.validation import PipelineOptions
    from ..ui.console import ConsoleManager

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one run produced.

    Attributes:
        summary: Aggregated summary (title plus enabled fields)
        transcript: Stitched transcript text
        paragraphs: Transcript and summary text split into display paragraphs
        costs: USD cost of transcription and summarization
        duration: Audio duration in seconds, if it could be probed
        stage_durations: Wall-clock seconds spent in each stage
        run_id: Identifier of the run
    """

    summary: AggregatedSummary
    transcript: str
    paragraphs: Dict[str, List[str]] = field(default_factory=dict)
    costs: CostBreakdown = field(default_factory=CostBreakdown)
    duration: Optional[float] = None
    stage_durations: Dict[str, float] = field(default_factory=dict)
    run_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "run_id": self.run_id,
            "summary": self.summary.to_dict(),
            "transcript": self.transcript,
            "paragraphs": self.paragraphs,
            "costs": self.costs.to_dict(),
            "duration": self.duration,
            "stage_durations": {k: round(v, 3) for k, v in self.stage_durations.items()},
        }


class VoiceNotesPipeline:
    """Run one recording through transcription and summarization.

    Args:
        config: Application configuration (limits, concurrency, retry settings)
        transcriber: Speech-to-text provider
        completer: Completion provider used for summaries
        moderator: Moderation provider; moderation is skipped when None
        console_manager: Optional console for stage banners
    """

    def __init__(
        self,
        config: "Config",
        transcriber: BaseTranscriptionProvider,
        completer: BaseCompletionProvider,
        moderator: Optional[BaseModerationProvider] = None,
        console_manager: Optional["ConsoleManager"] = None,
    ):
        self.config = config
        self.transcriber = transcriber
        self.completer = completer
        self.moderator = moderator
        self.console_manager = console_manager
        self.accountant = CostAccountant()
        self.stage_durations: Dict[str, float] = {}

    @contextmanager
    def _stage(self, name: str) -> Iterator[None]:
        """Time a stage and announce it on the console if one is attached."""
        cm = self.console_manager
        if cm:
            cm.print_stage(name, "starting")
        start = time.time()
        try:
            yield
        except Exception:
            if cm:
                cm.print_stage(name, "error")
            raise
        finally:
            self.stage_durations[name] = time.time() - start
        if cm:
            cm.print_stage(name, "complete")

    async def run(self, path: Path | str, options: "PipelineOptions") -> PipelineResult:
        """Process one recording.

        Args:
            path: Recording to process
            options: Validated per-run options

        Returns:
            PipelineResult with the summary, transcript, paragraphs and costs

        Raises:
            VoiceNotesError: Any fatal stage error (validation, segmentation,
                provider or content policy)
        """
        self.stage_durations = {}
        context = RunContext(source_path=Path(path), temp_root=self.config.temp_dir)
        logger.info(f"[{context.run_id}] Processing {context.source_path.name}")
        total_start = time.time()

        # Step 1: Validate
        with self._stage("validate"):
            audio = validate_audio_file(
                context.source_path,
                max_file_size=self.config.max_file_size,
                allowed_extensions=self.config.allowed_extensions,
            )

        # Step 2: Duration, used for cost accounting only
        with self._stage("probe_duration"):
            audio.duration = await probe_duration(audio.path)
            if audio.duration is None:
                if options.fail_on_no_duration:
                    raise ValidationError(
                        f"Could not determine the duration of {audio.path.name}",
                        hint="Check that ffprobe is installed, or unset FAIL_ON_NO_DURATION.",
                    )
                logger.warning("Audio duration unknown; transcription cost will be reported as 0")

        # Steps 3-4: Segment and transcribe; scratch files never outlive this block
        try:
            with self._stage("segment"):
                segments = await Segmenter(options.chunk_size_mb).split(audio, context)
            with self._stage("transcribe"):
                scheduler = TranscriptionScheduler(
                    self.transcriber,
                    max_concurrent=self.config.transcription_max_concurrent,
                    min_interval=self.config.transcription_min_interval,
                    language=options.transcript_language,
                    prompt=options.whisper_prompt,
                    retry_config=self.config.retry_policy(TRANSCRIPTION_RETRY_POLICY),
                )
                transcript_segments = await scheduler.transcribe_all(segments)
        finally:
            context.cleanup()

        # Step 5: Stitch
        with self._stage("stitch"):
            transcript = stitch_transcripts(transcript_segments)
        logger.info(f"Transcript assembled ({len(transcript)} characters)")

        chunker = TokenChunker(
            max_tokens=options.max_tokens_per_chunk,
            search_radius=options.period_search_radius,
        )
        gap = chunker.find_longest_period_gap(transcript)
        logger.debug(f"Longest gap between periods: {gap.longest_gap} characters")

        # Step 6: Moderation
        if options.moderation and self.moderator is not None:
            with self._stage("moderate"):
                checker = ModerationChecker(
                    self.moderator, max_concurrent=self.config.moderation_max_concurrent
                )
                await checker.check(transcript)
        else:
            logger.info("Moderation check skipped")

        # Step 7: Chunk and summarize
        with self._stage("chunk"):
            chunks = chunker.split(transcript)
        with self._stage("summarize"):
            summarizer = SummarizationScheduler(
                self.completer,
                options.summary,
                max_concurrent=self.config.summarization_max_concurrent,
                today=context.started_at.date(),
                retry_config=self.config.retry_policy(COMPLETION_RETRY_POLICY),
            )
            completions = await summarizer.summarize_all(chunks)

        # Step 8: Parse and merge
        with self._stage("aggregate"):
            partials = [parse_partial(result.content, i) for i, result in enumerate(completions)]
            summary = aggregate(partials, [result.usage for result in completions], options.summary)

        paragraphs = {"transcript": make_paragraphs(transcript)}
        summary_text = summary.get("summary")
        if isinstance(summary_text, str) and summary_text:
            paragraphs["summary"] = make_paragraphs(summary_text)

        # Step 9: Costs
        costs = self.accountant.breakdown(
            UsageRecord(
                provider=self.transcriber.pricing_key,
                modality="audio",
                model=self.transcriber.model,
                duration_seconds=audio.duration,
            ),
            UsageRecord(
                provider=self.completer.pricing_key,
                modality="text",
                model=self.completer.model,
                prompt_tokens=summary.prompt_tokens,
                completion_tokens=summary.completion_tokens,
            ),
        )

        self.stage_durations["total"] = time.time() - total_start
        logger.info(
            f"[{context.run_id}] Completed in {self.stage_durations['total']:.1f}s: "
            f"'{summary.title}'"
        )
        return PipelineResult(
            summary=summary,
            transcript=transcript,
            paragraphs=paragraphs,
            costs=costs,
            duration=audio.duration,
            stage_durations=dict(self.stage_durations),
            run_id=context.run_id,
        )
