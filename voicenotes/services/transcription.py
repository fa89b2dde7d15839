"""Concurrent transcription of audio segments and transcript stitching."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..models.audio import Segment
from ..models.transcription import TranscriptSegment
from ..providers.base import (
    BaseTranscriptionProvider,
    TerminalProviderError,
    TransientProviderError,
)
from ..utils.rate_limit import AsyncLimiter
from ..utils.retry import (
    TRANSCRIPTION_RETRY_POLICY,
    RetryAbortedError,
    RetryConfig,
    RetryExhaustedError,
    call_with_retry,
    get_status_code,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT = 30
DEFAULT_MIN_INTERVAL = 1 / 30


def _remediation_hint(error: BaseException) -> str:
    message = str(error).lower()
    if "connection error" in message or "econnreset" in message:
        return (
            "The transcription service could not be reached. Check that your OpenAI account "
            "has available billing credit, or try again later."
        )
    if "invalid file format" in message:
        return (
            "The file format was rejected. If this is an m4a file, convert it to mp3 "
            "(for example with CloudConvert or ffmpeg) and try again."
        )
    status = get_status_code(error)
    if status is not None and status >= 500:
        return "The transcription service is having problems. Try again in a few minutes."
    return "Check the error details above and your OpenAI API key."


class TranscriptionScheduler:
    """Transcribe segments concurrently under a shared limiter.

    Args:
        provider: Speech-to-text provider
        max_concurrent: Maximum simultaneous requests
        min_interval: Minimum seconds between request starts
        language: ISO-639-1 language hint (None for auto-detection)
        prompt: Priming text sent with every request
        retry_config: Retry policy (classified retry by default)
    """

    def __init__(
        self,
        provider: BaseTranscriptionProvider,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        language: Optional[str] = None,
        prompt: Optional[str] = None,
        retry_config: RetryConfig = TRANSCRIPTION_RETRY_POLICY,
    ):
        self.provider = provider
        self.language = language
        self.prompt = prompt
        self.retry_config = retry_config
        self.limiter = AsyncLimiter(max_concurrent, min_interval, name="transcription")

    async def _call_provider(self, segment: Segment) -> str:
        # The handle is closed on every exit path, including retries.
        with segment.path.open("rb") as audio_file:
            return await self.provider.transcribe(
                audio_file, language=self.language, prompt=self.prompt
            )

    async def transcribe_segment(self, segment: Segment) -> TranscriptSegment:
        """Transcribe one segment with retry.

        Raises:
            TerminalProviderError: If an error was classified as not retryable
            TransientProviderError: If retryable errors persisted past the budget
        """
        logger.info(f"Transcribing file: {segment.path.name}")
        try:
            text = await call_with_retry(
                self._call_provider,
                segment,
                config=self.retry_config,
                label=f"transcription of {segment.path.name}",
            )
        except RetryAbortedError as e:
            raise TerminalProviderError(
                f"Transcription of chunk {segment.index} failed: {e.last_exception}",
                hint=_remediation_hint(e.last_exception),
            ) from e.last_exception
        except RetryExhaustedError as e:
            raise TransientProviderError(
                f"Transcription of chunk {segment.index} failed after {e.attempts} attempts: "
                f"{e.last_exception}",
                hint=_remediation_hint(e.last_exception),
            ) from e.last_exception

        logger.debug(f"Chunk {segment.index} transcribed ({len(text)} characters)")
        return TranscriptSegment(index=segment.index, text=text)

    async def transcribe_all(self, segments: Sequence[Segment]) -> List[TranscriptSegment]:
        """Transcribe every segment, returning results in segment order.

        The first failure cancels the remaining requests and propagates.
        """
        logger.info(f"Transcribing {len(segments)} chunks")
        results = await self.limiter.map(self.transcribe_segment, segments)
        logger.info(f"Transcribed {len(results)} chunks (peak concurrency {self.limiter.peak_active})")
        return results


def stitch_transcripts(segments: Sequence[TranscriptSegment]) -> str:
    """Join segment texts into one transcript.

    When a segment ends with a period and the next one starts with a
    lowercase letter, the sentence was cut by the segmenter, so the period is
    dropped. Segments are joined with a single space; the last segment is
    never modified.

    Args:
        segments: Transcript segments in order

    Returns:
        The full transcript
    """
    texts = [segment.text for segment in segments]
    for i in range(len(texts) - 1):
        current, following = texts[i], texts[i + 1]
        if current.endswith(".") and following[:1].islower():
            texts[i] = current[:-1]
    return " ".join(texts)

