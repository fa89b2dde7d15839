"""Moderation check of the transcript before it is summarized."""
from __future__ import annotations

import logging
from typing import List, Tuple

from ..analysis.paragraphs import make_paragraphs
from ..providers.base import BaseModerationProvider, ContentPolicyError, TerminalProviderError
from ..utils.rate_limit import AsyncLimiter

logger = logging.getLogger(__name__)

MODERATION_CHUNK_LENGTH = 1800
DEFAULT_MAX_CONCURRENT = 500

DISABLE_HINT = (
    "Moderation can be skipped with --no-moderation (or DISABLE_MODERATION=true). This is "
    "faster, but sends the transcript to the completion service without a content check."
)


class ModerationChecker:
    """Send the transcript through the moderation service in paragraph-sized chunks.

    Args:
        provider: Moderation provider
        max_concurrent: Maximum simultaneous moderation requests
    """

    def __init__(self, provider: BaseModerationProvider, max_concurrent: int = DEFAULT_MAX_CONCURRENT):
        self.provider = provider
        self.limiter = AsyncLimiter(max_concurrent, name="moderation")

    async def _check_chunk(self, item: Tuple[int, str]) -> None:
        index, chunk = item
        try:
            flagged = await self.provider.is_flagged(chunk)
        except Exception as e:
            raise TerminalProviderError(
                f"Moderation request for chunk {index} failed: {e}", hint=DISABLE_HINT
            ) from e

        if flagged is None:
            raise ContentPolicyError(
                f"Moderation check failed for chunk {index}: the moderation service returned no result.",
                hint=DISABLE_HINT,
            )
        if flagged:
            logger.error(f"Moderation flagged inappropriate content in chunk {index}")
            raise ContentPolicyError(
                f"Detected inappropriate content in transcript chunk {index}. "
                "Summarization of this file cannot be completed.",
                hint=DISABLE_HINT,
            )

    async def check(self, transcript: str) -> List[str]:
        """Check every chunk of the transcript.

        Returns:
            The chunks that were checked

        Raises:
            ContentPolicyError: If any chunk is flagged or gets no verdict
        """
        chunks = make_paragraphs(transcript, MODERATION_CHUNK_LENGTH)
        logger.info(f"Transcript split into {len(chunks)} chunks for the moderation check")

        await self.limiter.map(self._check_chunk, list(enumerate(chunks)))
        logger.info("Moderation check completed. No inappropriate content detected.")
        return chunks
