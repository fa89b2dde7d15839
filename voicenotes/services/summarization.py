"""Concurrent summarization of transcript chunks."""
from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..analysis.prompts import build_system_prompt, build_user_prompt
from ..models.transcription import TokenChunk
from ..providers.base import (
    BaseCompletionProvider,
    CompletionResult,
    TerminalProviderError,
    TransientProviderError,
)
from ..utils.rate_limit import AsyncLimiter
from ..utils.retry import (
    COMPLETION_RETRY_POLICY,
    RetryAbortedError,
    RetryConfig,
    RetryExhaustedError,
    call_with_retry,
)

if TYPE_CHECKING:
    from ..config.validation import SummaryOptions

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT = 35


class SummarizationScheduler:
    """Send each chunk to the completion service under a shared limiter.

    Every call shares one system prompt built from the enabled fields. Errors
    are treated as transient and retried until the attempt budget is spent.

    Args:
        provider: Completion provider
        options: Summary options (fields, verbosity, temperature, languages)
        max_concurrent: Maximum simultaneous requests
        today: Date given to the model for resolving relative dates
        retry_config: Retry policy (unconditional retry by default)
    """

    def __init__(
        self,
        provider: BaseCompletionProvider,
        options: "SummaryOptions",
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        today: Optional[date] = None,
        retry_config: RetryConfig = COMPLETION_RETRY_POLICY,
    ):
        self.provider = provider
        self.options = options
        self.today = today or date.today()
        self.retry_config = retry_config
        self.limiter = AsyncLimiter(max_concurrent, name="summarization")
        self.system_prompt = build_system_prompt(options)

    def select_chunks(self, chunks: Sequence[TokenChunk]) -> List[TokenChunk]:
        """Chunks to send: all of them, or only the first for a title-only pass."""
        if self.options.title_only and chunks:
            logger.info("No summary fields selected; requesting a title from the first chunk only")
            return [chunks[0]]
        return list(chunks)

    async def summarize_chunk(self, chunk: TokenChunk) -> CompletionResult:
        """Summarize one chunk.

        Raises:
            TransientProviderError: If every attempt failed
        """
        user_prompt = build_user_prompt(chunk.text, self.today)
        logger.info(f"Sending chunk {chunk.index} to {self.provider.get_provider_name()}")
        try:
            result = await call_with_retry(
                self.provider.complete,
                self.system_prompt,
                user_prompt,
                self.options.sampling_temperature,
                config=self.retry_config,
                label=f"summary of chunk {chunk.index}",
            )
        except RetryAbortedError as e:
            raise TerminalProviderError(
                f"Summarization of chunk {chunk.index} failed: {e.last_exception}",
                hint="Check the model name and your API key.",
            ) from e.last_exception
        except RetryExhaustedError as e:
            raise TransientProviderError(
                f"Summarization of chunk {chunk.index} failed after {e.attempts} attempts: "
                f"{e.last_exception}",
                hint="Check your API key and account limits, or try again later.",
            ) from e.last_exception

        logger.debug(
            f"Chunk {chunk.index} summarized ({result.usage.prompt_tokens} prompt / "
            f"{result.usage.completion_tokens} completion tokens)"
        )
        return result

    async def summarize_all(self, chunks: Sequence[TokenChunk]) -> List[CompletionResult]:
        """Summarize chunks concurrently, returning results in chunk order."""
        selected = self.select_chunks(chunks)
        logger.info(f"Summarizing {len(selected)} chunks")
        return await self.limiter.map(self.summarize_chunk, selected)
