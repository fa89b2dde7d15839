"""Token-budgeted re-chunking of the full transcript.

The transcript is encoded once with ``tiktoken`` and cut greedily into windows
of at most ``max_tokens`` tokens. Each raw boundary is snapped to the nearest
period token within ``search_radius`` tokens (forward wins ties) so that
chunks end on whole sentences where possible. Chunks are decoded from
contiguous token slices, so joining their text reproduces the transcript.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

import tiktoken

from ..models.transcription import TokenChunk

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 2750
DEFAULT_SEARCH_RADIUS = 100
DEFAULT_ENCODING = "cl100k_base"

# Upper bound on tokens a single UTF-8 character can be spread over
_MAX_CHARACTER_TOKENS = 4


@dataclass(frozen=True)
class PeriodGap:
    """Longest run of characters between two consecutive periods.

    Attributes:
        longest_gap: Characters in the longest gap, or -1 when the text has no period
        gap_text: The text of that gap
        encoded_gap_length: Token count of ``gap_text``
    """

    longest_gap: int
    gap_text: str
    encoded_gap_length: int = 0


class TokenChunker:
    """Split text into sentence-snapped chunks of bounded token length.

    Args:
        max_tokens: Token budget per chunk
        search_radius: Tokens searched on each side of a raw boundary for a period
        encoding: tiktoken encoding name
    """

    def __init__(
        self,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        search_radius: int = DEFAULT_SEARCH_RADIUS,
        encoding: str = DEFAULT_ENCODING,
    ):
        if max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        if search_radius < 0:
            raise ValueError("search_radius must be non-negative")
        self.max_tokens = max_tokens
        self.search_radius = search_radius
        self._encoding = tiktoken.get_encoding(encoding)

    def encode(self, text: str) -> List[int]:
        # Special-token strings in a transcript are ordinary text.
        return self._encoding.encode(text, disallowed_special=())

    def count_tokens(self, text: str) -> int:
        return len(self.encode(text))

    def find_longest_period_gap(self, text: str) -> PeriodGap:
        """Find the longest stretch of text between two periods.

        Diagnostic only: a gap longer than the token budget means some chunk
        will have to be cut mid-sentence.
        """
        last_period = -1
        longest_gap = 0
        gap_text = ""

        for i, char in enumerate(text):
            if char != ".":
                continue
            if last_period != -1:
                gap = i - last_period - 1
                if gap > longest_gap:
                    longest_gap = gap
                    gap_text = text[last_period + 1 : i]
            last_period = i

        if last_period == -1:
            return PeriodGap(longest_gap=-1, gap_text="No period found")

        result = PeriodGap(
            longest_gap=longest_gap,
            gap_text=gap_text,
            encoded_gap_length=self.count_tokens(gap_text),
        )
        if result.encoded_gap_length > self.max_tokens:
            logger.warning(
                f"Longest sentence is {result.encoded_gap_length} tokens, more than the "
                f"{self.max_tokens}-token chunk budget; it will be split mid-sentence."
            )
        else:
            logger.debug(
                f"Longest period gap: {longest_gap} characters ({result.encoded_gap_length} tokens)"
            )
        return result

    def _period_tokens(self, tokens: Sequence[int]) -> Set[int]:
        return {
            token
            for token in set(tokens)
            if self._encoding.decode_single_token_bytes(token) == b"."
        }

    def _snap_to_period(
        self, tokens: Sequence[int], current: int, end: int, period_ids: Set[int]
    ) -> Optional[int]:
        """Return one past the nearest period around ``end``, or None if none is in range."""
        n = len(tokens)
        forward: Optional[int] = None
        for distance in range(self.search_radius + 1):
            index = end + distance
            if index >= n:
                break
            if tokens[index] in period_ids:
                forward = distance
                break

        backward: Optional[int] = None
        for distance in range(self.search_radius + 1):
            index = end - distance
            if index < current:
                break
            if tokens[index] in period_ids:
                backward = distance
                break

        if forward is None and backward is None:
            return None
        if backward is None or (forward is not None and forward <= backward):
            return min(end + forward + 1, n)
        return min(end - backward + 1, n)

    def _align_to_character(self, tokens: Sequence[int], current: int, boundary: int) -> int:
        """Move ``boundary`` forward until the slice decodes to whole characters."""
        n = len(tokens)
        for _ in range(_MAX_CHARACTER_TOKENS):
            try:
                self._encoding.decode_bytes(tokens[current:boundary]).decode("utf-8")
                return boundary
            except UnicodeDecodeError:
                if boundary >= n:
                    break
                boundary += 1
        return boundary

    def split(self, text: str) -> List[TokenChunk]:
        """Split ``text`` into ordered chunks.

        Args:
            text: Full transcript

        Returns:
            Chunks with contiguous indices 0..N-1; empty list for empty text
        """
        tokens = self.encode(text)
        n = len(tokens)
        period_ids = self._period_tokens(tokens)

        chunks: List[TokenChunk] = []
        current = 0
        while current < n:
            raw_end = min(current + self.max_tokens, n)
            end = raw_end

            # The final window always runs to the end of the transcript.
            if period_ids and raw_end < n:
                snapped = self._snap_to_period(tokens, current, raw_end, period_ids)
                if snapped is not None:
                    end = snapped
                    logger.debug(
                        f"Chunk {len(chunks)} boundary moved {end - raw_end:+d} tokens "
                        "to keep sentences whole"
                    )

            end = self._align_to_character(tokens, current, max(end, current + 1))

            chunks.append(
                TokenChunk(
                    index=len(chunks),
                    text=self._encoding.decode(tokens[current:end]),
                    start_token=current,
                    end_token=end,
                )
            )
            current = end

        logger.info(f"Split transcript of {n} tokens into {len(chunks)} chunks")
        return chunks
