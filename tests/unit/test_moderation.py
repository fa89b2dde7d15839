"""Tests for the transcript moderation check."""
from unittest.mock import AsyncMock

import pytest

from tests.mocks.api_mocks import FakeModerator
from voicenotes.providers.base import ContentPolicyError, TerminalProviderError
from voicenotes.services.moderation import ModerationChecker

TRANSCRIPT = " ".join(f"This is sentence number {i} of a calm lecture." for i in range(200))


class TestModerationChecker:
    @pytest.mark.asyncio
    async def test_clean_transcript_passes(self):
        moderator = FakeModerator(blocked=["violence"])

        chunks = await ModerationChecker(moderator).check(TRANSCRIPT)

        assert len(chunks) > 1
        assert all(len(c) <= 1800 for c in chunks)
        assert sorted(moderator.checked) == sorted(chunks)

    @pytest.mark.asyncio
    async def test_flagged_chunk_aborts(self):
        moderator = FakeModerator(blocked=["lecture"])

        with pytest.raises(ContentPolicyError) as exc_info:
            await ModerationChecker(moderator).check(TRANSCRIPT)

        assert "--no-moderation" in exc_info.value.hint

    @pytest.mark.asyncio
    async def test_missing_verdict_aborts(self):
        with pytest.raises(ContentPolicyError, match="no result"):
            await ModerationChecker(FakeModerator(verdict_missing=True)).check("Hello there.")

    @pytest.mark.asyncio
    async def test_service_error_is_terminal(self):
        moderator = FakeModerator()
        moderator.is_flagged = AsyncMock(side_effect=RuntimeError("quota exceeded"))

        with pytest.raises(TerminalProviderError, match="quota exceeded"):
            await ModerationChecker(moderator).check("Hello there.")

    @pytest.mark.asyncio
    async def test_concurrency_cap(self):
        checker = ModerationChecker(FakeModerator(), max_concurrent=2)
        await checker.check(TRANSCRIPT)
        assert checker.limiter.peak_active <= 2
