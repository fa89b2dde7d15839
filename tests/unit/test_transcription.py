"""Tests for the transcription scheduler and transcript stitching."""
from dataclasses import replace

import pytest

from tests.mocks.api_mocks import FakeTranscriber, MockAPIStatusError
from voicenotes.models.audio import Segment
from voicenotes.models.transcription import TranscriptSegment
from voicenotes.providers.base import TerminalProviderError, TransientProviderError
from voicenotes.services.transcription import TranscriptionScheduler, stitch_transcripts
from voicenotes.utils.retry import TRANSCRIPTION_RETRY_POLICY

FAST_RETRY = replace(TRANSCRIPTION_RETRY_POLICY, base_delay=0.0, max_delay=0.0)


@pytest.fixture
def segments(tmp_path):
    result = []
    for i in range(3):
        path = tmp_path / f"chunk-{i:03d}.mp3"
        path.write_bytes(b"audio")
        result.append(Segment(index=i, path=path))
    return result


def _scheduler(provider, **kwargs):
    return TranscriptionScheduler(provider, min_interval=0.0, retry_config=FAST_RETRY, **kwargs)


class TestTranscriptionScheduler:
    @pytest.mark.asyncio
    async def test_results_in_segment_order_despite_completion_order(self, segments):
        provider = FakeTranscriber(
            texts={"chunk-000.mp3": "zero", "chunk-001.mp3": "one", "chunk-002.mp3": "two"},
            delays={"chunk-000.mp3": 0.05, "chunk-001.mp3": 0.03, "chunk-002.mp3": 0.0},
        )

        results = await _scheduler(provider).transcribe_all(segments)

        assert provider.completed == ["chunk-002.mp3", "chunk-001.mp3", "chunk-000.mp3"]
        assert [r.text for r in results] == ["zero", "one", "two"]
        assert [r.index for r in results] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_file_handles_closed(self, segments):
        provider = FakeTranscriber(
            texts={s.path.name: "x" for s in segments},
            failures={"chunk-001.mp3": [Exception("ECONNRESET")]},
        )

        await _scheduler(provider).transcribe_all(segments)

        assert len(provider.handles) == 4
        assert all(handle.closed for handle in provider.handles)

    @pytest.mark.asyncio
    async def test_language_and_prompt_passed(self, segments):
        provider = FakeTranscriber(texts={s.path.name: "x" for s in segments})

        await _scheduler(provider, language="de", prompt="Hallo.").transcribe_all(segments[:1])

        assert provider.kwargs == [{"language": "de", "prompt": "Hallo."}]

    @pytest.mark.asyncio
    async def test_connection_error_retried(self, segments):
        provider = FakeTranscriber(
            texts={"chunk-000.mp3": "recovered"},
            failures={"chunk-000.mp3": [Exception("Connection error."), MockAPIStatusError("bad gateway", 502)]},
        )

        results = await _scheduler(provider).transcribe_all(segments[:1])

        assert results[0].text == "recovered"
        assert provider.calls.count("chunk-000.mp3") == 3

    @pytest.mark.asyncio
    async def test_client_error_bails_immediately(self, segments):
        provider = FakeTranscriber(
            texts={},
            failures={"chunk-000.mp3": [MockAPIStatusError("Invalid file format.", 400)]},
        )

        with pytest.raises(TerminalProviderError) as exc_info:
            await _scheduler(provider).transcribe_all(segments[:1])

        assert provider.calls == ["chunk-000.mp3"]
        assert "mp3" in exc_info.value.hint
        assert isinstance(exc_info.value.__cause__, MockAPIStatusError)

    @pytest.mark.asyncio
    async def test_persistent_server_error_exhausts(self, segments):
        provider = FakeTranscriber(
            texts={},
            failures={"chunk-000.mp3": [MockAPIStatusError("unavailable", 503)] * 3},
        )

        with pytest.raises(TransientProviderError, match="after 3 attempts"):
            await _scheduler(provider).transcribe_all(segments[:1])

    @pytest.mark.asyncio
    async def test_concurrency_cap(self, segments):
        provider = FakeTranscriber(
            texts={s.path.name: "x" for s in segments},
            delays={s.path.name: 0.02 for s in segments},
        )
        scheduler = _scheduler(provider, max_concurrent=2)

        await scheduler.transcribe_all(segments)

        assert scheduler.limiter.peak_active == 2


class TestStitchTranscripts:
    def test_drops_period_before_lowercase_continuation(self):
        parts = [TranscriptSegment(0, "welcome."), TranscriptSegment(1, "today")]
        assert stitch_transcripts(parts) == "welcome today"

    def test_keeps_period_before_capital(self):
        parts = [TranscriptSegment(0, "Done."), TranscriptSegment(1, "Next topic.")]
        assert stitch_transcripts(parts) == "Done. Next topic."

    def test_last_segment_never_modified(self):
        parts = [TranscriptSegment(0, "first."), TranscriptSegment(1, "and last.")]
        assert stitch_transcripts(parts) == "first and last."

    def test_single_segment_unchanged(self):
        assert stitch_transcripts([TranscriptSegment(0, "Only one.")]) == "Only one."

    def test_empty(self):
        assert stitch_transcripts([]) == ""
