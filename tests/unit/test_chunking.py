"""Tests for token-budgeted chunking of the transcript."""
import logging

import pytest

from voicenotes.analysis.chunking import TokenChunker

TOPICS = ("planning", "budgets", "hiring", "roadmaps", "customers", "design", "testing")


def _transcript(chunker: TokenChunker, min_tokens: int) -> str:
    sentences = []
    i = 0
    while True:
        sentences.append(
            f"The speaker explains why {TOPICS[i % len(TOPICS)]} matters for the team this quarter."
        )
        i += 1
        if i % 10 == 0 and chunker.count_tokens(" ".join(sentences)) >= min_tokens:
            return " ".join(sentences)


@pytest.fixture(scope="module")
def chunker():
    return TokenChunker(max_tokens=2750, search_radius=100)


class TestSplit:
    def test_empty_text(self, chunker):
        assert chunker.split("") == []

    def test_short_text_single_chunk(self, chunker):
        chunks = chunker.split("Hello there. This is short.")
        assert len(chunks) == 1
        assert chunks[0].text == "Hello there. This is short."
        assert chunks[0].start_token == 0

    def test_long_transcript_snaps_to_periods(self, chunker):
        text = _transcript(chunker, 9000)
        total = chunker.count_tokens(text)
        assert 9000 <= total < 9500

        chunks = chunker.split(text)

        assert len(chunks) == 4
        assert [c.index for c in chunks] == [0, 1, 2, 3]
        for chunk in chunks[:-1]:
            assert chunk.text.endswith(".")
            assert abs(chunk.token_count - 2750) <= 101
        assert chunks[-1].end_token == total

    def test_lossless(self, chunker):
        text = _transcript(chunker, 6000)
        chunks = chunker.split(text)
        assert "".join(c.text for c in chunks) == text

    def test_token_ranges_are_contiguous(self, chunker):
        chunks = chunker.split(_transcript(chunker, 6000))
        for previous, following in zip(chunks, chunks[1:]):
            assert previous.end_token == following.start_token

    def test_no_periods_cuts_at_budget(self):
        small = TokenChunker(max_tokens=50, search_radius=10)
        text = " ".join(["word"] * 300)

        chunks = small.split(text)

        assert all(c.token_count <= 50 for c in chunks)
        assert "".join(c.text for c in chunks) == text

    def test_multibyte_text_is_lossless(self):
        small = TokenChunker(max_tokens=7, search_radius=0)
        text = "今日は会議の内容を確認します。明日は🎉お祝いです。" * 5

        chunks = small.split(text)

        assert len(chunks) > 1
        assert "".join(c.text for c in chunks) == text
        assert all("�" not in c.text for c in chunks)

    def test_nearest_period_chosen(self):
        small = TokenChunker(max_tokens=10, search_radius=10)
        text = "One two three four five. Six seven eight nine ten eleven. Twelve thirteen fourteen."
        chunks = small.split(text)
        assert chunks[0].text.endswith(".")
        assert "".join(c.text for c in chunks) == text


class TestLongestPeriodGap:
    def test_finds_longest_gap(self, chunker):
        gap = chunker.find_longest_period_gap("A. Short one. This is the longest sentence. End.")
        assert gap.gap_text == " This is the longest sentence"
        assert gap.longest_gap == len(gap.gap_text)
        assert gap.encoded_gap_length == chunker.count_tokens(gap.gap_text)

    def test_no_period(self, chunker):
        gap = chunker.find_longest_period_gap("no punctuation at all")
        assert gap.longest_gap == -1
        assert gap.gap_text == "No period found"

    def test_warns_when_gap_exceeds_budget(self, caplog):
        small = TokenChunker(max_tokens=5)
        with caplog.at_level(logging.WARNING):
            small.find_longest_period_gap("Start. " + "very long sentence " * 10 + ". End.")
        assert "split mid-sentence" in caplog.text
