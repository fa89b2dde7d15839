"""Group transcript sentences into readable, size-bounded paragraphs."""
from __future__ import annotations

import logging
import re
from typing import List

logger = logging.getLogger(__name__)

HARD_LIMIT = 1800

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
_CJK_SENTENCE_END = re.compile(r"(?<=[。？！；])")
_CJK_CHARACTER = re.compile(r"[぀-ヿ㐀-䶿一-鿿가-힯]")


def split_sentences(text: str) -> List[str]:
    """Split text into sentences; CJK text is split on full-width punctuation."""
    if _CJK_CHARACTER.search(text):
        return [s.strip() for s in _CJK_SENTENCE_END.split(text) if s.strip()]
    return [s for s in _SENTENCE_END.split(text.strip()) if s]


def _cut_long_paragraph(paragraph: str, max_length: int) -> List[str]:
    """Cut at the first space after ``max_length`` characters, never beyond the hard limit."""
    pieces: List[str] = []
    current = 0
    while current < len(paragraph):
        cut = min(current + max_length, len(paragraph))
        space = paragraph.find(" ", cut)
        if space == -1 or space - current > HARD_LIMIT or cut == len(paragraph):
            pieces.append(paragraph[current:cut])
            current = cut
        else:
            pieces.append(paragraph[current:space])
            current = space + 1
    return [p for p in pieces if p]


def make_paragraphs(text: str, max_length: int = 1200) -> List[str]:
    """Turn a transcript or summary into a list of paragraphs.

    Sentences are grouped four to a paragraph (three for CJK text); any
    paragraph longer than ``max_length`` characters is cut at the next space.

    Args:
        text: Text to split
        max_length: Soft maximum paragraph length in characters

    Returns:
        Paragraphs in order; empty list for blank text
    """
    if not text or not text.strip():
        return []

    sentences = split_sentences(text)
    cjk = bool(_CJK_CHARACTER.search(text))
    per_paragraph = 3 if cjk else 4
    joiner = "" if cjk else " "
    grouped = [
        joiner.join(sentences[i : i + per_paragraph])
        for i in range(0, len(sentences), per_paragraph)
    ]

    paragraphs: List[str] = []
    for paragraph in grouped:
        paragraphs.extend(_cut_long_paragraph(paragraph, max_length))

    logger.debug(f"Built {len(paragraphs)} paragraphs from {len(sentences)} sentences")
    return paragraphs
