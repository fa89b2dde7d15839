"""Analysis modules turning a transcript into a structured report."""

from .aggregator import aggregate
from .chunking import PeriodGap, TokenChunker
from .costs import CostAccountant, CostBreakdown
from .fields import FIELDS, MergePolicy, Verbosity
from .paragraphs import make_paragraphs
from .parsing import parse_partial

__all__ = [
    "CostAccountant",
    "CostBreakdown",
    "FIELDS",
    "MergePolicy",
    "PeriodGap",
    "TokenChunker",
    "Verbosity",
    "aggregate",
    "make_paragraphs",
    "parse_partial",
]
