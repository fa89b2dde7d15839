"""Merge ordered partial summaries into one report."""
from __future__ import annotations

import copy
import logging
from numbers import Number
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

from ..models.summary import AggregatedSummary
from ..providers.base import CompletionUsage
from .fields import DEFAULT_TITLE, TITLE_KEY, MergePolicy, SummaryField, ordered_fields
from .parsing import PartialSummary

if TYPE_CHECKING:
    from ..config.validation import SummaryOptions

logger = logging.getLogger(__name__)


def _flatten(values: Sequence[Any]) -> List[Any]:
    flat: List[Any] = []
    for value in values:
        if value is None:
            continue
        if isinstance(value, list):
            flat.extend(value)
        else:
            flat.append(value)
    return flat


def merge_concat(values: Sequence[Any], placeholder: Any) -> str:
    text = " ".join("" if v is None else str(v) for v in values)
    return text if text.strip() else placeholder


def merge_flatten(values: Sequence[Any], placeholder: Any) -> List[Any]:
    flat = _flatten(values)
    return flat if flat else list(placeholder)


def merge_dedupe(values: Sequence[Any], placeholder: Any) -> Optional[List[str]]:
    """Case-folded, capitalized, sorted unique values; None unless more than one survives."""
    items = [str(v).strip() for v in _flatten(values) if v is not None and str(v).strip()]
    distinct = {item.lower() for item in items}
    if len(distinct) <= 1:
        return None
    return sorted(topic[:1].upper() + topic[1:] for topic in distinct)


def merge_max(values: Sequence[Any], placeholder: Any) -> Any:
    numbers = [v for v in values if isinstance(v, Number) and not isinstance(v, bool)]
    for v in values:
        if isinstance(v, str):
            try:
                numbers.append(float(v) if "." in v else int(v))
            except ValueError:
                continue
    return max(numbers) if numbers else placeholder


def merge_first(values: Sequence[Any], placeholder: Any) -> Any:
    first = values[0] if values else None
    return placeholder if first in (None, "", []) else first


def merge_sum(values: Sequence[Any], placeholder: Any) -> Any:
    return sum(v for v in values if isinstance(v, Number) and not isinstance(v, bool))


MERGERS: Dict[MergePolicy, Callable[[Sequence[Any], Any], Any]] = {
    MergePolicy.CONCAT: merge_concat,
    MergePolicy.FLATTEN: merge_flatten,
    MergePolicy.DEDUPE: merge_dedupe,
    MergePolicy.MAX: merge_max,
    MergePolicy.FIRST: merge_first,
    MergePolicy.SUM: merge_sum,
}


def merge_field(summary_field: SummaryField, partials: Sequence[PartialSummary]) -> Any:
    """Apply one field's merge policy to its values across all partials, in chunk order.

    The placeholder is copied so a report never shares objects with the field table.
    """
    values = [partial.get(summary_field.key) for partial in partials]
    return MERGERS[summary_field.policy](values, copy.deepcopy(summary_field.placeholder))


def aggregate(
    partials: Sequence[PartialSummary],
    usages: Sequence[CompletionUsage],
    options: "SummaryOptions",
) -> AggregatedSummary:
    """Fold ordered partial summaries into one report.

    Only fields enabled in ``options`` appear in the result. The title comes
    from the first partial; token usage is summed across all calls.

    Args:
        partials: Parsed partial summaries in chunk order
        usages: Token usage per completion call
        options: Summary options naming the enabled fields

    Returns:
        The aggregated report
    """
    title = merge_first([p.get(TITLE_KEY) for p in partials[:1]], DEFAULT_TITLE)
    if not isinstance(title, str):
        title = str(title)

    fields: Dict[str, Any] = {}
    for summary_field in ordered_fields(options.fields):
        merged = merge_field(summary_field, partials)
        if merged is None:
            logger.debug(f"Field '{summary_field.key}' dropped: not enough distinct values")
            continue
        fields[summary_field.key] = merged

    summary = AggregatedSummary(
        title=title,
        fields=fields,
        prompt_tokens=merge_sum([u.prompt_tokens for u in usages], 0),
        completion_tokens=merge_sum([u.completion_tokens for u in usages], 0),
    )
    logger.info(
        f"Aggregated {len(partials)} partial summaries into {len(fields)} fields "
        f"({summary.total_tokens} tokens used)"
    )
    return summary
