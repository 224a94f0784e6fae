"""Category merging, ranking and overflow bucketing."""

from __future__ import annotations

from collections.abc import Iterable
import math
from typing import Any

from flood_stats.core import (
    OTHER_CATEGORY,
    UNLIMITED,
    CategoryBucket,
    CategoryLimit,
    DerivedRecord,
    RankedCategorySet,
)
from flood_stats.errors import InvalidCategoryLimit
from flood_stats.logging_utils import engine_logger

_LOGGER = engine_logger("ranking")


def validate_category_limit(max_categories: Any) -> CategoryLimit:
    if isinstance(max_categories, str) and max_categories == UNLIMITED:
        return UNLIMITED
    if isinstance(max_categories, bool) or not isinstance(max_categories, int):
        raise InvalidCategoryLimit(
            f"max_categories must be a positive integer or {UNLIMITED!r}, "
            f"got {max_categories!r}.",
            context={"max_categories": max_categories},
        )
    if max_categories < 1:
        raise InvalidCategoryLimit(
            f"max_categories must be >= 1, got {max_categories}.",
            context={"max_categories": max_categories},
        )
    return max_categories


def parse_category_limit(value: Any) -> CategoryLimit:
    """Parse a category limit coming from config or the command line."""
    if isinstance(value, str):
        text = value.strip()
        if text.lower() == UNLIMITED:
            return UNLIMITED
        try:
            value = int(text)
        except ValueError as exc:
            raise InvalidCategoryLimit(
                f"max_categories must be a positive integer or {UNLIMITED!r}, "
                f"got {text!r}.",
                context={"max_categories": text},
            ) from exc
    return validate_category_limit(value)


def _merge(derived: Iterable[DerivedRecord]) -> dict[str, dict[str, list[float]]]:
    # Insertion order of both levels follows first appearance in the input.
    grouped: dict[str, dict[str, list[float]]] = {}
    for record in derived:
        per_feature = grouped.setdefault(record.category, {})
        per_feature.setdefault(record.feature_field, []).append(record.value)
    return grouped


def _bucket(label: str, per_feature: dict[str, list[float]]) -> CategoryBucket:
    values = {field: _sum(parts) for field, parts in per_feature.items()}
    return CategoryBucket(label=label, per_feature_value=values, total=_sum(values.values()))


def _sum(values: Iterable[float]) -> float:
    values = list(values)
    if all(isinstance(value, int) for value in values):
        return sum(values)
    return math.fsum(values)


def _overflow_bucket(label: str, truncated: list[CategoryBucket]) -> CategoryBucket:
    per_feature: dict[str, list[float]] = {}
    for bucket in truncated:
        for field, value in bucket.per_feature_value.items():
            per_feature.setdefault(field, []).append(value)
    return _bucket(label, per_feature)


def rank(
    derived: Iterable[DerivedRecord],
    max_categories: CategoryLimit,
    *,
    other_label: str = OTHER_CATEGORY,
) -> tuple[RankedCategorySet, dict[str, CategoryBucket]]:
    """Rank categories by merged total and fold the tail into an overflow bucket.

    Categories with equal totals keep the order in which they first appear in
    ``derived``. The returned mapping holds exactly the displayed labels, so
    the sum of its totals equals the sum of all derived values. A kept
    category named ``other_label`` is merged into the overflow bucket, which
    is always displayed last.
    """
    limit = validate_category_limit(max_categories)
    buckets = [_bucket(label, per_feature) for label, per_feature in _merge(derived).items()]
    ranked = sorted(buckets, key=lambda bucket: bucket.total, reverse=True)

    if limit == UNLIMITED or limit >= len(ranked):
        _LOGGER.debug("Ranked %d categories without truncation.", len(ranked))
        return (
            RankedCategorySet(tuple(bucket.label for bucket in ranked), False),
            {bucket.label: bucket for bucket in ranked},
        )

    kept, truncated = ranked[:limit], ranked[limit:]
    kept_map = {bucket.label: bucket for bucket in kept}
    remainder = _overflow_bucket(other_label, truncated)
    if remainder.total <= 0:
        _LOGGER.debug(
            "Dropped %d zero-total categories beyond limit %d.", len(truncated), limit
        )
        return RankedCategorySet(tuple(kept_map), False), kept_map

    # A kept category sharing the overflow label merges into the one bucket.
    real_other = kept_map.pop(other_label, None)
    if real_other is not None:
        _LOGGER.debug("Merged category %r into the overflow bucket.", other_label)
        remainder = _overflow_bucket(other_label, [real_other, *truncated])
    _LOGGER.debug(
        "Folded %d categories beyond limit %d into %r.",
        len(truncated),
        limit,
        other_label,
    )
    kept_map[other_label] = remainder
    return RankedCategorySet(tuple(kept_map), True), kept_map


__all__ = [
    "parse_category_limit",
    "rank",
    "validate_category_limit",
]
