"""Chart-ready series construction from ranked categories."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import math

from flood_stats.core import (
    CategoryBucket,
    ChartSeries,
    FeatureDefinition,
    RankedCategorySet,
    SeriesDataset,
)
from flood_stats.errors import ValidationError
from flood_stats.registry import register


def _require_unique_fields(features: Sequence[FeatureDefinition]) -> None:
    seen: set[str] = set()
    for feature in features:
        if feature.field in seen:
            raise ValidationError(
                f"Feature {feature.field!r} is listed more than once.",
                context={"field": feature.field},
            )
        seen.add(feature.field)


def build(
    ranked: RankedCategorySet,
    buckets: Mapping[str, CategoryBucket],
    features: Sequence[FeatureDefinition],
) -> ChartSeries:
    _require_unique_fields(features)
    labels = tuple(ranked.ordered_labels)
    missing = [label for label in labels if label not in buckets]
    if missing:
        raise ValidationError(
            f"No bucket for ranked categories: {', '.join(missing)}.",
            context={"missing": missing},
        )
    datasets = tuple(
        SeriesDataset(
            series_label=feature.label,
            values=tuple(
                buckets[label].per_feature_value.get(feature.field, 0) for label in labels
            ),
            feature_field=feature.field,
            scenario=feature.scenario,
        )
        for feature in features
    )
    return ChartSeries(labels=labels, datasets=datasets)


def bar_chart(series: ChartSeries) -> ChartSeries:
    return series


def collapse_to_pie(series: ChartSeries) -> ChartSeries:
    """Collapse all datasets into one value per label, dropping empty slices."""
    labels: list[str] = []
    values: list[float] = []
    for index, label in enumerate(series.labels):
        parts = [dataset.values[index] for dataset in series.datasets]
        total = sum(parts) if all(isinstance(p, int) for p in parts) else math.fsum(parts)
        if total > 0:
            labels.append(label)
            values.append(total)
    if not series.datasets:
        return ChartSeries(labels=tuple(labels))
    series_label = (
        series.datasets[0].series_label if len(series.datasets) == 1 else "All features"
    )
    return ChartSeries(
        labels=tuple(labels),
        datasets=(SeriesDataset(series_label=series_label, values=tuple(values)),),
    )


def relabel(series: ChartSeries, display_labels: Mapping[str, str]) -> ChartSeries:
    """Replace raw category values with display labels; unmapped values are kept."""
    return ChartSeries(
        labels=tuple(display_labels.get(label, label) for label in series.labels),
        datasets=series.datasets,
    )


register("chart", "bar", bar_chart)
register("chart", "pie", collapse_to_pie)


__all__ = [
    "bar_chart",
    "build",
    "collapse_to_pie",
    "relabel",
]
