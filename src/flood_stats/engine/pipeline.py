"""One-call chart aggregation over the ingest, derive, rank and build steps."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union

from flood_stats.core import (
    OTHER_CATEGORY,
    CategoryBucket,
    CategoryLimit,
    ChartSeries,
    FeatureDefinition,
    Metric,
    RankedCategorySet,
)
from flood_stats.engine.ingest import ingest
from flood_stats.engine.metrics import derive, resolve_metric, validate_unit_length
from flood_stats.engine.ranking import rank, validate_category_limit
from flood_stats.engine.series import build, relabel
from flood_stats.errors import ConfigError
from flood_stats.logging_utils import engine_logger
from flood_stats.registry import default_registry

if TYPE_CHECKING:
    from flood_stats.config.settings import EngineSettings

DEFAULT_CHART_TYPE = "bar"

_LOGGER = engine_logger("pipeline")


@dataclass(frozen=True)
class ChartAggregation:
    series: ChartSeries
    ranked: RankedCategorySet
    buckets: dict[str, CategoryBucket]
    chart_type: str = DEFAULT_CHART_TYPE


def _chart_shape(chart_type: str) -> Any:
    try:
        return default_registry().get("chart", chart_type)
    except (KeyError, TypeError) as exc:
        available = ", ".join(sorted(default_registry().list("chart")))
        raise ConfigError(
            f"Unknown chart type {chart_type!r}. Available: {available}.",
            context={"chart_type": chart_type},
        ) from exc


def aggregate_chart(
    rows: Iterable[Any],
    features: Sequence[FeatureDefinition],
    *,
    metric: Union[Metric, str],
    max_categories: CategoryLimit,
    unit_length_km: float,
    other_label: str = OTHER_CATEGORY,
    chart_type: str = DEFAULT_CHART_TYPE,
) -> ChartAggregation:
    """Turn grouped count rows into a ranked, chart-ready series.

    Rows for features that were not requested are ignored. Identical inputs
    always give identical outputs.
    """
    resolved_metric = resolve_metric(metric)
    unit = validate_unit_length(unit_length_km)
    limit = validate_category_limit(max_categories)
    shape = _chart_shape(chart_type)

    requested = {feature.field for feature in features}
    records = ingest(rows)
    kept = tuple(record for record in records if record.feature_field in requested)
    if len(kept) != len(records):
        ignored = sorted({r.feature_field for r in records} - requested)
        _LOGGER.warning(
            "Ignored %d rows for unrequested features: %s.",
            len(records) - len(kept),
            ", ".join(ignored),
        )

    derived = derive(kept, resolved_metric, unit)
    ranked, buckets = rank(derived, limit, other_label=other_label)
    series = shape(build(ranked, buckets, features))
    _LOGGER.debug(
        "Built %s chart with %d categories and %d series (overflowed=%s).",
        chart_type,
        len(series.labels),
        len(series.datasets),
        ranked.overflowed,
    )
    return ChartAggregation(
        series=series,
        ranked=ranked,
        buckets=buckets,
        chart_type=chart_type,
    )


def aggregate_chart_for_fields(
    rows: Iterable[Any],
    feature_fields: Sequence[str],
    settings: "EngineSettings",
    *,
    metric: Optional[Union[Metric, str]] = None,
    max_categories: Optional[CategoryLimit] = None,
    chart_type: str = DEFAULT_CHART_TYPE,
    group_by: Optional[str] = None,
) -> ChartAggregation:
    """Run :func:`aggregate_chart` with features and defaults from settings.

    When ``group_by`` names a configured grouping field, category values are
    replaced by that field's display labels after ranking.
    """
    features = [settings.feature(field) for field in feature_fields]
    aggregation = aggregate_chart(
        rows,
        features,
        metric=settings.default_metric if metric is None else metric,
        max_categories=(
            settings.default_max_categories if max_categories is None else max_categories
        ),
        unit_length_km=settings.unit_length_km,
        other_label=settings.other_label,
        chart_type=chart_type,
    )
    if group_by is None:
        return aggregation
    labels = settings.value_labels(group_by)
    if not labels:
        return aggregation
    return ChartAggregation(
        series=relabel(aggregation.series, labels),
        ranked=aggregation.ranked,
        buckets=aggregation.buckets,
        chart_type=aggregation.chart_type,
    )


__all__ = [
    "DEFAULT_CHART_TYPE",
    "ChartAggregation",
    "aggregate_chart",
    "aggregate_chart_for_fields",
]
