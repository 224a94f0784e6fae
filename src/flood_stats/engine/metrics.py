"""Display metric derivation (segment count or derived length)."""

from __future__ import annotations

from collections.abc import Callable, Iterable
import math
from numbers import Real
from typing import Any, Union

from flood_stats.core import DerivedRecord, Metric, RawCountRecord
from flood_stats.errors import InvalidMetric, InvalidUnit
from flood_stats.registry import Registry, default_registry, register

MetricFn = Callable[[int, float], float]

METRIC_ALIASES = {
    "segmentCount": Metric.COUNT,
    "segment_count": Metric.COUNT,
    "totalLength": Metric.LENGTH,
    "total_length": Metric.LENGTH,
}


def _segment_count(count: int, unit_length_km: float) -> float:
    return count


def _segment_length(count: int, unit_length_km: float) -> float:
    return count * unit_length_km


register("metric", Metric.COUNT.value, _segment_count)
register("metric", Metric.LENGTH.value, _segment_length)


def resolve_metric(metric: Union[Metric, str], *, registry: Registry | None = None) -> Metric:
    registry = registry or default_registry()
    if isinstance(metric, Metric):
        return metric
    if isinstance(metric, str):
        key = metric.strip()
        if key in METRIC_ALIASES:
            return METRIC_ALIASES[key]
        if registry.contains("metric", key):
            return Metric(key)
    options = ", ".join(sorted([*registry.list("metric"), *METRIC_ALIASES]))
    raise InvalidMetric(
        f"Unknown metric {metric!r}. Available: {options}.",
        context={"metric": metric},
    )


def validate_unit_length(unit_length_km: Any) -> float:
    if isinstance(unit_length_km, bool) or not isinstance(unit_length_km, Real):
        raise InvalidUnit(
            f"unit_length_km must be a number, got {unit_length_km!r}.",
            context={"unit_length_km": unit_length_km},
        )
    value = float(unit_length_km)
    if not math.isfinite(value) or value <= 0:
        raise InvalidUnit(
            f"unit_length_km must be a finite number > 0, got {unit_length_km!r}.",
            context={"unit_length_km": unit_length_km},
        )
    return value


def metric_function(metric: Union[Metric, str], *, registry: Registry | None = None) -> MetricFn:
    registry = registry or default_registry()
    resolved = resolve_metric(metric, registry=registry)
    return registry.get("metric", resolved.value)


def derive(
    records: Iterable[RawCountRecord],
    metric: Union[Metric, str],
    unit_length_km: float,
) -> tuple[DerivedRecord, ...]:
    fn = metric_function(metric)
    unit = validate_unit_length(unit_length_km)
    return tuple(
        DerivedRecord(
            feature_field=record.feature_field,
            category=record.category,
            count=record.count,
            value=fn(record.count, unit),
        )
        for record in records
    )


__all__ = [
    "METRIC_ALIASES",
    "derive",
    "metric_function",
    "resolve_metric",
    "validate_unit_length",
]
