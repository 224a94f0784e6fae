"""Scenario-level statistics, risk classification and comparison."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Optional, Union

from flood_stats.core import (
    ModelCount,
    NetworkStatistics,
    RiskBand,
    RiskScale,
    Scenario,
    ScenarioComparison,
    ScenarioStatistic,
    SegmentStatistic,
    parse_scenario,
)
from flood_stats.engine.ingest import normalize_count
from flood_stats.engine.metrics import validate_unit_length
from flood_stats.errors import ConfigError, ValidationError
from flood_stats.logging_utils import engine_logger

if TYPE_CHECKING:
    from flood_stats.config.settings import EngineSettings

TOTAL_AFFECTED_LABEL = "Total Roads at Risk"

DEFAULT_RISK_SCALE = RiskScale(
    bands=(
        RiskBand(upper=5.0, level="low"),
        RiskBand(upper=15.0, level="medium"),
        RiskBand(upper=25.0, level="high"),
    ),
    top_level="extreme",
)

_LOGGER = engine_logger("summary")


def percentage_of(count: float, total: float) -> float:
    if total <= 0:
        return 0.0
    return (count / total) * 100.0


def validate_risk_scale(scale: RiskScale) -> RiskScale:
    previous: Optional[float] = None
    for band in scale.bands:
        if not band.level:
            raise ConfigError("Risk band levels must be non-empty strings.")
        if previous is not None and band.upper <= previous:
            raise ConfigError(
                "Risk bands must be strictly ascending by upper bound.",
                context={"bands": [band.upper for band in scale.bands]},
            )
        previous = band.upper
    if not scale.top_level:
        raise ConfigError("Risk scale needs a level for values above the last band.")
    return scale


def classify_risk(percentage: float, scale: RiskScale = DEFAULT_RISK_SCALE) -> str:
    for band in scale.bands:
        if percentage < band.upper:
            return band.level
    return scale.top_level


def _as_model_count(model: Union[ModelCount, Mapping[str, Any]]) -> ModelCount:
    if isinstance(model, ModelCount):
        return model
    if isinstance(model, Mapping):
        return ModelCount(
            label=str(model.get("label", "")),
            model_type=model.get("model_type", model.get("modelType")),
            count=model.get("count", model.get("derivedCount")),
        )
    raise ValidationError(f"Unsupported model entry: {model!r}.")


def _segment(
    label: str,
    count: int,
    total_network_count: int,
    unit_length_km: float,
    model_type: Optional[str] = None,
) -> SegmentStatistic:
    if total_network_count > 0 and count > total_network_count:
        raise ValidationError(
            f"{label!r} count {count} exceeds the network total {total_network_count}.",
            context={"label": label, "count": count, "total": total_network_count},
        )
    return SegmentStatistic(
        label=label,
        count=count,
        length_km=count * unit_length_km,
        percentage=percentage_of(count, total_network_count),
        model_type=model_type,
    )


def summarize(
    models: Iterable[Union[ModelCount, Mapping[str, Any]]],
    total_network_count: int,
    unit_length_km: float,
    *,
    affected_count: int,
    scenario: Union[Scenario, str],
    risk_scale: Optional[RiskScale] = None,
    title: str = "",
    return_period: str = "",
) -> ScenarioStatistic:
    """Summarize one scenario against the network total.

    ``affected_count`` is the union ("any model") indicator and is never
    derived from the per-model counts, since one segment can match several
    models. Models with a zero count are left out of the breakdown.
    """
    unit = validate_unit_length(unit_length_km)
    scenario = parse_scenario(scenario)
    total = normalize_count(total_network_count, context={"field": "total_network_count"})
    affected = normalize_count(affected_count, context={"field": "affected_count"})

    breakdown: list[SegmentStatistic] = []
    for entry in models:
        model = _as_model_count(entry)
        count = normalize_count(model.count, context={"model": model.label})
        if count == 0:
            continue
        breakdown.append(_segment(model.label, count, total, unit, model.model_type))

    total_affected = _segment(TOTAL_AFFECTED_LABEL, affected, total, unit)
    risk_level = None
    if risk_scale is not None:
        risk_level = classify_risk(total_affected.percentage, risk_scale)
    return ScenarioStatistic(
        scenario=scenario,
        total_affected=total_affected,
        model_breakdown=tuple(breakdown),
        risk_level=risk_level,
        title=title,
        return_period=return_period,
    )


def summarize_network(
    total_network_count: int,
    scenario_counts: Mapping[Union[Scenario, str], Mapping[str, Any]],
    settings: "EngineSettings",
) -> NetworkStatistics:
    """Summarize every configured scenario from per-field affected counts.

    ``scenario_counts`` maps a scenario to ``{field: count}`` holding the
    scenario's aggregate field and any of its model fields. Scenarios with no
    entry are left out; model fields with no entry count as zero.
    """
    total = normalize_count(total_network_count, context={"field": "total_network_count"})
    counts_by_scenario = {
        parse_scenario(key): value for key, value in scenario_counts.items()
    }
    statistics: list[ScenarioStatistic] = []
    for scenario_cfg in settings.scenarios:
        counts = counts_by_scenario.get(scenario_cfg.scenario)
        if counts is None:
            _LOGGER.warning(
                "No counts supplied for scenario %r; leaving it out of the summary.",
                scenario_cfg.scenario.value,
            )
            continue
        missing = [
            model.field for model in scenario_cfg.models if model.field not in counts
        ]
        if missing:
            _LOGGER.debug(
                "Scenario %r has no counts for %s; treating them as zero.",
                scenario_cfg.scenario.value,
                ", ".join(missing),
            )
        models = [
            ModelCount(model.label, model.model_type, counts.get(model.field, 0))
            for model in scenario_cfg.models
        ]
        statistics.append(
            summarize(
                models,
                total,
                settings.unit_length_km,
                affected_count=counts.get(scenario_cfg.aggregate_field, 0),
                scenario=scenario_cfg.scenario,
                risk_scale=settings.risk_scale,
                title=scenario_cfg.title,
                return_period=scenario_cfg.return_period,
            )
        )
    return NetworkStatistics(
        total_segments=total,
        total_length_km=total * settings.unit_length_km,
        scenarios=tuple(statistics),
    )


def compare_scenarios(
    baseline: ScenarioStatistic,
    other: ScenarioStatistic,
) -> ScenarioComparison:
    base_length = baseline.total_affected.length_km
    diff = other.total_affected.length_km - base_length
    return ScenarioComparison(
        percentage_increase=percentage_of(diff, base_length),
        additional_length_km=diff,
        additional_segments=other.total_affected.count - baseline.total_affected.count,
    )


__all__ = [
    "DEFAULT_RISK_SCALE",
    "TOTAL_AFFECTED_LABEL",
    "classify_risk",
    "compare_scenarios",
    "percentage_of",
    "summarize",
    "summarize_network",
    "validate_risk_scale",
]
