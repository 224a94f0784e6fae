"""Validated, immutable engine settings built from composed config."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import dataclasses
from dataclasses import asdict, dataclass
from typing import Any, Optional, Union

from flood_stats.config.schema import EngineConfig
from flood_stats.core import (
    CategoryLimit,
    FeatureDefinition,
    Metric,
    RiskBand,
    RiskScale,
    Scenario,
    parse_scenario,
)
from flood_stats.engine.metrics import resolve_metric, validate_unit_length
from flood_stats.engine.ranking import parse_category_limit
from flood_stats.engine.summary import validate_risk_scale
from flood_stats.errors import ConfigError


@dataclass(frozen=True)
class ModelDefinition:
    field: str
    label: str
    model_type: Optional[str] = None


@dataclass(frozen=True)
class ScenarioSettings:
    scenario: Scenario
    title: str
    return_period: str
    aggregate_field: str
    models: tuple[ModelDefinition, ...] = ()


@dataclass(frozen=True)
class GroupingField:
    field: str
    label: str
    value_labels: dict[str, str] = dataclasses.field(default_factory=dict)


@dataclass(frozen=True)
class EngineSettings:
    unit_length_km: float
    default_metric: Metric
    default_max_categories: CategoryLimit
    max_category_presets: tuple[CategoryLimit, ...]
    other_label: str
    risk_scale: RiskScale
    features: tuple[FeatureDefinition, ...]
    grouping_fields: tuple[GroupingField, ...] = ()
    scenarios: tuple[ScenarioSettings, ...] = ()

    def feature(self, field_name: str) -> FeatureDefinition:
        for feature in self.features:
            if feature.field == field_name:
                return feature
        raise ConfigError(
            f"Unknown feature field: {field_name!r}.",
            context={"available": [feature.field for feature in self.features]},
        )

    def features_for_scenario(
        self, scenario: Union[Scenario, str]
    ) -> tuple[FeatureDefinition, ...]:
        key = parse_scenario(scenario)
        return tuple(feature for feature in self.features if feature.scenario == key)

    def grouping_field(self, field_name: str) -> Optional[GroupingField]:
        for grouping in self.grouping_fields:
            if grouping.field == field_name:
                return grouping
        return None

    def grouping_label(self, field_name: str) -> str:
        grouping = self.grouping_field(field_name)
        return field_name if grouping is None else grouping.label

    def value_labels(self, field_name: str) -> dict[str, str]:
        grouping = self.grouping_field(field_name)
        return {} if grouping is None else dict(grouping.value_labels)

    def scenario_settings(self, scenario: Union[Scenario, str]) -> ScenarioSettings:
        key = parse_scenario(scenario)
        for entry in self.scenarios:
            if entry.scenario == key:
                return entry
        raise ConfigError(f"Scenario {key.value!r} is not configured.")


def _require_mapping(value: Any, label: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"{label} must be a mapping.")
    return value


def _require_list(value: Any, label: str) -> Sequence[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ConfigError(f"{label} must be a list.")
    return value


def _require_text(entry: Mapping[str, Any], key: str, label: str) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{label}.{key} must be a non-empty string.")
    return value.strip()


def _parse_scenario(value: Any, label: str) -> Scenario:
    return parse_scenario(value, f"{label}.scenario")


def _parse_features(raw: Any) -> tuple[FeatureDefinition, ...]:
    features: list[FeatureDefinition] = []
    seen: set[str] = set()
    for index, item in enumerate(_require_list(raw, "engine.features")):
        label = f"engine.features[{index}]"
        entry = _require_mapping(item, label)
        field_name = _require_text(entry, "field", label)
        if field_name in seen:
            raise ConfigError(f"Duplicate feature field: {field_name!r}.")
        seen.add(field_name)
        features.append(
            FeatureDefinition(
                field=field_name,
                label=_require_text(entry, "label", label),
                scenario=_parse_scenario(entry.get("scenario"), label),
                description=str(entry.get("description") or ""),
            )
        )
    return tuple(features)


def _parse_grouping_fields(raw: Any) -> tuple[GroupingField, ...]:
    groupings: list[GroupingField] = []
    for index, item in enumerate(_require_list(raw, "engine.grouping_fields")):
        label = f"engine.grouping_fields[{index}]"
        entry = _require_mapping(item, label)
        labels = _require_mapping(entry.get("value_labels"), f"{label}.value_labels")
        groupings.append(
            GroupingField(
                field=_require_text(entry, "field", label),
                label=_require_text(entry, "label", label),
                value_labels={str(key): str(value) for key, value in labels.items()},
            )
        )
    return tuple(groupings)


def _parse_scenarios(raw: Any) -> tuple[ScenarioSettings, ...]:
    scenarios: list[ScenarioSettings] = []
    seen: set[Scenario] = set()
    for index, item in enumerate(_require_list(raw, "engine.scenarios")):
        label = f"engine.scenarios[{index}]"
        entry = _require_mapping(item, label)
        scenario = _parse_scenario(entry.get("scenario"), label)
        if scenario in seen:
            raise ConfigError(f"Scenario {scenario.value!r} is configured twice.")
        seen.add(scenario)
        models = []
        for model_index, model in enumerate(_require_list(entry.get("models"), f"{label}.models")):
            model_label = f"{label}.models[{model_index}]"
            model_entry = _require_mapping(model, model_label)
            models.append(
                ModelDefinition(
                    field=_require_text(model_entry, "field", model_label),
                    label=_require_text(model_entry, "label", model_label),
                    model_type=model_entry.get("model_type") or None,
                )
            )
        scenarios.append(
            ScenarioSettings(
                scenario=scenario,
                title=str(entry.get("title") or ""),
                return_period=str(entry.get("return_period") or ""),
                aggregate_field=_require_text(entry, "aggregate_field", label),
                models=tuple(models),
            )
        )
    return tuple(scenarios)


def _parse_risk_scale(raw: Any) -> RiskScale:
    risk = _require_mapping(raw, "engine.risk")
    bands = []
    for index, item in enumerate(_require_list(risk.get("bands"), "engine.risk.bands")):
        entry = _require_mapping(item, f"engine.risk.bands[{index}]")
        try:
            upper = float(entry.get("upper"))
        except (TypeError, ValueError) as exc:
            raise ConfigError(
                f"engine.risk.bands[{index}].upper must be a number."
            ) from exc
        bands.append(RiskBand(upper=upper, level=str(entry.get("level") or "")))
    scale = RiskScale(bands=tuple(bands), top_level=str(risk.get("top_level") or ""))
    return validate_risk_scale(scale)


def settings_from_mapping(cfg: Mapping[str, Any]) -> EngineSettings:
    """Validate a resolved config mapping into :class:`EngineSettings`.

    Accepts either the full application config (with an ``engine`` key) or
    the engine section on its own.
    """
    cfg = _require_mapping(cfg, "config")
    engine = _require_mapping(cfg.get("engine", cfg), "engine")
    chart = _require_mapping(engine.get("chart"), "engine.chart")

    presets = tuple(
        parse_category_limit(value)
        for value in _require_list(
            chart.get("max_category_presets"), "engine.chart.max_category_presets"
        )
    )
    default_limit = parse_category_limit(chart.get("default_max_categories", "10"))
    if presets and default_limit not in presets:
        raise ConfigError(
            "engine.chart.default_max_categories must be one of the presets.",
            context={"default": default_limit, "presets": list(presets)},
        )
    other_label = str(chart.get("other_label") or "").strip()
    if not other_label:
        raise ConfigError("engine.chart.other_label must be a non-empty string.")

    return EngineSettings(
        unit_length_km=validate_unit_length(engine.get("unit_length_km")),
        default_metric=resolve_metric(chart.get("default_metric", Metric.COUNT.value)),
        default_max_categories=default_limit,
        max_category_presets=presets,
        other_label=other_label,
        risk_scale=_parse_risk_scale(engine.get("risk")),
        features=_parse_features(engine.get("features")),
        grouping_fields=_parse_grouping_fields(engine.get("grouping_fields")),
        scenarios=_parse_scenarios(engine.get("scenarios")),
    )


def default_settings() -> EngineSettings:
    """Settings built from the structured config defaults, without Hydra."""
    return settings_from_mapping(asdict(EngineConfig()))


__all__ = [
    "EngineSettings",
    "GroupingField",
    "ModelDefinition",
    "ScenarioSettings",
    "default_settings",
    "settings_from_mapping",
]
