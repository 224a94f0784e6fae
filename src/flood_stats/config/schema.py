"""Structured config schema for Hydra."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
import logging
from typing import Optional

from hydra.core.config_store import ConfigStore

_LEVEL_LABELS = {
    "5": "Very High (5)",
    "4": "High (4)",
    "3": "Medium (3)",
    "2": "Low (2)",
    "1": "Very Low (1)",
}


@dataclass
class FeatureConfig:
    field: str = ""
    label: str = ""
    scenario: str = "primary"
    description: str = ""


@dataclass
class ModelConfig:
    field: str = ""
    label: str = ""
    model_type: Optional[str] = None


@dataclass
class ScenarioConfig:
    scenario: str = "primary"
    title: str = ""
    return_period: str = ""
    # Union indicator: segment intersects any model of the scenario.
    aggregate_field: str = ""
    models: list[ModelConfig] = field(default_factory=list)


@dataclass
class GroupingFieldConfig:
    field: str = ""
    label: str = ""
    value_labels: dict[str, str] = dataclasses.field(default_factory=dict)


@dataclass
class RiskBandConfig:
    upper: float = 0.0
    level: str = ""


@dataclass
class RiskConfig:
    bands: list[RiskBandConfig] = field(
        default_factory=lambda: [
            RiskBandConfig(upper=5.0, level="low"),
            RiskBandConfig(upper=15.0, level="medium"),
            RiskBandConfig(upper=25.0, level="high"),
        ]
    )
    top_level: str = "extreme"


@dataclass
class ChartConfig:
    default_metric: str = "count"
    # Positive integer or "unlimited".
    default_max_categories: str = "10"
    max_category_presets: list[str] = field(
        default_factory=lambda: ["10", "20", "50", "unlimited"]
    )
    other_label: str = "Other"


def _default_features() -> list[FeatureConfig]:
    return [
        FeatureConfig(
            field="future_flood_intersection_m",
            label="Any Future Flood Intersection (Mid-Range, 10-20yr)",
            scenario="primary",
            description="Any segment affected by a mid-range future flood model.",
        ),
        FeatureConfig(
            field="future_flood_intersection_h",
            label="Any Future Flood Intersection (High-Range, 100-200yr)",
            scenario="secondary",
            description="Any segment affected by a high-range future flood model.",
        ),
        FeatureConfig(
            field="historic_intersection_m",
            label="Future and Historic Flood Intersection (Mid-Range, 10-20yr)",
            scenario="primary",
            description="Segments affected by both future and historic flood models under RCP 4.5.",
        ),
        FeatureConfig(
            field="historic_intersection_h",
            label="Future and Historic Flood Intersection (High-Range, 100-200yr)",
            scenario="secondary",
            description="Segments affected by both future and historic flood models under RCP 8.5.",
        ),
        FeatureConfig(
            field="cfram_f_m_0010",
            label="CFRAM Fluvial Model (Mid-Range, 10yr)",
            scenario="primary",
        ),
        FeatureConfig(
            field="cfram_c_m_0010",
            label="CFRAM Coastal Model (Mid-Range, 10yr)",
            scenario="primary",
        ),
        FeatureConfig(
            field="nifm_f_m_0020",
            label="NIFM Fluvial Model (Mid-Range, 20yr)",
            scenario="primary",
        ),
        FeatureConfig(
            field="ncfhm_c_m_0010",
            label="NCFHM Coastal Model (Mid-Range, 10yr)",
            scenario="primary",
        ),
        FeatureConfig(
            field="cfram_f_h_0100",
            label="CFRAM Fluvial Model (High-Range, 100yr)",
            scenario="secondary",
        ),
        FeatureConfig(
            field="cfram_c_h_0200",
            label="CFRAM Coastal Model (High-Range, 200yr)",
            scenario="secondary",
        ),
        FeatureConfig(
            field="nifm_f_h_0100",
            label="NIFM Fluvial Model (High-Range, 100yr)",
            scenario="secondary",
        ),
        FeatureConfig(
            field="ncfhm_c_c_0200",
            label="NCFHM Coastal Model (High-Range, 200yr)",
            scenario="secondary",
        ),
    ]


def _default_grouping_fields() -> list[GroupingFieldConfig]:
    return [
        GroupingFieldConfig(field="COUNTY", label="County"),
        GroupingFieldConfig(
            field="Criticality_Rating_Num1",
            label="Criticality Rating",
            value_labels=dict(_LEVEL_LABELS),
        ),
        GroupingFieldConfig(
            field="Subnet",
            label="Road Subnet",
            value_labels={
                "0": "Motorway/Dual Carriageway (0)",
                "1": "Engineered Pavements (1)",
                "2": "Urban Roads (2)",
                "3": "Legacy Pavements - High Traffic (3)",
                "4": "Legacy Pavements - Low Traffic (4)",
            },
        ),
        GroupingFieldConfig(
            field="Lifeline",
            label="Lifeline Route",
            value_labels={"1": "Lifeline Route", "0": "Non-lifeline Route"},
        ),
        GroupingFieldConfig(field="Route", label="Route"),
    ]


def _default_scenarios() -> list[ScenarioConfig]:
    # Higher-emission scenario first, matching the statistics carousel order.
    return [
        ScenarioConfig(
            scenario="secondary",
            title="RCP 8.5 Flood Scenario",
            return_period="100-200 year return period",
            aggregate_field="future_flood_intersection_h",
            models=[
                ModelConfig("cfram_f_h_0100", "CFRAM Fluvial Model", "fluvial"),
                ModelConfig("cfram_c_h_0200", "CFRAM Coastal Model", "coastal"),
                ModelConfig("nifm_f_h_0100", "NIFM Fluvial Model", "fluvial"),
                ModelConfig("ncfhm_c_c_0200", "NCFHM Coastal Model", "coastal"),
            ],
        ),
        ScenarioConfig(
            scenario="primary",
            title="RCP 4.5 Flood Scenario",
            return_period="10-20 year return period",
            aggregate_field="future_flood_intersection_m",
            models=[
                ModelConfig("cfram_f_m_0010", "CFRAM Fluvial Model", "fluvial"),
                ModelConfig("cfram_c_m_0010", "CFRAM Coastal Model", "coastal"),
                ModelConfig("nifm_f_m_0020", "NIFM Fluvial Model", "fluvial"),
                ModelConfig("ncfhm_c_m_0010", "NCFHM Coastal Model", "coastal"),
            ],
        ),
    ]


@dataclass
class EngineConfig:
    # Every network segment has the same fixed length.
    unit_length_km: float = 0.1
    chart: ChartConfig = field(default_factory=ChartConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    features: list[FeatureConfig] = field(default_factory=_default_features)
    grouping_fields: list[GroupingFieldConfig] = field(
        default_factory=_default_grouping_fields
    )
    scenarios: list[ScenarioConfig] = field(default_factory=_default_scenarios)


@dataclass
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)


def register_configs() -> None:
    cs = ConfigStore.instance()
    try:
        cs.store(group="schema", name="base", node=AppConfig, package="_global_")
    except Exception as exc:
        logging.getLogger(__name__).warning(
            "Hydra config store registration failed: %s", exc
        )


__all__ = [
    "AppConfig",
    "ChartConfig",
    "EngineConfig",
    "FeatureConfig",
    "GroupingFieldConfig",
    "ModelConfig",
    "RiskBandConfig",
    "RiskConfig",
    "ScenarioConfig",
    "register_configs",
]
