from dataclasses import asdict

import pytest

from flood_stats.config.schema import EngineConfig
from flood_stats.config.settings import default_settings, settings_from_mapping
from flood_stats.core import UNLIMITED, Metric, Scenario
from flood_stats.errors import ConfigError, InvalidCategoryLimit, InvalidMetric, InvalidUnit


def _engine_mapping() -> dict:
    return asdict(EngineConfig())


def test_default_settings_match_built_in_config() -> None:
    settings = default_settings()

    assert settings.unit_length_km == pytest.approx(0.1)
    assert settings.default_metric is Metric.COUNT
    assert settings.default_max_categories == 10
    assert settings.max_category_presets == (10, 20, 50, UNLIMITED)
    assert settings.other_label == "Other"
    assert [scenario.scenario for scenario in settings.scenarios] == [
        Scenario.SECONDARY,
        Scenario.PRIMARY,
    ]
    assert settings.risk_scale.top_level == "extreme"


def test_feature_lookup() -> None:
    settings = default_settings()

    feature = settings.feature("nifm_f_m_0020")

    assert feature.scenario is Scenario.PRIMARY
    assert "NIFM" in feature.label
    with pytest.raises(ConfigError) as exc:
        settings.feature("missing")
    assert "missing" in str(exc.value)


def test_features_for_scenario_are_partitioned() -> None:
    settings = default_settings()

    primary = settings.features_for_scenario("primary")
    secondary = settings.features_for_scenario(Scenario.SECONDARY)

    assert len(primary) + len(secondary) == len(settings.features)
    assert all(feature.scenario is Scenario.PRIMARY for feature in primary)


def test_grouping_labels() -> None:
    settings = default_settings()

    assert settings.grouping_label("Subnet") == "Road Subnet"
    assert settings.grouping_label("UNKNOWN_FIELD") == "UNKNOWN_FIELD"
    assert settings.value_labels("Lifeline") == {"1": "Lifeline Route", "0": "Non-lifeline Route"}
    assert settings.value_labels("COUNTY") == {}


def test_scenario_settings_lookup() -> None:
    settings = default_settings()

    primary = settings.scenario_settings("primary")

    assert primary.aggregate_field == "future_flood_intersection_m"
    assert [model.model_type for model in primary.models] == [
        "fluvial",
        "coastal",
        "fluvial",
        "coastal",
    ]


def test_settings_accept_full_app_config() -> None:
    settings = settings_from_mapping({"engine": _engine_mapping()})

    assert settings == default_settings()


def test_settings_reject_duplicate_feature_fields() -> None:
    mapping = _engine_mapping()
    mapping["features"].append(dict(mapping["features"][0]))

    with pytest.raises(ConfigError) as exc:
        settings_from_mapping(mapping)

    assert "Duplicate feature field" in str(exc.value)


@pytest.mark.parametrize(
    ("path", "value", "error"),
    [
        (("unit_length_km",), 0, InvalidUnit),
        (("chart", "default_metric"), "volume", InvalidMetric),
        (("chart", "default_max_categories"), "0", InvalidCategoryLimit),
        (("chart", "default_max_categories"), "30", ConfigError),
        (("chart", "other_label"), " ", ConfigError),
    ],
)
def test_settings_validation_errors(path, value, error) -> None:
    mapping = _engine_mapping()
    target = mapping
    for key in path[:-1]:
        target = target[key]
    target[path[-1]] = value

    with pytest.raises(error):
        settings_from_mapping(mapping)


def test_settings_reject_unknown_scenario() -> None:
    mapping = _engine_mapping()
    mapping["features"][0]["scenario"] = "rcp26"

    with pytest.raises(ConfigError) as exc:
        settings_from_mapping(mapping)

    assert "rcp26" in str(exc.value)


def test_settings_reject_descending_risk_bands() -> None:
    mapping = _engine_mapping()
    mapping["risk"]["bands"] = [{"upper": 20.0, "level": "a"}, {"upper": 10.0, "level": "b"}]

    with pytest.raises(ConfigError):
        settings_from_mapping(mapping)


def test_settings_reject_duplicate_scenarios() -> None:
    mapping = _engine_mapping()
    mapping["scenarios"].append(dict(mapping["scenarios"][0]))

    with pytest.raises(ConfigError):
        settings_from_mapping(mapping)
