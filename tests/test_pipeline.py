import logging

import pytest

from flood_stats.config.settings import default_settings
from flood_stats.core import OTHER_CATEGORY, UNKNOWN_CATEGORY, UNLIMITED, Scenario
from flood_stats.engine.pipeline import aggregate_chart, aggregate_chart_for_fields
from flood_stats.engine.summary import summarize
from flood_stats.errors import ConfigError, InvalidCategoryLimit, InvalidMetric


def _chart(rows, features, **kwargs):
    options = {
        "metric": "count",
        "max_categories": 10,
        "unit_length_km": 0.1,
    }
    options.update(kwargs)
    return aggregate_chart(rows, features, **options)


def test_two_categories_fit_within_limit(county_rows, two_features) -> None:
    result = _chart(county_rows, two_features, max_categories=2)

    assert result.series.labels == ("Dublin", "Cork")
    assert result.series.datasets[0].values == (40, 30)
    assert result.series.datasets[1].values == (10, 5)
    assert result.ranked.overflowed is False


def test_limit_one_folds_cork_into_other(county_rows, two_features) -> None:
    result = _chart(county_rows, two_features, max_categories=1)

    assert result.series.labels == ("Dublin", OTHER_CATEGORY)
    assert result.buckets[OTHER_CATEGORY].total == 35
    assert result.series.datasets[0].values == (40, 30)
    assert result.series.datasets[1].values == (10, 5)
    assert result.ranked.overflowed is True


def test_null_category_is_reported_as_unknown(two_features) -> None:
    result = _chart([("F1", None, 4), ("F1", "Cork", 2)], two_features)

    assert result.series.labels == (UNKNOWN_CATEGORY, "Cork")


def test_length_metric_uses_unit_length(two_features) -> None:
    result = _chart([("F1", "Dublin", 40)], two_features[:1], metric="length")

    assert result.series.datasets[0].values[0] == pytest.approx(4.0)


def test_zero_network_total_gives_zero_percentage() -> None:
    stat = summarize([], 0, 0.1, affected_count=0, scenario="primary")

    assert stat.total_affected.percentage == 0.0


def test_equal_totals_keep_input_order(two_features) -> None:
    result = _chart([("F1", "Cork", 50), ("F1", "Dublin", 50)], two_features[:1])

    assert result.series.labels == ("Cork", "Dublin")


def test_identical_inputs_give_identical_outputs(county_rows, two_features) -> None:
    first = _chart(county_rows, two_features, max_categories=1)
    second = _chart(list(county_rows), list(two_features), max_categories=1)

    assert first == second


def test_unrequested_feature_rows_are_ignored(county_rows, two_features, caplog) -> None:
    rows = [*county_rows, ("F9", "Galway", 1000)]

    with caplog.at_level(logging.WARNING, logger="flood_stats.pipeline"):
        result = _chart(rows, two_features)

    assert "Galway" not in result.series.labels
    assert any("F9" in record.getMessage() for record in caplog.records)


def test_empty_input_gives_empty_series(two_features) -> None:
    result = _chart([], two_features)

    assert result.series.labels == ()
    assert all(dataset.values == () for dataset in result.series.datasets)


def test_pie_chart_collapses_datasets(county_rows, two_features) -> None:
    result = _chart(county_rows, two_features, max_categories=1, chart_type="pie")

    assert result.series.labels == ("Dublin", OTHER_CATEGORY)
    assert result.series.datasets[0].values == (50, 35)
    assert result.chart_type == "pie"


def test_configuration_errors_propagate(county_rows, two_features) -> None:
    with pytest.raises(InvalidMetric):
        _chart(county_rows, two_features, metric="volume")
    with pytest.raises(InvalidCategoryLimit):
        _chart(county_rows, two_features, max_categories=0)
    with pytest.raises(ConfigError):
        _chart(county_rows, two_features, chart_type="radar")
    with pytest.raises(ConfigError):
        _chart(county_rows, two_features, chart_type="")


def test_route_named_other_merges_into_overflow_bucket() -> None:
    rows = [
        ("cfram_f_m_0010", "Other", 90),
        ("cfram_f_m_0010", "N1", 50),
        *[("cfram_f_m_0010", f"R{index}", 10) for index in range(12)],
    ]

    result = aggregate_chart_for_fields(
        rows, ["cfram_f_m_0010"], default_settings(), group_by="Route"
    )

    assert result.series.labels == ("N1", *[f"R{index}" for index in range(8)], OTHER_CATEGORY)
    assert result.series.datasets[0].values[-1] == 130
    assert sum(result.series.datasets[0].values) == 260
    assert result.ranked.overflowed is True


def test_aggregate_for_fields_uses_settings_defaults() -> None:
    settings = default_settings()
    rows = [
        ("cfram_f_m_0010", 5, 12),
        ("cfram_f_m_0010", 3, 20),
        ("cfram_f_h_0100", 5, 7),
    ]

    result = aggregate_chart_for_fields(
        rows,
        ["cfram_f_m_0010", "cfram_f_h_0100"],
        settings,
        group_by="Criticality_Rating_Num1",
    )

    assert result.series.labels == ("Medium (3)", "Very High (5)")
    assert result.ranked.ordered_labels == ("3", "5")
    assert result.series.datasets[0].series_label == "CFRAM Fluvial Model (Mid-Range, 10yr)"
    assert result.series.datasets[1].scenario is Scenario.SECONDARY
    assert result.series.datasets[1].values == (0, 7)


def test_aggregate_for_fields_overrides_defaults() -> None:
    settings = default_settings()
    rows = [("cfram_f_m_0010", f"Road {index}", 100 - index) for index in range(15)]

    result = aggregate_chart_for_fields(
        rows,
        ["cfram_f_m_0010"],
        settings,
        metric="totalLength",
        max_categories=UNLIMITED,
    )

    assert len(result.series.labels) == 15
    assert result.series.datasets[0].values[0] == pytest.approx(10.0)

    limited = aggregate_chart_for_fields(rows, ["cfram_f_m_0010"], settings)
    assert len(limited.series.labels) == 11
    assert limited.series.labels[-1] == OTHER_CATEGORY


def test_aggregate_for_unknown_field_raises() -> None:
    with pytest.raises(ConfigError):
        aggregate_chart_for_fields([], ["not_a_field"], default_settings())


def test_custom_other_label(county_rows, two_features) -> None:
    result = _chart(county_rows, two_features, max_categories=1, other_label="Rest")

    assert result.series.labels == ("Dublin", "Rest")
