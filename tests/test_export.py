import pytest

from flood_stats.config.settings import default_settings
from flood_stats.core import ChartSeries, SeriesDataset
from flood_stats.engine.pipeline import aggregate_chart
from flood_stats.engine.summary import summarize_network
from flood_stats.export import (
    STATISTICS_COLUMNS,
    aggregation_to_dict,
    series_to_dict,
    series_to_frame,
    statistics_to_csv,
    statistics_to_dict,
    statistics_to_frame,
)


def _statistics():
    return summarize_network(
        1000,
        {
            "primary": {"future_flood_intersection_m": 100, "cfram_f_m_0010": 60},
            "secondary": {"future_flood_intersection_h": 250, "cfram_f_h_0100": 200},
        },
        default_settings(),
    )


def test_series_to_frame() -> None:
    series = ChartSeries(
        labels=("Dublin", "Cork"),
        datasets=(SeriesDataset("one", (40, 30)), SeriesDataset("two", (10, 5))),
    )

    frame = series_to_frame(series)

    assert list(frame.index) == ["Dublin", "Cork"]
    assert frame.index.name == "category"
    assert list(frame.columns) == ["one", "two"]
    assert frame.loc["Cork", "two"] == 5


def test_aggregation_to_dict(county_rows, two_features) -> None:
    aggregation = aggregate_chart(
        county_rows,
        two_features,
        metric="count",
        max_categories=1,
        unit_length_km=0.1,
    )

    payload = aggregation_to_dict(aggregation)

    assert payload["labels"] == ["Dublin", "Other"]
    assert payload["overflowed"] is True
    assert payload["totals"] == {"Dublin": 50, "Other": 35}
    assert payload["datasets"][1] == {
        "label": "Feature two",
        "field": "F2",
        "scenario": "secondary",
        "values": [10, 5],
    }
    assert series_to_dict(aggregation.series)["labels"] == payload["labels"]


def test_statistics_frame_lists_totals_then_models() -> None:
    frame = statistics_to_frame(_statistics())

    assert tuple(frame.columns) == STATISTICS_COLUMNS
    assert list(frame["Model"]) == [
        "Total",
        "CFRAM Fluvial Model",
        "Total",
        "CFRAM Fluvial Model",
    ]
    assert frame.loc[0, "Scenario"] == "RCP 8.5 Flood Scenario"
    assert frame.loc[2, "Length (km)"] == pytest.approx(10.0)


def test_statistics_to_csv_formats_values() -> None:
    lines = statistics_to_csv(_statistics()).splitlines()

    assert lines[0] == "Scenario,Model,Affected Segments,Length (km),Percentage"
    assert lines[1] == "RCP 8.5 Flood Scenario,Total,250,25.00,25.00%"
    assert lines[2] == "RCP 8.5 Flood Scenario,CFRAM Fluvial Model,200,20.00,20.00%"
    assert lines[3] == "RCP 4.5 Flood Scenario,Total,100,10.00,10.00%"


def test_statistics_to_dict_is_json_ready() -> None:
    payload = statistics_to_dict(_statistics())

    assert payload["total_segments"] == 1000
    assert payload["scenarios"][0]["scenario"] == "secondary"
    assert payload["scenarios"][1]["risk_level"] == "medium"
