"""Tabular and JSON views of chart series and network statistics."""

from __future__ import annotations

from typing import Any

import pandas as pd

from flood_stats.core import ChartSeries, NetworkStatistics, canonicalize
from flood_stats.engine.pipeline import ChartAggregation

STATISTICS_COLUMNS = (
    "Scenario",
    "Model",
    "Affected Segments",
    "Length (km)",
    "Percentage",
)
TOTAL_ROW_LABEL = "Total"


def series_to_frame(series: ChartSeries) -> pd.DataFrame:
    """One row per category label, one column per dataset."""
    frame = pd.DataFrame(
        {index: list(dataset.values) for index, dataset in enumerate(series.datasets)},
        index=pd.Index(list(series.labels), name="category"),
    )
    frame.columns = [dataset.series_label for dataset in series.datasets]
    return frame


def series_to_dict(series: ChartSeries) -> dict[str, Any]:
    return {
        "labels": list(series.labels),
        "datasets": [
            {
                "label": dataset.series_label,
                "field": dataset.feature_field,
                "scenario": None if dataset.scenario is None else dataset.scenario.value,
                "values": list(dataset.values),
            }
            for dataset in series.datasets
        ],
    }


def aggregation_to_dict(aggregation: ChartAggregation) -> dict[str, Any]:
    payload = series_to_dict(aggregation.series)
    payload["chart_type"] = aggregation.chart_type
    payload["overflowed"] = aggregation.ranked.overflowed
    payload["totals"] = {
        label: aggregation.buckets[label].total
        for label in aggregation.ranked.ordered_labels
    }
    return payload


def statistics_to_frame(statistics: NetworkStatistics) -> pd.DataFrame:
    """Scenario total rows followed by their model breakdown rows."""
    rows: list[tuple[str, str, int, float, float]] = []
    for scenario in statistics.scenarios:
        title = scenario.title or scenario.scenario.value
        total = scenario.total_affected
        rows.append((title, TOTAL_ROW_LABEL, total.count, total.length_km, total.percentage))
        for model in scenario.model_breakdown:
            rows.append((title, model.label, model.count, model.length_km, model.percentage))
    return pd.DataFrame(rows, columns=list(STATISTICS_COLUMNS))


def statistics_to_csv(statistics: NetworkStatistics) -> str:
    frame = statistics_to_frame(statistics)
    frame["Length (km)"] = frame["Length (km)"].map(lambda value: f"{value:.2f}")
    frame["Percentage"] = frame["Percentage"].map(lambda value: f"{value:.2f}%")
    return frame.to_csv(index=False, lineterminator="\n")


def statistics_to_dict(statistics: NetworkStatistics) -> dict[str, Any]:
    return canonicalize(statistics)


__all__ = [
    "STATISTICS_COLUMNS",
    "TOTAL_ROW_LABEL",
    "aggregation_to_dict",
    "series_to_dict",
    "series_to_frame",
    "statistics_to_csv",
    "statistics_to_dict",
    "statistics_to_frame",
]
