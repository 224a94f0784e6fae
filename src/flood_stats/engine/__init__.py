"""Category aggregation and ranking engine."""

from flood_stats.engine.ingest import ingest, ingest_frame, ingest_grouped
from flood_stats.engine.metrics import derive, resolve_metric
from flood_stats.engine.pipeline import (
    ChartAggregation,
    aggregate_chart,
    aggregate_chart_for_fields,
)
from flood_stats.engine.ranking import parse_category_limit, rank
from flood_stats.engine.series import build, collapse_to_pie, relabel
from flood_stats.engine.summary import (
    classify_risk,
    compare_scenarios,
    summarize,
    summarize_network,
)

__all__ = [
    "ChartAggregation",
    "aggregate_chart",
    "aggregate_chart_for_fields",
    "build",
    "classify_risk",
    "collapse_to_pie",
    "compare_scenarios",
    "derive",
    "ingest",
    "ingest_frame",
    "ingest_grouped",
    "parse_category_limit",
    "rank",
    "relabel",
    "resolve_metric",
    "summarize",
    "summarize_network",
]
