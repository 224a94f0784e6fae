"""Category aggregation and ranking engine for flood-risk road network statistics."""

from flood_stats.core import (
    OTHER_CATEGORY,
    UNKNOWN_CATEGORY,
    UNLIMITED,
    ChartSeries,
    FeatureDefinition,
    Metric,
    NetworkStatistics,
    Scenario,
    ScenarioStatistic,
)
from flood_stats.engine import aggregate_chart, summarize, summarize_network
from flood_stats.errors import ConfigError, FloodStatsError, ValidationError

__version__ = "0.1.0"

__all__ = [
    "OTHER_CATEGORY",
    "UNKNOWN_CATEGORY",
    "UNLIMITED",
    "ChartSeries",
    "ConfigError",
    "FeatureDefinition",
    "FloodStatsError",
    "Metric",
    "NetworkStatistics",
    "Scenario",
    "ScenarioStatistic",
    "ValidationError",
    "aggregate_chart",
    "summarize",
    "summarize_network",
    "__version__",
]
