"""Metrics aggregation, funnel, ranking and period comparison."""

from .aggregator import MetricsBundle, aggregate, filter_window, safe_ratio
from .comparison import MetricDelta, compare, relative_change
from .funnel import Funnel, FunnelStage, FunnelStageName, build_funnel
from .ranking import EntityStats, GroupBy, RankSort, build_team_lookup, rank

__all__ = [
    "EntityStats",
    "Funnel",
    "FunnelStage",
    "FunnelStageName",
    "GroupBy",
    "MetricDelta",
    "MetricsBundle",
    "RankSort",
    "aggregate",
    "build_funnel",
    "build_team_lookup",
    "compare",
    "filter_window",
    "rank",
    "relative_change",
    "safe_ratio",
]
