"""Dashboard orchestration: every widget's numbers for one window."""

from typing import Iterable, Optional

from pydantic import BaseModel, Field

from sales_kpi.metrics import (
    EntityStats,
    Funnel,
    GroupBy,
    MetricDelta,
    MetricsBundle,
    RankSort,
    aggregate,
    build_funnel,
    build_team_lookup,
    compare,
    filter_window,
    rank,
)
from sales_kpi.metrics.breakdowns import (
    CountBucket,
    DailyPoint,
    RevenueBucket,
    daily_revenue,
    revenue_by_deal_type,
    revenue_by_origin,
    status_distribution,
)
from sales_kpi.models.deal import DealRecord
from sales_kpi.models.roster import Roster
from sales_kpi.models.taxonomy import DEFAULT_TAXONOMY, StatusTaxonomy
from sales_kpi.periods import Window


class DashboardReport(BaseModel):
    """Everything the dashboard renders for one window."""

    window_start: str
    window_end: str
    metrics: MetricsBundle
    funnel: Funnel
    comparison: dict[str, MetricDelta]
    closer_ranking: list[EntityStats] = Field(default_factory=list)
    sdr_ranking: list[EntityStats] = Field(default_factory=list)
    team_ranking: list[EntityStats] = Field(default_factory=list)
    status_distribution: list[CountBucket] = Field(default_factory=list)
    revenue_by_origin: list[RevenueBucket] = Field(default_factory=list)
    revenue_by_deal_type: list[RevenueBucket] = Field(default_factory=list)
    daily_revenue: list[DailyPoint] = Field(default_factory=list)


def build_dashboard(
    records: Iterable[DealRecord],
    window: Window,
    *,
    roster: Optional[Roster] = None,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
    origin_limit: int = 8,
) -> DashboardReport:
    """
    Compute metrics, funnel, comparison, rankings and breakdowns for window.
    Rankings are empty when no roster is given. The comparison reads the whole
    snapshot since the previous window lies outside window.
    """
    snapshot = list(records)
    scoped = filter_window(snapshot, window)
    roster = roster or Roster()

    return DashboardReport(
        window_start=window.start.isoformat(),
        window_end=window.end.isoformat(),
        metrics=aggregate(scoped, taxonomy=taxonomy),
        funnel=build_funnel(scoped, taxonomy),
        comparison=compare(snapshot, window, taxonomy),
        closer_ranking=rank(scoped, roster.closers, group_by=GroupBy.CLOSER, taxonomy=taxonomy),
        sdr_ranking=rank(
            scoped,
            roster.sdrs,
            group_by=GroupBy.SDR,
            taxonomy=taxonomy,
            sort_by=RankSort.VOLUME,
        ),
        team_ranking=rank(
            scoped,
            roster.teams,
            group_by=GroupBy.TEAM,
            closer_teams=build_team_lookup(roster.closers),
            taxonomy=taxonomy,
        ),
        status_distribution=status_distribution(scoped),
        revenue_by_origin=revenue_by_origin(scoped, limit=origin_limit, taxonomy=taxonomy),
        revenue_by_deal_type=revenue_by_deal_type(scoped, taxonomy=taxonomy),
        daily_revenue=daily_revenue(scoped, window, taxonomy),
    )
