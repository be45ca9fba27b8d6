"""Entity rankings (closer, SDR, team) by revenue."""

import logging
from decimal import Decimal
from enum import Enum
from typing import Iterable, Mapping, Optional

from pydantic import BaseModel

from sales_kpi.models.deal import DealRecord
from sales_kpi.models.roster import Entity
from sales_kpi.models.taxonomy import DEFAULT_TAXONOMY, StatusTaxonomy
from sales_kpi.periods import Window

from .aggregator import aggregate, filter_window, safe_ratio

logger = logging.getLogger(__name__)


class GroupBy(str, Enum):
    CLOSER = "closer"
    SDR = "sdr"
    TEAM = "team"


class RankSort(str, Enum):
    REVENUE = "revenue"
    VOLUME = "volume"


class EntityStats(BaseModel):
    """Per-entity KPIs. Zero-activity entities are reported with zero counts."""

    entity_id: str
    name: str
    team_id: Optional[str] = None
    total_count: int = 0
    attended_count: int = 0
    no_show_count: int = 0
    won_count: int = 0
    revenue: Decimal = Decimal("0")
    close_rate: float = 0.0
    attendance_rate: float = 0.0


def build_team_lookup(closers: Iterable[Entity]) -> dict[str, str]:
    """Map each closer's id and name to its team id. Closers without a team are left out."""
    lookup: dict[str, str] = {}
    for closer in closers:
        if closer.team_id:
            lookup[closer.id] = closer.team_id
            lookup[closer.name] = closer.team_id
    return lookup


def _partition(
    records: list[DealRecord],
    active: list[Entity],
    group_by: GroupBy,
    closer_teams: Mapping[str, str],
) -> dict[str, list[DealRecord]]:
    buckets: dict[str, list[DealRecord]] = {e.id: [] for e in active}
    skipped = 0
    for record in records:
        if group_by == GroupBy.TEAM:
            team_id = closer_teams.get(record.closer) if record.closer else None
            if team_id in buckets:
                buckets[team_id].append(record)
            else:
                skipped += 1
            continue

        key = record.closer if group_by == GroupBy.CLOSER else record.sdr
        for entity in active:
            if entity.owns(key):
                buckets[entity.id].append(record)
                break
        else:
            skipped += 1
    if skipped:
        logger.debug("%d records not attributed to any active %s", skipped, group_by.value)
    return buckets


def rank(
    records: Iterable[DealRecord],
    entities: Iterable[Entity],
    window: Optional[Window] = None,
    group_by: GroupBy | str = GroupBy.CLOSER,
    *,
    closer_teams: Optional[Mapping[str, str]] = None,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
    sort_by: RankSort | str = RankSort.REVENUE,
) -> list[EntityStats]:
    """
    Rank the active roster. One entry per active entity, in roster order before
    sorting; inactive entities never appear. For team grouping, records are
    attributed through closer_teams; records whose closer has no team count
    for no team.
    """
    group_by = GroupBy(group_by)
    sort_by = RankSort(sort_by)
    scoped = filter_window(records, window) if window is not None else list(records)
    active = [e for e in entities if e.active]
    buckets = _partition(scoped, active, group_by, closer_teams or {})

    ranking: list[EntityStats] = []
    for entity in active:
        bundle = aggregate(buckets[entity.id], taxonomy=taxonomy)
        ranking.append(
            EntityStats(
                entity_id=entity.id,
                name=entity.name,
                team_id=entity.id if group_by == GroupBy.TEAM else entity.team_id,
                total_count=bundle.total_count,
                attended_count=bundle.attended_count,
                no_show_count=bundle.no_show_count,
                won_count=bundle.won_count,
                revenue=bundle.won_revenue,
                close_rate=safe_ratio(bundle.won_count, bundle.attended_count),
                attendance_rate=bundle.attendance_rate,
            )
        )

    # sorted() is stable with reverse=True, so ties keep roster order
    if sort_by == RankSort.VOLUME:
        return sorted(ranking, key=lambda s: s.total_count, reverse=True)
    return sorted(ranking, key=lambda s: s.revenue, reverse=True)
