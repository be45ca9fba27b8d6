"""Commission per closer and SDR: a rate on realized revenue plus a bonus when the goal is met."""

from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from sales_kpi.models.deal import DealRecord
from sales_kpi.models.roster import Entity, Roster
from sales_kpi.models.taxonomy import DEFAULT_TAXONOMY, StatusTaxonomy
from sales_kpi.periods import Window

from .goals import Goal, GoalProgress, goal_progress
from .ranking import GroupBy

# Progress (percent) at which the goal counts as met and the bonus is paid
BONUS_THRESHOLD = 100.0


class CommissionSource(str, Enum):
    """Where the applied commission rate came from."""

    GOAL = "goal"
    ROSTER = "roster"


class CommissionItem(BaseModel):
    """Commission owed to one closer or SDR for the window."""

    entity_id: str
    name: str
    kind: GroupBy
    team_id: Optional[str] = None
    revenue: Decimal = Decimal("0")
    sales: int = 0
    has_goal: bool = False
    progress: float = Field(default=0.0, description="Percent of the goal that gates the bonus")
    commission_percent: Decimal = Decimal("0")
    commission_source: CommissionSource = CommissionSource.ROSTER
    base: Decimal = Field(default=Decimal("0"), description="revenue * commission_percent / 100")
    bonus: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


class CommissionReport(BaseModel):
    """Commission items, highest total first, plus the summary totals."""

    items: list[CommissionItem] = Field(default_factory=list)
    total_commission: Decimal = Decimal("0")
    total_bonus: Decimal = Decimal("0")
    with_goal: int = 0
    met_goal: int = 0


def _gating_progress(progress: GoalProgress) -> float:
    # Closers are paid on revenue, SDRs on booked sales
    if progress.kind == GroupBy.SDR:
        return progress.sales_progress
    return progress.revenue_progress


def _rate(goal: Optional[Goal], entity: Entity) -> tuple[Decimal, CommissionSource]:
    """The goal's rate wins over the roster's whenever the goal sets one, even 0."""
    if goal is not None and goal.commission_percent is not None:
        return goal.commission_percent, CommissionSource.GOAL
    return entity.commission_percent or Decimal("0"), CommissionSource.ROSTER


def _bonus(goal: Optional[Goal], entity: Entity, progress: float) -> Decimal:
    if progress < BONUS_THRESHOLD:
        return Decimal("0")
    if goal is not None and goal.bonus > 0:
        return goal.bonus
    return entity.bonus


def commission_items(
    records: Iterable[DealRecord],
    entities: Iterable[Entity],
    goals: Iterable[Goal],
    window: Window,
    group_by: GroupBy | str = GroupBy.CLOSER,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> list[CommissionItem]:
    """Commission for each active entity of one kind, in roster order."""
    group_by = GroupBy(group_by)
    entities = list(entities)
    goals = list(goals)
    by_id = {e.id: e for e in entities}
    goal_of = {g.entity_id: g for g in goals if g.kind == group_by}

    items: list[CommissionItem] = []
    for p in goal_progress(records, entities, goals, window, group_by, taxonomy):
        entity = by_id[p.entity_id]
        goal = goal_of.get(p.entity_id)
        percent, source = _rate(goal, entity)
        progress = _gating_progress(p)
        base = p.realized_revenue * percent / 100
        bonus = _bonus(goal, entity, progress)
        items.append(
            CommissionItem(
                entity_id=entity.id,
                name=entity.name,
                kind=group_by,
                team_id=entity.team_id,
                revenue=p.realized_revenue,
                sales=p.realized_sales,
                has_goal=goal is not None,
                progress=progress,
                commission_percent=percent,
                commission_source=source,
                base=base,
                bonus=bonus,
                total=base + bonus,
            )
        )
    return items


def commission_report(
    records: Iterable[DealRecord],
    roster: Roster,
    goals: Iterable[Goal],
    window: Window,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> CommissionReport:
    """
    Commission for every active closer and SDR in the roster, sorted by total
    descending (ties keep closers before SDRs, each in roster order).
    """
    snapshot = list(records)
    goals = list(goals)
    items = commission_items(snapshot, roster.closers, goals, window, GroupBy.CLOSER, taxonomy)
    items += commission_items(snapshot, roster.sdrs, goals, window, GroupBy.SDR, taxonomy)
    items = sorted(items, key=lambda i: i.total, reverse=True)

    return CommissionReport(
        items=items,
        total_commission=sum((i.total for i in items), Decimal("0")),
        total_bonus=sum((i.bonus for i in items), Decimal("0")),
        with_goal=sum(1 for i in items if i.has_goal),
        met_goal=sum(1 for i in items if i.progress >= BONUS_THRESHOLD),
    )
