"""Goal (sales/revenue target) progress per closer or SDR."""

from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for goal loading. Run: poetry install"
    ) from e
from pydantic import AliasChoices, BaseModel, Field

from sales_kpi.models.deal import DealRecord
from sales_kpi.models.roster import Entity
from sales_kpi.models.taxonomy import DEFAULT_TAXONOMY, StatusTaxonomy
from sales_kpi.periods import Window

from .ranking import GroupBy, rank

# Progress (percent) at or above which an entity is "close" to its goal
CLOSE_THRESHOLD = 80.0


class GoalStatus(str, Enum):
    MET = "met"
    CLOSE = "close"
    BEHIND = "behind"
    NO_GOAL = "no_goal"


class Goal(BaseModel):
    """Monthly target for one entity, optionally with the commission terms tied to it."""

    entity_id: str = Field(..., validation_alias=AliasChoices("entity_id", "referencia_id"))
    kind: GroupBy = Field(default=GroupBy.CLOSER, validation_alias=AliasChoices("kind", "tipo"))
    sales_target: int = Field(default=0, ge=0, validation_alias=AliasChoices("sales_target", "meta_vendas"))
    revenue_target: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("revenue_target", "meta_receita"),
    )
    commission_percent: Optional[Decimal] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("commission_percent", "comissao_percentual"),
    )
    bonus: Decimal = Field(default=Decimal("0"), ge=0, validation_alias=AliasChoices("bonus", "bonus_extra"))


class GoalProgress(BaseModel):
    entity_id: str
    name: str
    kind: GroupBy
    sales_target: int = 0
    revenue_target: Decimal = Decimal("0")
    realized_sales: int = 0
    realized_revenue: Decimal = Decimal("0")
    sales_progress: float = Field(default=0.0, description="Percent of sales target")
    revenue_progress: float = Field(default=0.0, description="Percent of revenue target")
    status: GoalStatus = GoalStatus.NO_GOAL


def load_goals(path: str | Path) -> list[Goal]:
    """
    Load goals from a YAML list (keys: entity_id, kind, sales_target, revenue_target,
    commission_percent, bonus; the source column names are accepted as aliases).
    """
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or []
    if isinstance(data, dict):
        data = data.get("goals") or []
    return [Goal.model_validate(item) for item in data]


def _percent(realized, target) -> float:
    return float(realized) / float(target) * 100 if target else 0.0


def _status(goal: Optional[Goal], sales_progress: float, revenue_progress: float) -> GoalStatus:
    if goal is None:
        return GoalStatus.NO_GOAL
    best = max(sales_progress, revenue_progress)
    if best >= 100:
        return GoalStatus.MET
    if best >= CLOSE_THRESHOLD:
        return GoalStatus.CLOSE
    return GoalStatus.BEHIND


def goal_progress(
    records: Iterable[DealRecord],
    entities: Iterable[Entity],
    goals: Iterable[Goal],
    window: Window,
    group_by: GroupBy | str = GroupBy.CLOSER,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> list[GoalProgress]:
    """
    Realized sales and revenue against each active entity's goal, in roster order.
    Entities without a goal are reported with status no_goal.
    """
    group_by = GroupBy(group_by)
    entities = list(entities)
    by_entity = {g.entity_id: g for g in goals if g.kind == group_by}
    stats = {s.entity_id: s for s in rank(records, entities, window, group_by, taxonomy=taxonomy)}

    progress: list[GoalProgress] = []
    for entity in entities:
        if entity.id not in stats:
            continue
        s = stats[entity.id]
        goal = by_entity.get(entity.id)
        sales_target = goal.sales_target if goal else 0
        revenue_target = goal.revenue_target if goal else Decimal("0")
        sales_pct = _percent(s.won_count, sales_target)
        revenue_pct = _percent(s.revenue, revenue_target)
        progress.append(
            GoalProgress(
                entity_id=entity.id,
                name=entity.name,
                kind=group_by,
                sales_target=sales_target,
                revenue_target=revenue_target,
                realized_sales=s.won_count,
                realized_revenue=s.revenue,
                sales_progress=sales_pct,
                revenue_progress=revenue_pct,
                status=_status(goal, sales_pct, revenue_pct),
            )
        )
    return progress
