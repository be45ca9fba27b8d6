"""Four-stage conversion funnel: scheduled -> attended -> negotiating -> won."""

from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from sales_kpi.classification import classify_record
from sales_kpi.models.deal import Category, DealRecord
from sales_kpi.models.taxonomy import DEFAULT_TAXONOMY, StatusTaxonomy

from .aggregator import safe_ratio


class FunnelStageName(str, Enum):
    SCHEDULED = "scheduled"
    ATTENDED = "attended"
    NEGOTIATING = "negotiating"
    WON = "won"


# Stage -> baseline stage for its conversion rate. WON is measured against
# ATTENDED so the terminal rate reads "of those who showed up, how many bought".
_BASELINES: dict[FunnelStageName, FunnelStageName] = {
    FunnelStageName.ATTENDED: FunnelStageName.SCHEDULED,
    FunnelStageName.NEGOTIATING: FunnelStageName.ATTENDED,
    FunnelStageName.WON: FunnelStageName.ATTENDED,
}


class FunnelStage(BaseModel):
    """One funnel checkpoint."""

    label: FunnelStageName
    count: int
    baseline: Optional[FunnelStageName] = None
    conversion_rate: Optional[float] = Field(
        default=None,
        description="count / baseline count; None for the first stage",
    )


class Funnel(BaseModel):
    """Ordered funnel stages plus the overall scheduled -> won conversion."""

    stages: list[FunnelStage]
    overall_conversion: float = 0.0

    def stage(self, label: FunnelStageName | str) -> FunnelStage:
        """Look up a stage by label."""
        name = FunnelStageName(label)
        for s in self.stages:
            if s.label == name:
                return s
        raise KeyError(name.value)


def build_funnel(
    records: Iterable[DealRecord],
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> Funnel:
    """
    Build the funnel over records (already scoped to a window by the caller).
    Negotiating and won are disjoint subsets of attended, not a chain.
    """
    counts = {name: 0 for name in FunnelStageName}
    for record in records:
        category = classify_record(record, taxonomy)
        counts[FunnelStageName.SCHEDULED] += 1
        if category != Category.NO_SHOW:
            counts[FunnelStageName.ATTENDED] += 1
        if category == Category.NEGOTIATING:
            counts[FunnelStageName.NEGOTIATING] += 1
        elif category == Category.WON:
            counts[FunnelStageName.WON] += 1

    stages: list[FunnelStage] = []
    for name in FunnelStageName:
        baseline = _BASELINES.get(name)
        stages.append(
            FunnelStage(
                label=name,
                count=counts[name],
                baseline=baseline,
                conversion_rate=safe_ratio(counts[name], counts[baseline]) if baseline else None,
            )
        )

    return Funnel(
        stages=stages,
        overall_conversion=safe_ratio(counts[FunnelStageName.WON], counts[FunnelStageName.SCHEDULED]),
    )
