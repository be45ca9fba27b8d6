"""Current vs previous period comparison."""

from decimal import Decimal
from typing import Iterable, Union

from pydantic import BaseModel

from sales_kpi.models.deal import DealRecord
from sales_kpi.models.taxonomy import DEFAULT_TAXONOMY, StatusTaxonomy
from sales_kpi.periods import Window, previous_window

from .aggregator import MetricsBundle, aggregate


class MetricDelta(BaseModel):
    """One compared metric. unit is '%' for relative change, 'pp' for percentage points."""

    current: float
    previous: float
    change: float
    unit: str = "%"


def relative_change(current: Union[int, float, Decimal], previous: Union[int, float, Decimal]) -> float:
    """
    Percent change from previous to current. A move from zero is a full swing:
    100 when current > 0, otherwise 0.
    """
    current = float(current)
    previous = float(previous)
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def _relative(current: Union[int, Decimal], previous: Union[int, Decimal]) -> MetricDelta:
    return MetricDelta(
        current=float(current),
        previous=float(previous),
        change=relative_change(current, previous),
    )


def _conversion(current: MetricsBundle, previous: MetricsBundle) -> MetricDelta:
    # Relative change of a rate that can be zero is meaningless; report the additive delta.
    current_pct = current.conversion_rate * 100
    previous_pct = previous.conversion_rate * 100
    return MetricDelta(
        current=current_pct,
        previous=previous_pct,
        change=current_pct - previous_pct,
        unit="pp",
    )


def compare(
    records: Iterable[DealRecord],
    window: Window,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> dict[str, MetricDelta]:
    """Compare window against the immediately preceding window of equal length."""
    snapshot = list(records)
    current = aggregate(snapshot, window, taxonomy)
    previous = aggregate(snapshot, previous_window(window), taxonomy)

    return {
        "revenue": _relative(current.won_revenue, previous.won_revenue),
        "won_count": _relative(current.won_count, previous.won_count),
        "total_count": _relative(current.total_count, previous.total_count),
        "average_ticket": _relative(current.average_ticket, previous.average_ticket),
        "conversion_rate": _conversion(current, previous),
    }
