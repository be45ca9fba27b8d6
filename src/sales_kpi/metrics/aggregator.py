"""KPI aggregation over a record snapshot and time window."""

import logging
from decimal import Decimal
from typing import Iterable, Optional, Union

from pydantic import BaseModel, Field

from sales_kpi.classification import classify_record
from sales_kpi.models.deal import Category, DealRecord
from sales_kpi.models.taxonomy import DEFAULT_TAXONOMY, StatusTaxonomy
from sales_kpi.periods import Window

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]


def safe_ratio(numerator: Number, denominator: Number) -> float:
    """numerator / denominator, or 0.0 when the denominator is zero."""
    if not denominator:
        return 0.0
    return float(numerator) / float(denominator)


class MetricsBundle(BaseModel):
    """KPI bundle for one window. Rates are fractions in [0, 1]."""

    total_count: int = 0
    won_count: int = 0
    won_revenue: Decimal = Decimal("0")
    attended_count: int = 0
    no_show_count: int = 0
    attendance_rate: float = Field(default=0.0, description="attended / total")
    conversion_rate: float = Field(default=0.0, description="won / attended")
    average_ticket: Decimal = Field(default=Decimal("0"), description="revenue / won")


def filter_window(records: Iterable[DealRecord], window: Window) -> list[DealRecord]:
    """Records whose occurred_at falls inside window (inclusive)."""
    return [r for r in records if window.contains(r.occurred_at)]


def aggregate(
    records: Iterable[DealRecord],
    window: Optional[Window] = None,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> MetricsBundle:
    """
    Compute the KPI bundle. When window is None the records are taken as
    already scoped. Conversion is measured against attended volume, since a
    no-show can never convert.
    """
    scoped = filter_window(records, window) if window is not None else list(records)

    won_count = 0
    no_show_count = 0
    revenue = Decimal("0")
    for record in scoped:
        category = classify_record(record, taxonomy)
        if category == Category.WON:
            won_count += 1
            revenue += record.value
        elif category == Category.NO_SHOW:
            no_show_count += 1

    total = len(scoped)
    attended = total - no_show_count
    logger.debug("Aggregated %d records: %d attended, %d won", total, attended, won_count)

    return MetricsBundle(
        total_count=total,
        won_count=won_count,
        won_revenue=revenue,
        attended_count=attended,
        no_show_count=no_show_count,
        attendance_rate=safe_ratio(attended, total),
        conversion_rate=safe_ratio(won_count, attended),
        average_ticket=revenue / won_count if won_count else Decimal("0"),
    )
