"""Distribution breakdowns: by raw status, category, origin, deal type and day."""

from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel

from sales_kpi.classification import classify_record
from sales_kpi.models.deal import Category, DealRecord
from sales_kpi.models.taxonomy import DEFAULT_TAXONOMY, StatusTaxonomy
from sales_kpi.periods import Window, window_days

from .aggregator import filter_window

NO_ORIGIN = "No origin"
NO_DEAL_TYPE = "other"


class CountBucket(BaseModel):
    label: str
    count: int


class RevenueBucket(BaseModel):
    label: str
    won_count: int = 0
    revenue: Decimal = Decimal("0")


class DailyPoint(BaseModel):
    day: date
    won_count: int = 0
    revenue: Decimal = Decimal("0")


def _scope(records: Iterable[DealRecord], window: Optional[Window]) -> list[DealRecord]:
    return filter_window(records, window) if window is not None else list(records)


def _won(records: list[DealRecord], taxonomy: StatusTaxonomy) -> list[DealRecord]:
    return [r for r in records if classify_record(r, taxonomy) == Category.WON]


def status_distribution(
    records: Iterable[DealRecord],
    window: Optional[Window] = None,
) -> list[CountBucket]:
    """Count per raw status, most frequent first (ties by status text)."""
    counts = Counter(r.raw_status for r in _scope(records, window))
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [CountBucket(label=status, count=count) for status, count in ordered]


def category_distribution(
    records: Iterable[DealRecord],
    window: Optional[Window] = None,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> dict[Category, int]:
    """Count per canonical category; every category is present."""
    counts = {c: 0 for c in Category}
    for record in _scope(records, window):
        counts[classify_record(record, taxonomy)] += 1
    return counts


def _group_revenue(records: list[DealRecord], label_of) -> dict[str, RevenueBucket]:
    buckets: dict[str, RevenueBucket] = {}
    for record in records:
        label = label_of(record)
        bucket = buckets.setdefault(label, RevenueBucket(label=label))
        bucket.won_count += 1
        bucket.revenue += record.value
    return buckets


def revenue_by_origin(
    records: Iterable[DealRecord],
    window: Optional[Window] = None,
    limit: Optional[int] = 8,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> list[RevenueBucket]:
    """Won revenue per lead origin, highest revenue first, top `limit`."""
    won = _won(_scope(records, window), taxonomy)
    buckets = _group_revenue(won, lambda r: r.origin_label or r.origin_id or NO_ORIGIN)
    ordered = sorted(buckets.values(), key=lambda b: b.revenue, reverse=True)
    return ordered[:limit] if limit is not None else ordered


def revenue_by_deal_type(
    records: Iterable[DealRecord],
    window: Optional[Window] = None,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> list[RevenueBucket]:
    """Won deals per negotiation type, most deals first."""
    won = _won(_scope(records, window), taxonomy)
    buckets = _group_revenue(won, lambda r: r.deal_type or NO_DEAL_TYPE)
    return sorted(buckets.values(), key=lambda b: b.won_count, reverse=True)


def daily_revenue(
    records: Iterable[DealRecord],
    window: Window,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> list[DailyPoint]:
    """
    One point per calendar day of window, zero-filled. Records are bucketed by
    their date in the window's timezone, so the series sums to the window's revenue.
    """
    points = {day: DailyPoint(day=day) for day in window_days(window)}
    for record in _won(filter_window(records, window), taxonomy):
        point = points[window.localize(record.occurred_at).date()]
        point.won_count += 1
        point.revenue += record.value
    return list(points.values())
