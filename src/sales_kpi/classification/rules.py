"""Classification rules: each returns (category, explanation)."""

from typing import Optional

from sales_kpi.models.deal import Category, DealRecord, SourceSchema
from sales_kpi.models.taxonomy import DEFAULT_TAXONOMY, StatusTaxonomy


def _normalize_for_match(text: Optional[str]) -> str:
    """Casefold and strip for matching; empty string if None."""
    return (text or "").casefold().strip()


def _contains_any(text: str, markers: tuple[str, ...]) -> Optional[str]:
    """Return the first marker found in text, or None."""
    for marker in markers:
        m = _normalize_for_match(marker)
        if m and m in text:
            return marker
    return None


def _equals_any(text: str, values: tuple[str, ...]) -> Optional[str]:
    """Return the first value equal to text, or None."""
    for value in values:
        if text == _normalize_for_match(value):
            return value
    return None


def _lost(taxonomy: StatusTaxonomy) -> Category:
    return Category.LOST if taxonomy.split_lost else Category.OTHER


def classify_status(
    raw_status: Optional[str],
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> tuple[Category, str]:
    """
    Classify a free-text attendance status. Rules in precedence order, first match wins:
    sale without refund -> WON; refund -> REFUNDED; payment scheduled -> NEGOTIATING;
    negotiating -> NEGOTIATING; no-show -> NO_SHOW; lost-soft -> OTHER; else OTHER.
    Never raises.
    """
    status = _normalize_for_match(raw_status)
    if not status:
        return Category.OTHER, "Empty status"

    sale = _contains_any(status, taxonomy.sale_markers)
    refunded = _contains_any(status, taxonomy.refunded_markers)
    if sale and not refunded:
        return Category.WON, f"Sale marker '{sale}'"
    if refunded:
        return Category.REFUNDED, f"Refunded marker '{refunded}'"

    scheduled = _equals_any(status, taxonomy.payment_scheduled_statuses)
    if scheduled:
        return Category.NEGOTIATING, f"Payment scheduled ('{scheduled}')"

    negotiating = _equals_any(status, taxonomy.negotiating_statuses)
    if negotiating:
        return Category.NEGOTIATING, f"Negotiating ('{negotiating}')"

    no_show = _contains_any(status, taxonomy.no_show_markers)
    if no_show:
        return Category.NO_SHOW, f"No-show marker '{no_show}'"

    lost_soft = _equals_any(status, taxonomy.lost_soft_statuses)
    if lost_soft:
        return _lost(taxonomy), f"Lost-soft ('{lost_soft}')"

    return Category.OTHER, f"Unmatched status '{raw_status.strip()}'"


def classify_stage(
    stage_code: Optional[str],
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> tuple[Category, str]:
    """
    Classify a pipeline stage code: won stages -> WON, lost stages -> OTHER
    (lost-hard), anything else -> NEGOTIATING.

    The stage alone decides, so a pipeline row is never a NO_SHOW even when its
    free-text status reads "Não compareceu"; no-shows exist only in attendance
    rows. Callers that need to count pipeline no-shows must classify the status.
    """
    stage = _normalize_for_match(stage_code)
    if stage and _equals_any(stage, taxonomy.won_stages):
        return Category.WON, f"Won stage '{stage_code}'"
    if stage and _equals_any(stage, taxonomy.lost_stages):
        return _lost(taxonomy), f"Lost stage '{stage_code}'"
    return Category.NEGOTIATING, f"Open stage '{stage_code or ''}'"


def classify_record(
    record: DealRecord,
    taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY,
) -> Category:
    """Dispatch on the record's source schema and return its canonical category."""
    if record.source_schema == SourceSchema.PIPELINE:
        category, _ = classify_stage(record.stage_code, taxonomy)
    else:
        category, _ = classify_status(record.raw_status, taxonomy)
    return category


def classify(raw_status: Optional[str], taxonomy: StatusTaxonomy = DEFAULT_TAXONOMY) -> Category:
    """Category only, for callers that do not need the explanation."""
    category, _ = classify_status(raw_status, taxonomy)
    return category
