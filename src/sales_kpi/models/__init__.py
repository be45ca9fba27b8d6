"""Data models for deal records, rosters and the status taxonomy."""

from sales_kpi.models.deal import Category, DealRecord, SourceSchema
from sales_kpi.models.raw import RawRecord
from sales_kpi.models.roster import Entity, Roster
from sales_kpi.models.taxonomy import DEFAULT_TAXONOMY, StatusTaxonomy, load_taxonomy

__all__ = [
    "Category",
    "DEFAULT_TAXONOMY",
    "DealRecord",
    "Entity",
    "RawRecord",
    "Roster",
    "SourceSchema",
    "StatusTaxonomy",
    "load_taxonomy",
]
