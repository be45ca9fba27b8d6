"""Record sources: adapt each schema's rows into canonical DealRecords."""

from sales_kpi.sources.base import BaseSource
from sales_kpi.sources.registry import SourceRegistry

__all__ = ["BaseSource", "SourceRegistry"]
