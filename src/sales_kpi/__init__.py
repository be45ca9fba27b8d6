"""Sales operations KPI, funnel, ranking and period comparison engine."""

__version__ = "0.1.0"
