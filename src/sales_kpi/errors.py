"""
Errors raised by sales-kpi.

Hierarchy:
    SalesKpiError (ValueError)
    ├── InvalidWindowError
    ├── UnknownPeriodError
    └── SourceError
"""


class SalesKpiError(ValueError):
    """Base class for rejected computations and unusable inputs."""


class InvalidWindowError(SalesKpiError):
    """Window bounds are inverted or incomplete."""


class UnknownPeriodError(SalesKpiError):
    """Period token is not one of the supported tokens."""

    def __init__(self, token: str, available: list[str]):
        self.token = token
        self.available = available
        super().__init__(f"Unknown period: {token}. Available: {available}")


class SourceError(SalesKpiError):
    """A record snapshot could not be fetched or parsed."""
