"""Lookup of source adapters by their source_id."""

from typing import Type

from sales_kpi.errors import SourceError
from sales_kpi.sources.attendance import AttendanceSource
from sales_kpi.sources.base import BaseSource
from sales_kpi.sources.pipeline import PipelineSource


class SourceRegistry:
    """Maps each adapter's source_id to its class."""

    _sources: dict[str, Type[BaseSource]] = {}

    @classmethod
    def register(cls, source_cls: Type[BaseSource]) -> Type[BaseSource]:
        """Add an adapter under its own source_id. Usable as a class decorator."""
        key = source_cls.source_id.lower()
        if not key:
            raise SourceError(f"{source_cls.__name__} has no source_id")
        existing = cls._sources.get(key)
        if existing is not None and existing is not source_cls:
            raise SourceError(f"Source id {key!r} already registered by {existing.__name__}")
        cls._sources[key] = source_cls
        return source_cls

    @classmethod
    def get(cls, source_id: str, **kwargs) -> BaseSource:
        """Instantiate the adapter for source_id (case-insensitive). kwargs go to its __init__."""
        source_cls = cls._sources.get(source_id.lower())
        if source_cls is None:
            raise SourceError(f"Unknown source: {source_id}. Available: {cls.available_sources()}")
        return source_cls(**kwargs)

    @classmethod
    def available_sources(cls) -> list[str]:
        """Registered source ids, in registration order."""
        return list(cls._sources)


for _source_cls in (AttendanceSource, PipelineSource):
    SourceRegistry.register(_source_cls)
