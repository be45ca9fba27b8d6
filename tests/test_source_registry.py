"""Unit tests for SourceRegistry."""

import pytest

from sales_kpi.errors import SourceError
from sales_kpi.models.deal import DealRecord
from sales_kpi.models.raw import RawRecord
from sales_kpi.sources import BaseSource, SourceRegistry
from sales_kpi.sources.attendance import AttendanceSource


class _CrmSource(BaseSource):
    source_id = "CRM"

    def normalize(self, raw: RawRecord) -> DealRecord:
        raise SourceError("not used")


@pytest.fixture
def isolated_registry(monkeypatch: pytest.MonkeyPatch) -> None:
    """Register test adapters on a copy so other tests see the stock registry."""
    monkeypatch.setattr(SourceRegistry, "_sources", dict(SourceRegistry._sources))


class TestSourceRegistry:
    """Tests for SourceRegistry."""

    def test_get_attendance(self) -> None:
        """Registry returns the attendance adapter for 'attendance'."""
        source = SourceRegistry.get("attendance")
        assert source.source_id == "attendance"

    def test_get_pipeline(self) -> None:
        """Registry returns the pipeline adapter for 'pipeline'."""
        source = SourceRegistry.get("pipeline")
        assert source.source_id == "pipeline"

    def test_get_case_insensitive(self) -> None:
        """Registry is case-insensitive."""
        assert SourceRegistry.get("Pipeline").source_id == "pipeline"

    def test_unknown_source_raises(self) -> None:
        """Unknown source raises SourceError listing what is available."""
        with pytest.raises(SourceError, match=r"Unknown source: hubspot. Available: \['attendance', 'pipeline'\]"):
            SourceRegistry.get("hubspot")

    def test_available_sources(self) -> None:
        """available_sources lists both schemas."""
        assert SourceRegistry.available_sources() == ["attendance", "pipeline"]

    def test_keys_come_from_source_id(self) -> None:
        """Every adapter is registered under its own source_id."""
        for key in SourceRegistry.available_sources():
            assert SourceRegistry.get(key).source_id == key

    @pytest.mark.usefixtures("isolated_registry")
    def test_register_new_adapter(self) -> None:
        """register adds an adapter under its lowercased source_id."""
        assert SourceRegistry.register(_CrmSource) is _CrmSource
        assert isinstance(SourceRegistry.get("crm"), _CrmSource)
        assert SourceRegistry.available_sources()[-1] == "crm"

    @pytest.mark.usefixtures("isolated_registry")
    def test_register_is_idempotent(self) -> None:
        """Registering the same class twice is a no-op."""
        SourceRegistry.register(AttendanceSource)
        assert SourceRegistry.available_sources() == ["attendance", "pipeline"]

    @pytest.mark.usefixtures("isolated_registry")
    def test_register_conflicting_id(self) -> None:
        """A second class claiming a taken id is rejected."""

        class _Impostor(AttendanceSource):
            pass

        with pytest.raises(SourceError, match="already registered by AttendanceSource"):
            SourceRegistry.register(_Impostor)

    @pytest.mark.usefixtures("isolated_registry")
    def test_register_without_id(self) -> None:
        """Adapters must declare a source_id."""

        class _Anonymous(_CrmSource):
            source_id = ""

        with pytest.raises(SourceError, match="has no source_id"):
            SourceRegistry.register(_Anonymous)
