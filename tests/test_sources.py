"""Unit tests for source adapters and row parsing."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

from sales_kpi.classification import classify_record
from sales_kpi.errors import SourceError
from sales_kpi.models.deal import Category, SourceSchema
from sales_kpi.models.raw import RawRecord
from sales_kpi.sources.attendance import AttendanceSource
from sales_kpi.sources.parsers import first_text, parse_date, parse_money, parse_time
from sales_kpi.sources.pipeline import PipelineSource


class TestParseMoney:
    """Tests for parse_money."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("R$ 1.234,56", Decimal("1234.56")),
            ("1,234.56", Decimal("1234.56")),
            ("1234.5", Decimal("1234.5")),
            ("350,00", Decimal("350.00")),
            (2500, Decimal("2500")),
            (19.9, Decimal("19.9")),
            ("", Decimal("0")),
            (None, Decimal("0")),
        ],
    )
    def test_formats(self, value, expected: Decimal) -> None:
        """Brazilian and US formatted amounts both parse."""
        assert parse_money(value) == expected

    def test_negative_becomes_zero(self, caplog: pytest.LogCaptureFixture) -> None:
        """Negative amounts are invalid and logged."""
        assert parse_money("-10", "x-1") == Decimal("0")
        assert "x-1" in caplog.text

    def test_garbage_becomes_zero(self) -> None:
        """Unparseable text becomes zero."""
        assert parse_money("a combinar") == Decimal("0")

    def test_bool_ignored(self) -> None:
        """Booleans are not amounts."""
        assert parse_money(True) == Decimal("0")


class TestParseDate:
    """Tests for parse_date and parse_time."""

    def test_iso_with_z(self) -> None:
        """A trailing Z is read as UTC."""
        assert parse_date("2026-10-07T10:15:00Z") == datetime(2026, 10, 7, 10, 15, tzinfo=timezone.utc)

    def test_brazilian_date(self) -> None:
        """dd/mm/YYYY is accepted."""
        assert parse_date("05/10/2026") == datetime(2026, 10, 5)

    def test_empty(self) -> None:
        """Blank values parse to None."""
        assert parse_date("  ") is None
        assert parse_date(None) is None
        assert parse_date("not a date") is None

    def test_time(self) -> None:
        """Both HH:MM and HH:MM:SS are accepted."""
        assert parse_time("14:30").hour == 14
        assert parse_time("09:05:10").second == 10
        assert parse_time("") is None

    def test_first_text_skips_blank(self) -> None:
        """Blank alias values fall through to the next key."""
        assert first_text({"a": " ", "b": " x "}, "a", "b") == "x"
        assert first_text({}, "a") is None


class TestAttendanceSource:
    """Tests for AttendanceSource."""

    def test_normalize(self, raw_attendance: RawRecord) -> None:
        """Attendance fields map onto the canonical record."""
        record = AttendanceSource().normalize(raw_attendance)
        assert record.id == "at-1"
        assert record.source_schema == SourceSchema.ATTENDANCE
        assert record.closer == "Ana"
        assert record.sdr == "Bruno"
        assert record.origin_label == "Instagram"
        assert record.value == Decimal("5000")
        assert record.occurred_at == datetime(2026, 10, 5, 14, 30)
        assert classify_record(record) == Category.WON

    def test_missing_id(self, sample_attendance_row: dict[str, str]) -> None:
        """Rows without an id are rejected."""
        row = {**sample_attendance_row, "id": ""}
        with pytest.raises(SourceError, match="missing id"):
            AttendanceSource().normalize(RawRecord(data=row))

    def test_missing_date(self, sample_attendance_row: dict[str, str]) -> None:
        """Rows without a call date are rejected."""
        row = {**sample_attendance_row, "data_call": None}
        with pytest.raises(SourceError, match="no usable call date"):
            AttendanceSource().normalize(RawRecord(data=row))

    def test_load_json_skips_bad_rows(self, attendance_json_file: Path) -> None:
        """Loading keeps good rows and skips rows that cannot be adapted."""
        records = AttendanceSource().load(attendance_json_file)
        assert [r.id for r in records] == ["at-1", "at-2"]
        assert records[1].value == Decimal("0")
        assert classify_record(records[1]) == Category.NO_SHOW

    def test_skipped_row_logged_with_position(
        self, attendance_json_file: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """The warning for a rejected row names its position in the export."""
        with caplog.at_level("WARNING", logger="sales_kpi.sources.base"):
            AttendanceSource().load(attendance_json_file)
        assert "Skipping attendance row 3 of attendance.json" in caplog.text

    def test_fetch_rows_keeps_every_row(self, attendance_json_file: Path) -> None:
        """fetch_rows returns every parsed row, numbered, before any is rejected."""
        rows = AttendanceSource().fetch_rows(attendance_json_file)
        assert [r.row for r in rows] == [1, 2, 3]
        assert rows[2].location == "attendance.json"
        assert rows[2].data["id"] == "at-3"

    def test_load_csv(self, tmp_path: Path) -> None:
        """CSV exports are read by suffix."""
        path = tmp_path / "calls.csv"
        path.write_text(
            "id,closer,status,valor,data_call\n"
            'a1,Ana,Venda,"1.500,00",05/10/2026\n'
            "a2,Caio,Em negociação,,2026-10-06\n",
            encoding="utf-8",
        )
        records = AttendanceSource().load(path)
        assert len(records) == 2
        assert records[0].value == Decimal("1500.00")
        assert records[0].occurred_at == datetime(2026, 10, 5)

    def test_load_wrapped_json(self, tmp_path: Path, sample_attendance_row: dict[str, str]) -> None:
        """An object with a data key is unwrapped."""
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"data": [sample_attendance_row]}), encoding="utf-8")
        assert len(AttendanceSource().load(path)) == 1

    def test_load_invalid_json(self, tmp_path: Path) -> None:
        """Broken JSON is a SourceError."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SourceError, match="Invalid JSON"):
            AttendanceSource().load(path)

    def test_load_non_list(self, tmp_path: Path) -> None:
        """A JSON scalar is not a snapshot."""
        path = tmp_path / "scalar.json"
        path.write_text("42", encoding="utf-8")
        with pytest.raises(SourceError, match="Expected a list"):
            AttendanceSource().load(path)

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """A missing file is a SourceError."""
        with pytest.raises(SourceError, match="Failed to read"):
            AttendanceSource().load(tmp_path / "nope.json")

    def test_load_url(self, sample_attendance_row: dict[str, str]) -> None:
        """http(s) locations are fetched with httpx."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/export.json"
            return httpx.Response(200, json=[sample_attendance_row])

        client = httpx.Client(transport=httpx.MockTransport(handler))
        records = AttendanceSource(client=client).load("https://crm.example.com/export.json")
        assert [r.id for r in records] == ["at-1"]

    def test_load_url_http_error(self) -> None:
        """HTTP errors surface as SourceError."""
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        with pytest.raises(SourceError, match="Failed to fetch"):
            AttendanceSource(client=client).load("https://crm.example.com/export.json")

    @patch.object(AttendanceSource, "_fetch_text")
    def test_load_uses_fetch_text(self, mock_fetch: MagicMock, sample_attendance_row: dict[str, str]) -> None:
        """load parses whatever _fetch_text returns."""
        mock_fetch.return_value = json.dumps([sample_attendance_row, sample_attendance_row])
        records = AttendanceSource().load("any.json")
        assert len(records) == 2
        mock_fetch.assert_called_once_with("any.json")


class TestPipelineSource:
    """Tests for PipelineSource."""

    def test_normalize(self, sample_pipeline_row: dict[str, str]) -> None:
        """Pipeline fields map onto the canonical record."""
        record = PipelineSource().normalize(RawRecord(data=sample_pipeline_row))
        assert record.source_schema == SourceSchema.PIPELINE
        assert record.stage_code == "ganho"
        assert record.raw_status == "Em negociação"
        assert record.origin_label == "Google"
        assert record.origin_id == "org-2"
        assert record.deal_type == "pix"
        assert record.value == Decimal("3000")
        assert record.occurred_at == datetime(2026, 10, 7, 10, 15, tzinfo=timezone.utc)

    def test_stage_drives_category(self, sample_pipeline_row: dict[str, str]) -> None:
        """The stage code, not the status text, decides the category."""
        record = PipelineSource().normalize(RawRecord(data=sample_pipeline_row))
        assert classify_record(record) == Category.WON

    def test_sale_value_preferred(self, sample_pipeline_row: dict[str, str]) -> None:
        """valor_venda wins over valor_potencial."""
        row = {**sample_pipeline_row, "valor_venda": "2.750,00"}
        record = PipelineSource().normalize(RawRecord(data=row))
        assert record.value == Decimal("2750.00")

    def test_status_falls_back_to_stage(self, sample_pipeline_row: dict[str, str]) -> None:
        """Without a status, the stage is kept as display text."""
        row = {k: v for k, v in sample_pipeline_row.items() if k != "status"}
        record = PipelineSource().normalize(RawRecord(data=row))
        assert record.raw_status == "ganho"

    def test_missing_created_at(self, sample_pipeline_row: dict[str, str]) -> None:
        """Rows without a creation date are rejected."""
        row = {**sample_pipeline_row, "created_at": ""}
        with pytest.raises(SourceError, match="no usable creation date"):
            PipelineSource().normalize(RawRecord(data=row))
