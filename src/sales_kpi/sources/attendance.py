"""Legacy attendance schema: flat call records with a free-text status."""

from datetime import datetime

from sales_kpi.errors import SourceError
from sales_kpi.models.deal import DealRecord, SourceSchema
from sales_kpi.models.raw import RawRecord

from .base import BaseSource
from .parsers import first_text, first_value, parse_date, parse_money, parse_time


class AttendanceSource(BaseSource):
    """
    Adapter for attendance rows. occurred_at is the call date (plus call time
    when present).
    """

    source_id = "attendance"
    schema = SourceSchema.ATTENDANCE

    def normalize(self, raw: RawRecord) -> DealRecord:
        """Convert an attendance row to DealRecord."""
        d = raw.data
        record_id = first_text(d, "id")
        if not record_id:
            raise SourceError("missing id")

        call_date = parse_date(first_value(d, "data_call", "call_date", "occurred_at"))
        if call_date is None:
            raise SourceError(f"record {record_id} has no usable call date")
        call_time = parse_time(first_value(d, "hora_call", "call_time"))
        if call_time is not None and call_date.time() == datetime.min.time():
            call_date = datetime.combine(call_date.date(), call_time, tzinfo=call_date.tzinfo)

        return DealRecord(
            id=record_id,
            source_schema=self.schema,
            closer=first_text(d, "closer", "closer_nome"),
            sdr=first_text(d, "sdr", "sdr_nome"),
            team_id=first_text(d, "team_id", "time_id"),
            origin_id=first_text(d, "origem_id", "origin_id"),
            origin_label=first_text(d, "origem", "origin", "origem_nome"),
            raw_status=first_text(d, "status") or "",
            deal_type=first_text(d, "tipo_negociacao", "deal_type"),
            value=parse_money(first_value(d, "valor", "value"), record_id),
            occurred_at=call_date,
        )
