"""Staged pipeline schema: deals with an explicit stage code."""

from sales_kpi.errors import SourceError
from sales_kpi.models.deal import DealRecord, SourceSchema
from sales_kpi.models.raw import RawRecord

from .base import BaseSource
from .parsers import first_text, first_value, parse_date, parse_money


class PipelineSource(BaseSource):
    """Adapter for pipeline rows. occurred_at is the creation date."""

    source_id = "pipeline"
    schema = SourceSchema.PIPELINE

    def normalize(self, raw: RawRecord) -> DealRecord:
        """Convert a pipeline row to DealRecord."""
        d = raw.data
        record_id = first_text(d, "id")
        if not record_id:
            raise SourceError("missing id")

        created_at = parse_date(first_value(d, "created_at", "occurred_at"))
        if created_at is None:
            raise SourceError(f"record {record_id} has no usable creation date")

        # Closed deals carry the sale value; open ones only the potential value
        amount = first_value(d, "valor_venda", "valor_potencial", "value")

        return DealRecord(
            id=record_id,
            source_schema=self.schema,
            closer=first_text(d, "closer_nome", "closer_responsavel_nome", "closer_id", "closer"),
            sdr=first_text(d, "sdr_nome", "str_responsavel_nome", "sdr_id", "sdr"),
            team_id=first_text(d, "team_id", "time_id"),
            origin_id=first_text(d, "origem_id", "origin_id"),
            origin_label=first_text(d, "origem_nome", "origem_lead", "origin"),
            raw_status=first_text(d, "status", "etapa_atual", "stage") or "",
            stage_code=first_text(d, "etapa_atual", "stage"),
            deal_type=first_text(d, "tipo_negociacao", "deal_type"),
            value=parse_money(amount, record_id),
            occurred_at=created_at,
        )
