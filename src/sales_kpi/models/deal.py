"""Canonical deal record and the canonical category set."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SourceSchema(str, Enum):
    """Source schema a record was adapted from."""

    ATTENDANCE = "attendance"
    PIPELINE = "pipeline"


class Category(str, Enum):
    """Canonical outcome category shared by both source schemas."""

    WON = "won"
    REFUNDED = "refunded"
    NEGOTIATING = "negotiating"
    NO_SHOW = "no_show"
    LOST = "lost"
    OTHER = "other"


class DealRecord(BaseModel):
    """
    Engine-facing call/deal record.
    The category is never stored here; it is derived by the classifier so that
    taxonomy changes apply to existing records.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque unique identifier")
    source_schema: SourceSchema = SourceSchema.ATTENDANCE

    closer: Optional[str] = None
    sdr: Optional[str] = None
    team_id: Optional[str] = None

    origin_id: Optional[str] = None
    origin_label: Optional[str] = None

    raw_status: str = Field(default="", description="Original status text, kept for display")
    stage_code: Optional[str] = Field(default=None, description="Pipeline stage (pipeline schema only)")
    deal_type: Optional[str] = None

    value: Decimal = Field(default=Decimal("0"), ge=0)
    occurred_at: datetime = Field(..., description="Instant used for all windowing")
