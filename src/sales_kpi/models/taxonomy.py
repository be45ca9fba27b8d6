"""Status taxonomy: the mapping tables from raw statuses and stage codes to categories."""

import os
from pathlib import Path
from typing import Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for taxonomy loading. Run: poetry install"
    ) from e
from pydantic import BaseModel, ConfigDict, Field

TAXONOMY_ENV_VAR = "SALES_KPI_TAXONOMY"


class StatusTaxonomy(BaseModel):
    """
    Immutable classification tables, passed explicitly into every computation.
    Markers are matched as case-insensitive substrings; statuses and stage
    codes as case-insensitive exact values.
    """

    model_config = ConfigDict(frozen=True)

    # Attendance schema (free-text status)
    sale_markers: tuple[str, ...] = ("Venda", "Sale")
    refunded_markers: tuple[str, ...] = ("Reembolsada", "Refunded")
    payment_scheduled_statuses: tuple[str, ...] = ("Pagamento agendado", "Payment scheduled")
    negotiating_statuses: tuple[str, ...] = ("Em negociação", "Negotiating")
    no_show_markers: tuple[str, ...] = ("Não compareceu", "No-show", "No show")
    lost_soft_statuses: tuple[str, ...] = ("Sem interesse", "Sem dinheiro", "No interest", "No budget")

    # Pipeline schema (stage code)
    won_stages: tuple[str, ...] = ("won", "ganho")
    lost_stages: tuple[str, ...] = ("lost", "perdido")

    split_lost: bool = Field(
        default=False,
        description="Emit Category.LOST for lost statuses/stages instead of OTHER",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "StatusTaxonomy":
        """Load taxonomy from YAML. Supports nested (attendance/pipeline) or flat structure."""
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        attendance = data.get("attendance", {})
        pipeline = data.get("pipeline", {})

        def _get(key: str, nested: dict):
            return nested.get(key, data.get(key))

        flat: dict = {}
        for key in (
            "sale_markers",
            "refunded_markers",
            "payment_scheduled_statuses",
            "negotiating_statuses",
            "no_show_markers",
            "lost_soft_statuses",
        ):
            value = _get(key, attendance)
            if value is not None:
                flat[key] = tuple(str(v) for v in value)
        for key in ("won_stages", "lost_stages"):
            value = _get(key, pipeline)
            if value is not None:
                flat[key] = tuple(str(v) for v in value)
        if data.get("split_lost") is not None:
            flat["split_lost"] = bool(data["split_lost"])
        return cls.model_validate(flat)


DEFAULT_TAXONOMY = StatusTaxonomy()


def load_taxonomy(path: Optional[str | Path] = None) -> StatusTaxonomy:
    """
    Resolve the taxonomy for a run: explicit path, else SALES_KPI_TAXONOMY env,
    else the built-in defaults.
    """
    chosen = path or os.environ.get(TAXONOMY_ENV_VAR)
    if not chosen:
        return DEFAULT_TAXONOMY
    return StatusTaxonomy.from_yaml(chosen)
