"""Roster of closers, SDRs and teams used to seed rankings."""

from decimal import Decimal
from pathlib import Path
from typing import Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for roster loading. Run: poetry install"
    ) from e
from pydantic import BaseModel, Field


class Entity(BaseModel):
    """A closer, SDR or team."""

    id: str
    name: str
    active: bool = True
    team_id: Optional[str] = None
    commission_percent: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Default commission rate (percent of revenue); a goal's rate overrides it",
    )
    bonus: Decimal = Field(default=Decimal("0"), ge=0, description="Default bonus when the goal is met")

    def owns(self, key: Optional[str]) -> bool:
        """True if a record's closer/sdr value refers to this entity (by id or name)."""
        if not key:
            return False
        return key == self.id or key == self.name


class Roster(BaseModel):
    """Closers, SDRs and teams as supplied by the caller."""

    closers: list[Entity] = Field(default_factory=list)
    sdrs: list[Entity] = Field(default_factory=list)
    teams: list[Entity] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Roster":
        """
        Load roster from YAML. Each section is a list of mappings; the source
        system's column names (nome, ativo, time_id, comissao_percentual, bonus_extra)
        are accepted as aliases.
        """
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}

        def _entities(key: str) -> list[dict]:
            out: list[dict] = []
            for item in data.get(key) or []:
                if isinstance(item, str):
                    out.append({"id": item, "name": item})
                    continue
                name = item.get("name", item.get("nome"))
                entity_id = item.get("id", name)
                out.append(
                    {
                        "id": str(entity_id),
                        "name": str(name if name is not None else entity_id),
                        "active": item.get("active", item.get("ativo", True)),
                        "team_id": item.get("team_id", item.get("time_id")),
                        "commission_percent": item.get(
                            "commission_percent", item.get("comissao_percentual")
                        ),
                        "bonus": item.get("bonus", item.get("bonus_extra")) or 0,
                    }
                )
            return out

        return cls.model_validate(
            {
                "closers": _entities("closers"),
                "sdrs": _entities("sdrs"),
                "teams": _entities("teams") or _entities("times"),
            }
        )
