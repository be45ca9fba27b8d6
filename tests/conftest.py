"""Pytest fixtures for sales-kpi tests."""

import json
from pathlib import Path

import pytest

from sales_kpi.models.raw import RawRecord
from sales_kpi.models.roster import Entity, Roster


@pytest.fixture
def sample_attendance_row() -> dict[str, str]:
    """Legacy attendance row as exported by the source system."""
    return {
        "id": "at-1",
        "nome": "Maria Souza",
        "email": "maria@example.com",
        "closer": "Ana",
        "sdr": "Bruno",
        "origem": "Instagram",
        "status": "Venda Confirmada",
        "valor": "R$ 5.000,00",
        "data_call": "2026-10-05",
        "hora_call": "14:30",
    }


@pytest.fixture
def sample_pipeline_row() -> dict[str, str]:
    """Pipeline row with an explicit stage code."""
    return {
        "id": "pl-1",
        "closer_nome": "Ana",
        "sdr_nome": "Bruno",
        "origem_nome": "Google",
        "origem_id": "org-2",
        "status": "Em negociação",
        "etapa_atual": "ganho",
        "valor_potencial": 3000,
        "tipo_negociacao": "pix",
        "created_at": "2026-10-07T10:15:00+00:00",
    }


@pytest.fixture
def raw_attendance(sample_attendance_row: dict[str, str]) -> RawRecord:
    return RawRecord(data=sample_attendance_row)


@pytest.fixture
def attendance_json_file(tmp_path: Path, sample_attendance_row: dict[str, str]) -> Path:
    """JSON export with one good row, one no-show and one row without a date."""
    rows = [
        sample_attendance_row,
        {**sample_attendance_row, "id": "at-2", "status": "Não compareceu", "valor": ""},
        {**sample_attendance_row, "id": "at-3", "data_call": ""},
    ]
    path = tmp_path / "attendance.json"
    path.write_text(json.dumps(rows), encoding="utf-8")
    return path


@pytest.fixture
def roster() -> Roster:
    """Two teams, three closers (one inactive, one without team) and two SDRs."""
    return Roster(
        teams=[
            Entity(id="t1", name="Alpha"),
            Entity(id="t2", name="Beta"),
        ],
        closers=[
            Entity(id="c1", name="Ana", team_id="t1"),
            Entity(id="c2", name="Caio", team_id="t2"),
            Entity(id="c3", name="Duda", team_id="t1", active=False),
            Entity(id="c4", name="Enzo"),
        ],
        sdrs=[
            Entity(id="s1", name="Bruno", team_id="t1"),
            Entity(id="s2", name="Carla", team_id="t2"),
        ],
    )
