from __future__ import annotations

from typing import Iterable, List

from studioboard.modules.projects.schemas import ProjectOut
from .schemas import ColumnOut

# Etapas criadas quando a tabela `columns` está vazia
DEFAULT_COLUMNS = [
    {"title": "Ideias",                  "order": 0},
    {"title": "Briefing",                "order": 1},
    {"title": "Filmagem",                "order": 2},
    {"title": "Edição",                  "order": 3},
    {"title": "Tráfego Pago",            "order": 4},
    {"title": "Inteligência Artificial", "order": 5},
    {"title": "Concluído",               "order": 6},
]


def attach_project_ids(columns: Iterable[ColumnOut], projects: Iterable[ProjectOut]) -> List[ColumnOut]:
    """
    Recalcula a lista derivada de cada coluna: ids dos projetos cujo `stage`
    é o título da coluna, na ordem em que aparecem em `projects`.
    """
    projects = list(projects)
    return [
        col.model_copy(update={"project_ids": [p.id for p in projects if p.stage == col.title]})
        for col in columns
    ]


def columns_from_rows(rows: Iterable[dict]) -> List[ColumnOut]:
    return [ColumnOut.model_validate(r) for r in rows]


def projects_from_rows(rows: Iterable[dict]) -> List[ProjectOut]:
    out = []
    for r in rows:
        data = dict(r)
        # colunas JSON podem vir nulas do banco
        data["responsible_user_ids"] = data.get("responsible_user_ids") or []
        data["checklist"] = data.get("checklist") or []
        out.append(ProjectOut.model_validate(data))
    return out
