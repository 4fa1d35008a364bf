"""
Redutor do arrastar-e-soltar do quadro.

Aplica o resultado do drag sobre as colunas/projetos em memória e devolve as
gravações a fazer no banco. A atualização local é otimista: quem chama aplica
o estado novo antes de persistir e não desfaz nada se a gravação falhar.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from studioboard.modules.projects.schemas import ProjectOut
from .schemas import ColumnOut, DragResult


@dataclass(frozen=True)
class PendingWrite:
    table: str
    row_id: str
    values: dict[str, Any]


@dataclass
class DragOutcome:
    columns: List[ColumnOut]
    projects: List[ProjectOut]
    writes: List[PendingWrite] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.writes)


def reorder_columns(columns: List[ColumnOut], from_index: int, to_index: int) -> DragOutcome:
    if not 0 <= from_index < len(columns):
        return DragOutcome(list(columns), [], [])
    new_order = list(columns)
    moved = new_order.pop(from_index)
    new_order.insert(min(to_index, len(new_order)), moved)

    # a posição exibida vira o rank persistido
    new_order = [col.model_copy(update={"order": idx}) for idx, col in enumerate(new_order)]
    writes = [PendingWrite("columns", col.id, {"order": idx}) for idx, col in enumerate(new_order)]
    return DragOutcome(new_order, [], writes)


def move_project(
    columns: List[ColumnOut],
    projects: List[ProjectOut],
    project_id: str,
    source_column_id: str,
    dest_column_id: str,
    dest_index: int,
) -> DragOutcome:
    unchanged = DragOutcome(list(columns), list(projects), [])

    # mesma coluna: a ordem interna não é persistida, então não há efeito durável
    if source_column_id == dest_column_id:
        return unchanged

    dest = next((c for c in columns if c.id == dest_column_id), None)
    pos = next((i for i, p in enumerate(projects) if p.id == project_id), None)
    if dest is None or pos is None:
        return unchanged

    new_projects = list(projects)
    new_projects[pos] = projects[pos].model_copy(update={"stage": dest.title})

    new_columns = []
    for col in columns:
        ids = [pid for pid in col.project_ids if pid != project_id]
        if col.id == dest_column_id:
            ids.insert(min(dest_index, len(ids)), project_id)
        if col.id in (source_column_id, dest_column_id) or ids != col.project_ids:
            col = col.model_copy(update={"project_ids": ids})
        new_columns.append(col)

    return DragOutcome(new_columns, new_projects, [PendingWrite("projects", project_id, {"stage": dest.title})])


def apply_drag(columns: List[ColumnOut], projects: List[ProjectOut], result: DragResult) -> DragOutcome:
    if result.destination is None:
        return DragOutcome(list(columns), list(projects), [])

    if result.type == "COLUMN":
        outcome = reorder_columns(columns, result.source.index, result.destination.index)
        outcome.projects = list(projects)
        return outcome

    return move_project(
        columns,
        projects,
        result.draggable_id,
        result.source.droppable_id,
        result.destination.droppable_id,
        result.destination.index,
    )
