from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from studioboard.modules.projects.schemas import ProjectOut


class ColumnOut(BaseModel):
    id: str
    title: str
    order: int
    # derivado (não persistido): recalculado a partir de projects.stage
    project_ids: List[str] = Field(default_factory=list)

    class Config:
        from_attributes = True


class DragLocation(BaseModel):
    droppable_id: str
    index: int = Field(..., ge=0)


class DragResult(BaseModel):
    """Resultado de um arrastar-e-soltar vindo do quadro."""
    type: Literal["COLUMN", "DEFAULT"] = "DEFAULT"
    draggable_id: str
    source: DragLocation
    destination: Optional[DragLocation] = None


class BoardOut(BaseModel):
    columns: List[ColumnOut]
    projects: List[ProjectOut]
    filter_mine: bool
    is_master: bool


class ViewStateIn(BaseModel):
    filter_mine: Optional[bool] = None
    view_mode: Optional[Literal["board", "calendar"]] = None
    selected_project_id: Optional[str] = None


class ViewStateOut(BaseModel):
    filter_mine: bool
    view_mode: str
    selected_project_id: Optional[str] = None
    calendar_year: Optional[int] = None
    calendar_month: Optional[int] = None


class MutationOut(BaseModel):
    table: str
    row_id: str
    values: dict
    status: str
    error: Optional[str] = None
