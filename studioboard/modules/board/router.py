from typing import List

from fastapi import APIRouter, Depends, HTTPException

from studioboard.core.dependencies import get_authorized_workspace, get_provider, get_registry, remote_http_error
from studioboard.core.errors import RemoteStoreError
from studioboard.provider.base import DataProvider
from studioboard.services.workspace import Workspace, WorkspaceRegistry, persist_writes
from .reorder import apply_drag
from .schemas import BoardOut, DragResult, MutationOut, ViewStateIn, ViewStateOut

router = APIRouter()


def board_out(ws: Workspace) -> BoardOut:
    visible = ws.display_projects()
    visible_ids = {p.id for p in visible}
    # a lista derivada completa fica no workspace; a resposta mostra só o que é visível
    columns = [
        c.model_copy(update={"project_ids": [pid for pid in c.project_ids if pid in visible_ids]})
        for c in ws.columns
    ]
    return BoardOut(columns=columns, projects=visible, filter_mine=ws.filter_mine, is_master=ws.access.is_master)


def view_out(ws: Workspace) -> ViewStateOut:
    return ViewStateOut(
        filter_mine=ws.filter_mine,
        view_mode=ws.view_mode,
        selected_project_id=ws.selected_project_id,
        calendar_year=ws.calendar_year,
        calendar_month=ws.calendar_month,
    )


@router.get("", response_model=BoardOut)
async def get_board(ws: Workspace = Depends(get_authorized_workspace)):
    return board_out(ws)


@router.post("/refresh", response_model=BoardOut)
async def refresh_board(
    ws: Workspace = Depends(get_authorized_workspace),
    registry: WorkspaceRegistry = Depends(get_registry),
):
    try:
        await registry.refresh(ws)
    except RemoteStoreError as e:
        raise remote_http_error(e) from e
    return board_out(ws)


@router.post("/drag", response_model=BoardOut)
async def drag_end(
    payload: DragResult,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    outcome = apply_drag(ws.columns, ws.projects, payload)
    if not outcome.changed:
        return board_out(ws)

    # otimista: o estado local muda antes da gravação e não é desfeito em caso de falha
    ws.columns = outcome.columns
    ws.projects = outcome.projects
    await persist_writes(provider, ws, outcome.writes)
    return board_out(ws)


@router.get("/mutations", response_model=List[MutationOut])
async def list_mutations(ws: Workspace = Depends(get_authorized_workspace)):
    return [MutationOut(table=m.table, row_id=m.row_id, values=m.values, status=m.status, error=m.error)
            for m in ws.mutations]


@router.get("/view", response_model=ViewStateOut)
async def get_view(ws: Workspace = Depends(get_authorized_workspace)):
    return view_out(ws)


@router.patch("/view", response_model=ViewStateOut)
async def update_view(payload: ViewStateIn, ws: Workspace = Depends(get_authorized_workspace)):
    if payload.filter_mine is not None:
        ws.filter_mine = payload.filter_mine
    if payload.view_mode is not None:
        ws.view_mode = payload.view_mode
    if "selected_project_id" in payload.model_fields_set:
        if payload.selected_project_id and ws.find_project(payload.selected_project_id) is None:
            raise HTTPException(status_code=404, detail="Projeto não encontrado")
        ws.selected_project_id = payload.selected_project_id
    return view_out(ws)
