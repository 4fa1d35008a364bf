from __future__ import annotations

import uuid
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from studioboard.core.dependencies import get_authorized_workspace, get_provider, remote_http_error
from studioboard.core.errors import RemoteStoreError, format_remote_error
from studioboard.modules.board.mappers import projects_from_rows
from studioboard.modules.clients.router import clean_client_values
from studioboard.modules.clients.schemas import ClientOut
from studioboard.provider.base import DataProvider
from studioboard.services.workspace import Workspace
from .schemas import (
    ChecklistItem,
    ChecklistItemCreate,
    ChecklistItemUpdate,
    ProjectCreate,
    ProjectOut,
    ProjectUpdate,
)

router = APIRouter()

REQUIRED_FIELDS_MESSAGE = "Por favor, preencha os campos obrigatórios (Título, Cliente e Etapa)."


# =============== Helpers ===============
def _get_project_or_404(ws: Workspace, project_id: str) -> ProjectOut:
    project = ws.find_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Projeto não encontrado")
    return project


async def save_project_fields(
    provider: DataProvider, ws: Workspace, project_id: str, values: Dict[str, Any]
) -> ProjectOut:
    """Grava campos do projeto no banco e espelha o resultado no workspace."""
    _get_project_or_404(ws, project_id)
    if "checklist" in values and values["checklist"] is not None:
        values["checklist"] = [
            item.model_dump() if isinstance(item, ChecklistItem) else dict(item) for item in values["checklist"]
        ]
    try:
        rows = await provider.update("projects", values, eq={"id": project_id})
    except RemoteStoreError as e:
        raise remote_http_error(e) from e
    if not rows:
        raise HTTPException(status_code=404, detail="Projeto não encontrado")

    updated = projects_from_rows(rows)[0]
    ws.replace_project(updated)
    return updated


# =============== PROJETOS ===============
@router.get("", response_model=List[ProjectOut])
async def list_projects(ws: Workspace = Depends(get_authorized_workspace)):
    return ws.display_projects()


@router.get("/{project_id}", response_model=ProjectOut)
async def get_project(project_id: str, ws: Workspace = Depends(get_authorized_workspace)):
    project = _get_project_or_404(ws, project_id)
    ws.selected_project_id = project.id
    return project


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    # validação do formulário antes de qualquer chamada ao banco
    has_client = bool(payload.client_id) or bool(payload.new_client and payload.new_client.name.strip())
    if not payload.title.strip() or not has_client or not payload.column_id:
        raise HTTPException(status_code=400, detail=REQUIRED_FIELDS_MESSAGE)

    target_column = ws.find_column(payload.column_id)
    if not target_column:
        raise HTTPException(status_code=400, detail="Erro: Etapa não encontrada.")

    client_id = payload.client_id
    if payload.new_client is not None and payload.new_client.name.strip():
        try:
            created = await provider.insert(
                "clients", [{**clean_client_values(payload.new_client.model_dump()), "owner_id": ws.user_id}]
            )
        except RemoteStoreError as e:
            raise HTTPException(
                status_code=502, detail=f"Erro ao cadastrar novo cliente.\n\n{format_remote_error(e)}"
            ) from e
        if not created:
            raise HTTPException(status_code=502, detail="Erro ao cadastrar novo cliente.")
        new_client = ClientOut.model_validate(created[0])
        ws.upsert_client(new_client)
        client_id = new_client.id

    row = {
        "title": payload.title.strip(),
        "brief": payload.brief,
        "start_date": payload.start_date,
        "end_date": payload.end_date,
        "upload_link": payload.upload_link or None,
        "client_id": client_id,
        "responsible_user_ids": list(payload.responsible_user_ids),
        "checklist": [],
        "owner_id": ws.user_id,
        "stage": target_column.title,
    }
    try:
        rows = await provider.insert("projects", [row])
    except RemoteStoreError as e:
        raise HTTPException(
            status_code=502, detail=f"Erro ao salvar projeto: {format_remote_error(e)}"
        ) from e
    if not rows:
        raise HTTPException(status_code=502, detail="Erro ao salvar projeto.")

    project = projects_from_rows(rows)[0]
    ws.add_project(project, column_id=target_column.id)
    return project


@router.patch("/{project_id}", response_model=ProjectOut)
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    values = payload.model_dump(exclude_unset=True)
    if "title" in values and not (values["title"] or "").strip():
        raise HTTPException(status_code=400, detail="O título do projeto é obrigatório.")
    if not values:
        return _get_project_or_404(ws, project_id)
    return await save_project_fields(provider, ws, project_id, values)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    confirm: bool = Query(False, description="Exclusão é irreversível: exige confirmação explícita"),
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    _get_project_or_404(ws, project_id)
    if not confirm:
        raise HTTPException(status_code=400, detail="Confirme a exclusão do projeto.")
    try:
        await provider.delete("projects", eq={"id": project_id})
    except RemoteStoreError as e:
        raise remote_http_error(e) from e
    ws.remove_project(project_id)
    return None


# =============== CHECKLIST ===============
@router.post("/{project_id}/checklist", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def add_checklist_item(
    project_id: str,
    payload: ChecklistItemCreate,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    project = _get_project_or_404(ws, project_id)
    item = ChecklistItem(id=f"manual-{uuid.uuid4().hex}", text=payload.text, completed=False)
    return await save_project_fields(provider, ws, project_id, {"checklist": [*project.checklist, item]})


@router.patch("/{project_id}/checklist/{item_id}", response_model=ProjectOut)
async def update_checklist_item(
    project_id: str,
    item_id: str,
    payload: ChecklistItemUpdate,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    project = _get_project_or_404(ws, project_id)
    if not any(i.id == item_id for i in project.checklist):
        raise HTTPException(status_code=404, detail="Item do checklist não encontrado")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    checklist = [i.model_copy(update=changes) if i.id == item_id else i for i in project.checklist]
    return await save_project_fields(provider, ws, project_id, {"checklist": checklist})


@router.delete("/{project_id}/checklist/{item_id}", response_model=ProjectOut)
async def delete_checklist_item(
    project_id: str,
    item_id: str,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    project = _get_project_or_404(ws, project_id)
    checklist = [i for i in project.checklist if i.id != item_id]
    if len(checklist) == len(project.checklist):
        raise HTTPException(status_code=404, detail="Item do checklist não encontrado")
    return await save_project_fields(provider, ws, project_id, {"checklist": checklist})


# =============== RESPONSÁVEIS ===============
@router.post("/{project_id}/responsibles/{user_id}", response_model=ProjectOut)
async def toggle_responsible(
    project_id: str,
    user_id: str,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    project = _get_project_or_404(ws, project_id)
    current = list(project.responsible_user_ids)
    ids = [uid for uid in current if uid != user_id] if user_id in current else [*current, user_id]
    return await save_project_fields(provider, ws, project_id, {"responsible_user_ids": ids})
