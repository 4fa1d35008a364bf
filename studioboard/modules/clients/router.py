from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from studioboard.core.dependencies import get_authorized_workspace, get_provider, remote_http_error
from studioboard.core.errors import RemoteStoreError
from studioboard.provider.base import DataProvider
from studioboard.services.workspace import Workspace
from studioboard.utils.br import blank_to_none, format_cnpj, format_cpf
from .schemas import ClientCreate, ClientOut, ClientUpdate

router = APIRouter()


def clean_client_values(values: dict) -> dict:
    out = {k: (blank_to_none(v) if isinstance(v, str) and k != "name" else v) for k, v in values.items()}
    if "name" in out and out["name"] is not None:
        out["name"] = out["name"].strip()
    if "cpf" in out:
        out["cpf"] = format_cpf(out["cpf"])
    if "cnpj" in out:
        out["cnpj"] = format_cnpj(out["cnpj"])
    return out


def _get_client_or_404(ws: Workspace, client_id: str) -> ClientOut:
    client = next((c for c in ws.clients if c.id == client_id), None)
    if not client:
        raise HTTPException(status_code=404, detail="Cliente não encontrado")
    return client


@router.get("", response_model=List[ClientOut])
async def list_clients(ws: Workspace = Depends(get_authorized_workspace)):
    return sorted(ws.clients, key=lambda c: c.name.lower())


@router.get("/{client_id}", response_model=ClientOut)
async def get_client(client_id: str, ws: Workspace = Depends(get_authorized_workspace)):
    return _get_client_or_404(ws, client_id)


@router.post("", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    values = clean_client_values(payload.model_dump())
    if not values["name"]:
        raise HTTPException(status_code=400, detail="O nome do cliente é obrigatório.")
    try:
        rows = await provider.insert("clients", [{**values, "owner_id": ws.user_id}])
    except RemoteStoreError as e:
        raise remote_http_error(e) from e

    client = ClientOut.model_validate(rows[0])
    ws.upsert_client(client)
    return client


@router.patch("/{client_id}", response_model=ClientOut)
async def update_client(
    client_id: str,
    payload: ClientUpdate,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    current = _get_client_or_404(ws, client_id)
    values = clean_client_values(payload.model_dump(exclude_unset=True))
    if "name" in values and not values["name"]:
        raise HTTPException(status_code=400, detail="O nome do cliente é obrigatório.")
    if not values:
        return current
    try:
        rows = await provider.update("clients", values, eq={"id": client_id})
    except RemoteStoreError as e:
        raise remote_http_error(e) from e
    if not rows:
        raise HTTPException(status_code=404, detail="Cliente não encontrado")

    client = ClientOut.model_validate(rows[0])
    ws.upsert_client(client)
    return client


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: str,
    confirm: bool = Query(False),
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
):
    _get_client_or_404(ws, client_id)
    if not confirm:
        raise HTTPException(status_code=400, detail="Confirme a exclusão do cliente.")
    try:
        await provider.delete("clients", eq={"id": client_id})
    except RemoteStoreError as e:
        raise remote_http_error(e) from e
    # projetos do cliente ficam com client_id órfão, como no banco
    ws.remove_client(client_id)
    return None
