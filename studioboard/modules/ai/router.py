from fastapi import APIRouter, Depends, HTTPException

from studioboard.core.dependencies import get_authorized_workspace, get_gemini, get_provider
from studioboard.core.errors import GenerativeError
from studioboard.integrations.gemini_client import GeminiClient
from studioboard.modules.projects.router import save_project_fields
from studioboard.modules.projects.schemas import ProjectOut
from studioboard.provider.base import DataProvider
from studioboard.services.workspace import Workspace


router = APIRouter()


def _project_or_404(ws: Workspace, project_id: str) -> ProjectOut:
    project = ws.find_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Projeto não encontrado")
    return project


@router.post("/projects/{project_id}/checklist", response_model=ProjectOut)
async def generate_checklist(
    project_id: str,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
    gemini: GeminiClient = Depends(get_gemini),
):
    project = _project_or_404(ws, project_id)
    # falha na IA vira checklist vazio, que também é gravado
    items = await gemini.generate_checklist(project.title, project.brief or "")
    return await save_project_fields(provider, ws, project_id, {"checklist": items})


@router.post("/projects/{project_id}/script", response_model=ProjectOut)
async def generate_script(
    project_id: str,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
    gemini: GeminiClient = Depends(get_gemini),
):
    project = _project_or_404(ws, project_id)
    try:
        script = await gemini.generate_script(project.title, project.brief or "")
    except GenerativeError as e:
        raise HTTPException(status_code=502, detail=f"Falha ao gerar o roteiro. {e}") from e
    return await save_project_fields(provider, ws, project_id, {"script": script})


@router.post("/projects/{project_id}/thumbnail", response_model=ProjectOut)
async def generate_thumbnail(
    project_id: str,
    ws: Workspace = Depends(get_authorized_workspace),
    provider: DataProvider = Depends(get_provider),
    gemini: GeminiClient = Depends(get_gemini),
):
    project = _project_or_404(ws, project_id)
    try:
        image = await gemini.generate_image(project.title)
    except GenerativeError as e:
        raise HTTPException(status_code=502, detail=f"Falha ao gerar a imagem. {e}") from e
    # base64 PNG puro; a UI monta o data URL
    return await save_project_fields(provider, ws, project_id, {"thumbnail": image})
