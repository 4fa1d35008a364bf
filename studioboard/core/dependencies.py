from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from studioboard.core.config import settings
from studioboard.core.errors import (
    ConnectivityError,
    RemoteAuthorizationError,
    RemoteStoreError,
    SchemaMismatchError,
    format_remote_error,
)
from studioboard.integrations.gemini_client import GeminiClient
from studioboard.provider.base import AuthSession, DataProvider
from studioboard.services.workspace import Workspace, WorkspaceRegistry

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/login", auto_error=False)


def remote_http_error(error: RemoteStoreError) -> HTTPException:
    """Erro do banco -> resposta com a mensagem pronta para o alerta da UI."""
    if isinstance(error, ConnectivityError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(error, RemoteAuthorizationError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(error, SchemaMismatchError):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=code, detail=format_remote_error(error))


def get_provider(request: Request) -> DataProvider:
    return request.app.state.provider


def get_registry(request: Request) -> WorkspaceRegistry:
    return request.app.state.workspaces


def get_gemini(request: Request) -> GeminiClient:
    return request.app.state.gemini


async def get_optional_session(
    token: Optional[str] = Depends(oauth2_scheme),
    provider: DataProvider = Depends(get_provider),
) -> Optional[AuthSession]:
    return await provider.get_session(token)


async def get_current_session(
    session: Optional[AuthSession] = Depends(get_optional_session),
) -> AuthSession:
    if session is None:
        raise HTTPException(status_code=401, detail="Sessão inválida.")
    return session


async def get_workspace(
    session: AuthSession = Depends(get_current_session),
    registry: WorkspaceRegistry = Depends(get_registry),
) -> Workspace:
    ws = registry.ensure(session)
    if not ws.loaded:
        try:
            await registry.refresh(ws)
        except RemoteStoreError as e:
            raise remote_http_error(e) from e
    return ws


async def get_authorized_workspace(ws: Workspace = Depends(get_workspace)) -> Workspace:
    if not ws.access.is_approved:
        raise HTTPException(
            status_code=403,
            detail="Seu cadastro ainda está pendente de validação pela administração.",
        )
    return ws


async def get_master_workspace(ws: Workspace = Depends(get_authorized_workspace)) -> Workspace:
    if not ws.access.is_master:
        raise HTTPException(status_code=403, detail="Apenas usuários Master podem gerenciar usuários.")
    return ws
