from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from studioboard.core.config import settings
from studioboard.core.dependencies import (
    get_optional_session,
    get_provider,
    get_registry,
    oauth2_scheme,
    remote_http_error,
)
from studioboard.core.errors import AuthError, ConnectivityError, RemoteAuthorizationError, RemoteStoreError
from studioboard.provider.base import AuthSession, DataProvider
from studioboard.services.workspace import Workspace, WorkspaceRegistry
from .gate import affordances, gate_state, login_error_message
from .schemas import (
    ConnectionOut,
    GateOut,
    LoginRequest,
    PasswordResetRequest,
    RegisterRequest,
    TokenOut,
)

router = APIRouter()

REGISTER_MESSAGE = (
    "Cadastro recebido com sucesso! Por medidas de segurança, seu acesso passará por uma "
    "validação administrativa. Você será notificado assim que sua conta for ativada."
)


def _gate(session: Optional[AuthSession], ws: Optional[Workspace]) -> GateOut:
    access = ws.access if ws is not None else None
    state = gate_state(session, access)
    if session is None:
        return GateOut(state=state, actions=affordances(state, None))
    profile = ws.current_profile if ws is not None else None
    return GateOut(
        state=state,
        name=(profile.name if profile else None) or session.user.email,
        email=session.user.email,
        role=access.role if access else None,
        is_master=bool(access and access.is_master),
        actions=affordances(state, access),
    )


async def _loaded_workspace(registry: WorkspaceRegistry, session: AuthSession) -> Workspace:
    ws = registry.ensure(session)
    if not ws.loaded:
        try:
            await registry.refresh(ws)
        except RemoteStoreError as e:
            raise remote_http_error(e) from e
    return ws


def _auth_http_error(e: RemoteStoreError) -> HTTPException:
    if isinstance(e, ConnectivityError):
        return HTTPException(status_code=503, detail=login_error_message("failed to fetch"))
    if isinstance(e, AuthError):
        code = 401 if "invalid login" in e.message.lower() else 400
        return HTTPException(status_code=code, detail=login_error_message(e.message))
    return remote_http_error(e)


@router.post("/login", response_model=TokenOut)
async def login(
    payload: LoginRequest,
    provider: DataProvider = Depends(get_provider),
    registry: WorkspaceRegistry = Depends(get_registry),
):
    try:
        session = await provider.sign_in_with_password(payload.email, payload.password)
    except RemoteStoreError as e:
        raise _auth_http_error(e) from e

    ws = await _loaded_workspace(registry, session)
    return TokenOut(access_token=session.access_token, expires_at=session.expires_at, gate=_gate(session, ws))


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    provider: DataProvider = Depends(get_provider),
    registry: WorkspaceRegistry = Depends(get_registry),
):
    # cadastro público entra sempre como Free e bloqueado
    try:
        await provider.sign_up(
            payload.email,
            payload.password,
            {"name": payload.name, "role": "Free", "approved": False},
        )
        session = await provider.sign_in_with_password(payload.email, payload.password)
    except RemoteStoreError as e:
        raise _auth_http_error(e) from e

    ws = await _loaded_workspace(registry, session)
    return TokenOut(
        access_token=session.access_token,
        expires_at=session.expires_at,
        gate=_gate(session, ws),
        message=REGISTER_MESSAGE,
    )


@router.post("/logout", response_model=GateOut)
async def logout(
    token: Optional[str] = Depends(oauth2_scheme),
    provider: DataProvider = Depends(get_provider),
):
    await provider.sign_out(token)
    return _gate(None, None)


@router.get("/gate", response_model=GateOut)
async def gate(
    session: Optional[AuthSession] = Depends(get_optional_session),
    registry: WorkspaceRegistry = Depends(get_registry),
):
    if session is None:
        return _gate(None, None)
    return _gate(session, await _loaded_workspace(registry, session))


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
async def password_reset(payload: PasswordResetRequest, provider: DataProvider = Depends(get_provider)):
    try:
        await provider.reset_password_for_email(payload.email, settings.PASSWORD_RESET_REDIRECT)
    except RemoteStoreError as e:
        raise remote_http_error(e) from e
    return {"detail": "Se o e-mail estiver cadastrado, um link de acesso foi enviado."}


@router.get("/connection", response_model=ConnectionOut)
async def connection(provider: DataProvider = Depends(get_provider)):
    try:
        await provider.count("projects")
    except RemoteAuthorizationError:
        # bloqueio de permissão ainda prova que o banco respondeu
        return ConnectionOut(status="connected")
    except RemoteStoreError as e:
        return ConnectionOut(status="error", detail=e.message)
    return ConnectionOut(status="connected")
