import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from studioboard.core.config import settings
from studioboard.core.dependencies import get_master_workspace, get_provider, remote_http_error
from studioboard.core.errors import AuthError, RemoteStoreError
from studioboard.provider.base import DataProvider
from studioboard.services.visibility import FREE_ROLE, MASTER_ROLE, is_master_email
from studioboard.services.workspace import Workspace
from studioboard.utils.br import blank_to_none, format_cpf
from .schemas import UserCreate, UserOut, UserSaveOut, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

NOTICE_UPDATED = "Usuário atualizado com sucesso."
NOTICE_APPROVED_MAILED = (
    "✅ Usuário Validado e E-mail Enviado!\n\nO sistema enviou automaticamente um e-mail para o "
    "usuário contendo um link para validar o acesso e entrar no sistema."
)
NOTICE_APPROVED_MAIL_FAILED = (
    "✅ Usuário Aprovado no Sistema!\n\n⚠️ Porém, houve um erro ao enviar o e-mail automático: {error}"
    "\n\nPor favor, avise o usuário manualmente."
)
NOTICE_CREATED_APPROVED = "✅ Usuário Criado e Validado!\n\nAs informações de acesso foram processadas."
NOTICE_INVITED = "Usuário convidado com sucesso."


def _merge_user(ws: Workspace, user: UserOut) -> None:
    if any(u.id == user.id for u in ws.users):
        ws.users = [user if u.id == user.id else u for u in ws.users]
    else:
        ws.users = [*ws.users, user]


def _get_user_or_404(ws: Workspace, user_id: str) -> UserOut:
    user = next((u for u in ws.users if u.id == user_id), None)
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")
    return user


@router.get("", response_model=List[UserOut])
async def list_users(ws: Workspace = Depends(get_master_workspace)):
    return ws.users


@router.post("", response_model=UserSaveOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    ws: Workspace = Depends(get_master_workspace),
    provider: DataProvider = Depends(get_provider),
):
    email = str(payload.email).strip().lower()
    role = payload.role or FREE_ROLE
    approved = payload.approved
    if is_master_email(email, settings.MASTER_EMAIL):
        role, approved = MASTER_ROLE, True

    profile = {
        "name": payload.name.strip(),
        "cpf": format_cpf(payload.cpf),
        "phone": blank_to_none(payload.phone),
        "role": role,
        "approved": approved,
    }
    try:
        account = await provider.sign_up(email, payload.password, profile)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=f"Erro no Auth: {e.message}") from e
    except RemoteStoreError as e:
        raise remote_http_error(e) from e

    # o perfil é gravado de novo explicitamente, caso o cadastro não o tenha criado
    try:
        row = await provider.upsert("profiles", {"id": account.id, "email": email, **profile})
    except RemoteStoreError as e:
        logger.error(f"Erro ao criar perfil manual para {email}: {e}")
        raise remote_http_error(e) from e

    user = UserOut.model_validate(row)
    _merge_user(ws, user)
    return UserSaveOut(user=user, notice=NOTICE_CREATED_APPROVED if approved else NOTICE_INVITED)


@router.patch("/{user_id}", response_model=UserSaveOut)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    ws: Workspace = Depends(get_master_workspace),
    provider: DataProvider = Depends(get_provider),
):
    previous = _get_user_or_404(ws, user_id)
    values = payload.model_dump(exclude_unset=True)
    if "cpf" in values:
        values["cpf"] = format_cpf(values["cpf"])
    if "phone" in values:
        values["phone"] = blank_to_none(values["phone"])
    if is_master_email(previous.email, settings.MASTER_EMAIL):
        values.update(role=MASTER_ROLE, approved=True)

    try:
        rows = await provider.update("profiles", values, eq={"id": user_id})
    except RemoteStoreError as e:
        raise remote_http_error(e) from e
    if not rows:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")

    user = UserOut.model_validate(rows[0])
    _merge_user(ws, user)

    # aprovado agora: manda o link de acesso por e-mail
    if not previous.approved and user.approved and user.email:
        try:
            await provider.reset_password_for_email(user.email, settings.PASSWORD_RESET_REDIRECT)
        except RemoteStoreError as e:
            logger.error(f"Falha ao enviar e-mail de aprovação para {user.email}: {e}")
            return UserSaveOut(user=user, notice=NOTICE_APPROVED_MAIL_FAILED.format(error=e.message))
        return UserSaveOut(user=user, notice=NOTICE_APPROVED_MAILED)
    return UserSaveOut(user=user, notice=NOTICE_UPDATED)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    confirm: bool = Query(False),
    ws: Workspace = Depends(get_master_workspace),
    provider: DataProvider = Depends(get_provider),
):
    user = _get_user_or_404(ws, user_id)
    if is_master_email(user.email, settings.MASTER_EMAIL):
        raise HTTPException(status_code=400, detail="O usuário Master principal não pode ser excluído.")
    if not confirm:
        raise HTTPException(
            status_code=400,
            detail=f"Tem certeza que deseja EXCLUIR o usuário {user.name}? Confirme a exclusão.",
        )
    # sem perfil o login cai no estado pendente
    try:
        await provider.delete("profiles", eq={"id": user_id})
    except RemoteStoreError as e:
        raise remote_http_error(e) from e
    ws.remove_user(user_id)
    return None
