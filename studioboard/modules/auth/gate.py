from __future__ import annotations

import enum
from typing import Optional

from studioboard.provider.base import AuthSession
from studioboard.services.visibility import Access


class GateState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    PENDING = "pending"          # autenticado, aguardando aprovação
    AUTHORIZED = "authorized"


def gate_state(session: Optional[AuthSession], access: Optional[Access]) -> GateState:
    if session is None:
        return GateState.UNAUTHENTICATED
    if access is None or not access.is_approved:
        return GateState.PENDING
    return GateState.AUTHORIZED


def affordances(state: GateState, access: Optional[Access]) -> list[str]:
    """Ações disponíveis em cada estado (o papel só controla a gestão de usuários)."""
    if state is GateState.UNAUTHENTICATED:
        return ["sign_in", "sign_up"]
    if state is GateState.PENDING:
        return ["sign_out"]
    actions = ["board", "calendar", "projects", "clients", "appointments", "sign_out"]
    if access is not None and access.is_master:
        actions.append("users")
    return actions


# Mensagens do formulário de login, casadas pelo texto de erro do provedor
_LOGIN_MESSAGES = (
    ("failed to fetch",
     "Falha na conexão. Verifique sua internet e se a URL do banco de dados e as configurações de CORS estão corretas."),
    ("user already registered",
     "Este e-mail já está cadastrado. Por favor, digite sua senha para entrar."),
    ("invalid login credentials",
     "E-mail ou senha inválidos. Por favor, verifique seus dados ou cadastre-se se for um novo usuário."),
    ("email not confirmed",
     "Seu e-mail ainda não foi confirmado. Por favor, verifique sua caixa de entrada."),
    ("database error saving new user",
     "Ocorreu um erro de configuração no banco de dados que impediu a criação do perfil de usuário. "
     "Por favor, contate o administrador do sistema."),
)


def login_error_message(raw: str) -> str:
    lowered = (raw or "").lower()
    for needle, message in _LOGIN_MESSAGES:
        if needle in lowered:
            return message
    return f"Ocorreu um erro ao tentar autenticar: {raw or 'Ocorreu um erro desconhecido.'}"
