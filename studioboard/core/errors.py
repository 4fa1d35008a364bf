# studioboard/core/errors.py
from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import exc as sa_exc


class RemoteStoreError(RuntimeError):
    """Falha devolvida pelo provedor remoto (banco/auth)."""

    kind = "remote"

    def __init__(self, message: str, *, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class ConnectivityError(RemoteStoreError):
    kind = "connectivity"


class RemoteAuthorizationError(RemoteStoreError):
    kind = "authorization"


class SchemaMismatchError(RemoteStoreError):
    kind = "schema"


class AuthError(RemoteStoreError):
    """Erros do fluxo de autenticação (credenciais, cadastro duplicado...)."""

    kind = "auth"


class GenerativeError(RuntimeError):
    """Falha na API de conteúdo generativo."""


_CONNECTIVITY_HINTS = (
    "failed to fetch",
    "could not connect",
    "connection refused",
    "connection reset",
    "timeout expired",
    "name or service not known",
    "network is unreachable",
    "unable to open database file",
)
_AUTHORIZATION_HINTS = (
    "row-level security",
    "row level security",
    "permission denied",
    "insufficient privilege",
)
_SCHEMA_HINTS = (
    "does not exist",
    "no such column",
    "no such table",
    "has no column named",
    "undefined column",
)


def classify_remote_error(error: BaseException) -> RemoteStoreError:
    """Converte exceções do driver/SQLAlchemy na taxonomia de erros do provedor."""
    if isinstance(error, RemoteStoreError):
        return error

    orig = getattr(error, "orig", None)
    raw = str(orig or error)
    message = raw.strip().splitlines()[0] if raw.strip() else error.__class__.__name__
    lowered = raw.lower()
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)

    if isinstance(error, (ConnectionError, TimeoutError)) or any(h in lowered for h in _CONNECTIVITY_HINTS):
        return ConnectivityError(message, code=code, details=raw)
    if code == "42501" or any(h in lowered for h in _AUTHORIZATION_HINTS):
        return RemoteAuthorizationError(message, code=code, details=raw)
    if code in ("42703", "42P01") or any(h in lowered for h in _SCHEMA_HINTS):
        return SchemaMismatchError(message, code=code, details=raw)
    if isinstance(error, (sa_exc.OperationalError, sa_exc.InterfaceError)) and getattr(
        error, "connection_invalidated", False
    ):
        return ConnectivityError(message, code=code, details=raw)
    return RemoteStoreError(message, code=code, details=raw)


def format_remote_error(error: Optional[BaseException]) -> str:
    """Texto exibido ao usuário (equivalente ao alerta bloqueante da UI)."""
    if error is None:
        return "Um erro desconhecido ocorreu."

    if not isinstance(error, RemoteStoreError):
        if isinstance(error, Exception) and str(error):
            error = classify_remote_error(error)
        else:
            return f"Ocorreu um erro: {error!s}"

    output = f"Mensagem: {error.message}"
    if error.details and str(error.details) != error.message:
        output += f"\nDetalhes: {error.details}"

    if isinstance(error, ConnectivityError):
        output += "\n\n--- ERRO DE CONEXÃO ---\nVerifique sua internet e a URL do Supabase."
    elif isinstance(error, RemoteAuthorizationError):
        output += (
            "\n\n--- PERMISSÃO NEGADA ---\n"
            "As políticas de segurança (RLS) do banco bloquearam a operação. "
            "Peça ao administrador para revisar as permissões da tabela."
        )
    elif isinstance(error, SchemaMismatchError):
        output += (
            "\n\n--- ERRO DE CONFIGURAÇÃO ---\n"
            "O banco não possui um campo/tabela esperado. Confira se o schema está atualizado."
        )
    return output
