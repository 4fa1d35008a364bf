"""
Fronteira com o provedor remoto (banco + autenticação).

O app só conhece esta interface: CRUD por tabela com filtros de igualdade e
ordenação, mais as primitivas de sessão (login, cadastro, logout, sessão atual,
redefinição de senha e assinatura de eventos de auth). A implementação concreta
fica em `studioboard.provider.sql`.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

from jose import JWTError

from studioboard.core.config import settings
from studioboard.core.errors import AuthError
from studioboard.core.security import create_session_token, decode_token, new_session_id

logger = logging.getLogger(__name__)

TABLES = ("columns", "projects", "clients", "profiles", "appointments")

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

Row = dict[str, Any]
AuthListener = Callable[[str, Optional["AuthSession"]], Union[None, Awaitable[None]]]


@dataclass
class AuthUser:
    id: str
    email: str
    user_metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class AuthSession:
    access_token: str
    session_id: str
    expires_at: datetime
    user: AuthUser


class Subscription:
    def __init__(self, provider: "DataProvider", listener: AuthListener):
        self._provider = provider
        self._listener = listener

    def unsubscribe(self) -> None:
        self._provider._listeners = [cb for cb in self._provider._listeners if cb is not self._listener]


class DataProvider:
    """
    Base comum: guarda as sessões ativas e dispara os eventos de auth.
    Subclasses implementam o armazenamento (tabelas e credenciais).
    """

    def __init__(self, *, secret_key: Optional[str] = None, token_minutes: Optional[int] = None):
        self._secret_key = secret_key or settings.SECRET_KEY
        self._token_minutes = token_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
        self._sessions: dict[str, AuthSession] = {}
        self._listeners: list[AuthListener] = []

    # ------------------------ tabelas ------------------------
    async def select(
        self,
        table: str,
        *,
        eq: Optional[dict[str, Any]] = None,
        order: Optional[str] = None,
        ascending: bool = True,
    ) -> list[Row]:
        raise NotImplementedError

    async def insert(self, table: str, rows: list[Row]) -> list[Row]:
        raise NotImplementedError

    async def update(self, table: str, values: Row, *, eq: dict[str, Any]) -> list[Row]:
        raise NotImplementedError

    async def upsert(self, table: str, row: Row) -> Row:
        raise NotImplementedError

    async def delete(self, table: str, *, eq: dict[str, Any]) -> int:
        raise NotImplementedError

    async def count(self, table: str) -> int:
        raise NotImplementedError

    # ------------------------ credenciais (storage) ------------------------
    async def _authenticate(self, email: str, password: str) -> Optional[AuthUser]:
        raise NotImplementedError

    async def _create_account(self, email: str, password: str, metadata: dict[str, Any]) -> AuthUser:
        raise NotImplementedError

    async def _store_reset_token(self, email: str) -> Optional[str]:
        raise NotImplementedError

    # ------------------------ sessão ------------------------
    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        await self.prune_expired_sessions()
        user = await self._authenticate(email.strip().lower(), password)
        if user is None:
            raise AuthError("Invalid login credentials")

        sid = new_session_id()
        token, expires_at = create_session_token(
            user_id=user.id,
            email=user.email,
            session_id=sid,
            expires_minutes=self._token_minutes,
            secret_key=self._secret_key,
        )
        session = AuthSession(access_token=token, session_id=sid, expires_at=expires_at, user=user)
        self._sessions[sid] = session
        await self._emit(SIGNED_IN, session)
        return session

    async def sign_up(self, email: str, password: str, metadata: Optional[dict[str, Any]] = None) -> AuthUser:
        email = email.strip().lower()
        if not email or not password:
            raise AuthError("Email and password are required")
        if len(password) < 6:
            raise AuthError("Password should be at least 6 characters")
        meta = dict(metadata or {})
        meta.setdefault("role", "Free")
        meta.setdefault("approved", False)
        return await self._create_account(email, password, meta)

    async def sign_out(self, access_token: str) -> None:
        session = await self.get_session(access_token)
        if session is None:
            return
        self._sessions.pop(session.session_id, None)
        await self._emit(SIGNED_OUT, session)

    async def get_session(self, access_token: Optional[str]) -> Optional[AuthSession]:
        if not access_token:
            return None
        await self.prune_expired_sessions()
        try:
            claims = decode_token(access_token, self._secret_key)
        except JWTError:
            return None
        session = self._sessions.get(str(claims.get("sid")))
        if session is None or session.access_token != access_token:
            return None
        return session

    async def prune_expired_sessions(self, now: Optional[datetime] = None) -> int:
        """Descarta sessões vencidas e avisa os assinantes com SIGNED_OUT."""
        now = now or datetime.now(timezone.utc)
        expired = [s for s in self._sessions.values() if s.expires_at <= now]
        for session in expired:
            self._sessions.pop(session.session_id, None)
            await self._emit(SIGNED_OUT, session)
        if expired:
            logger.info("Expired sessions pruned: %s", len(expired))
        return len(expired)

    async def get_user(self, access_token: Optional[str]) -> Optional[AuthUser]:
        session = await self.get_session(access_token)
        return session.user if session else None

    async def reset_password_for_email(self, email: str, redirect_to: Optional[str] = None) -> None:
        token = await self._store_reset_token(email.strip().lower())
        # Igual ao provedor hospedado: e-mail desconhecido não gera erro
        if token is None:
            logger.info("Password reset requested for unknown email %s", email)
            return
        logger.info(
            "Password reset email dispatched",
            extra={"email": email, "redirect_to": redirect_to or settings.PASSWORD_RESET_REDIRECT},
        )

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    async def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event, session)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Auth listener failed for %s", event)

    async def close(self) -> None:
        return None
