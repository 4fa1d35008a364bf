# studioboard/core/security.py
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt
from passlib.context import CryptContext

SECRET_ALG = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def new_session_id() -> str:
    return secrets.token_urlsafe(16)


def new_reset_token() -> str:
    return secrets.token_urlsafe(32)


def create_session_token(
    *,
    user_id: str,
    email: str,
    session_id: str,
    expires_minutes: int,
    secret_key: str,
) -> tuple[str, datetime]:
    """Gera o access token da sessão. `sid` identifica a sessão para o sign-out."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    claims: dict[str, Any] = {"sub": user_id, "email": email, "sid": session_id, "exp": expire}
    return jwt.encode(claims, secret_key, algorithm=SECRET_ALG), expire


def decode_token(token: str, secret_key: str) -> dict[str, Any]:
    return jwt.decode(token, secret_key, algorithms=[SECRET_ALG])
