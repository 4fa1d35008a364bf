from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean, DateTime

from studioboard.db.base import Base, TimestampMixin, new_id


class Profile(Base, TimestampMixin):
    """Perfil público do usuário; o id é o mesmo `sub` da sessão."""
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True, unique=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    cpf: Mapped[str | None] = mapped_column(String(20), nullable=True)
    role: Mapped[str | None] = mapped_column(String(20), nullable=True, default="Free")  # Master | Free
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Flag de superusuário gravada no servidor (auditável), além do e-mail Master da config
    is_superuser: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Credential(Base, TimestampMixin):
    """Senha e token de redefinição; nunca exposto pelas rotas de tabela."""
    __tablename__ = "credentials"

    # mesmo id do perfil, sem FK: o login sobrevive à exclusão do perfil
    user_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, index=True, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    reset_token: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reset_requested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
