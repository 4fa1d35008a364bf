from __future__ import annotations

from datetime import date

from sqlalchemy import String, Text, Date, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from studioboard.db.base import Base, TimestampMixin, new_id


class Project(Base, TimestampMixin):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    brief: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)    # prazo (agenda)
    client_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)

    # Etapa desnormalizada: deve bater com columns.title
    stage: Mapped[str] = mapped_column(String(120), nullable=False)

    # JSON em vez de ARRAY para manter compatibilidade com SQLite
    responsible_user_ids: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    checklist: Mapped[list[dict] | None] = mapped_column(JSON, nullable=True)

    script: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail: Mapped[str | None] = mapped_column(Text, nullable=True)   # base64
    upload_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    owner_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)

    __table_args__ = (
        Index("ix_projects_stage", "stage"),
    )
