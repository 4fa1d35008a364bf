from __future__ import annotations

from sqlalchemy import Integer, String, Index
from sqlalchemy.orm import Mapped, mapped_column

from studioboard.db.base import Base, TimestampMixin, new_id


class BoardColumn(Base, TimestampMixin):
    """
    Coluna (etapa) do quadro. O título também é a chave usada em projects.stage.
    """
    __tablename__ = "columns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_columns_order", "order"),
    )
