from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from studioboard.modules.clients.schemas import ClientCreate


class ChecklistItem(BaseModel):
    id: str
    text: str
    completed: bool = False


class ProjectOut(BaseModel):
    id: str
    title: str
    brief: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    client_id: Optional[str] = None
    stage: str
    responsible_user_ids: List[str] = Field(default_factory=list)
    checklist: List[ChecklistItem] = Field(default_factory=list)
    script: Optional[str] = None
    thumbnail: Optional[str] = None          # base64
    upload_link: Optional[str] = None
    owner_id: str

    class Config:
        from_attributes = True


class ProjectCreate(BaseModel):
    title: str = Field(..., max_length=200)
    brief: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    upload_link: Optional[str] = None
    client_id: Optional[str] = None          # cliente existente...
    new_client: Optional[ClientCreate] = None  # ...ou cadastro inline
    column_id: str                           # etapa inicial (vira stage = título da coluna)
    responsible_user_ids: List[str] = Field(default_factory=list)


class ProjectUpdate(BaseModel):
    # stage fica de fora: só muda arrastando no quadro
    title: Optional[str] = Field(None, max_length=200)
    brief: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    client_id: Optional[str] = None
    responsible_user_ids: Optional[List[str]] = None
    checklist: Optional[List[ChecklistItem]] = None
    script: Optional[str] = None
    thumbnail: Optional[str] = None
    upload_link: Optional[str] = None


class ChecklistItemCreate(BaseModel):
    text: str = "Nova tarefa"


class ChecklistItemUpdate(BaseModel):
    text: Optional[str] = None
    completed: Optional[bool] = None
