from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, Field


class ClientBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = None
    phone: Optional[str] = None
    social_media: Optional[str] = None
    cpf: Optional[str] = None
    cnpj: Optional[str] = None
    address: Optional[str] = None
    essential_info: Optional[str] = None


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = None
    phone: Optional[str] = None
    social_media: Optional[str] = None
    cpf: Optional[str] = None
    cnpj: Optional[str] = None
    address: Optional[str] = None
    essential_info: Optional[str] = None


class ClientOut(ClientBase):
    id: str
    owner_id: str

    class Config:
        from_attributes = True
